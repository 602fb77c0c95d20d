"""
Recipe Remix - Error taxonomy.

Every failure the session state machine knows how to recover from is one of
these. Anything else is a bug and propagates.
"""


class RemixError(Exception):
    """Base class. `message` is safe to show to the user."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(RemixError):
    """Rejected before any external call (bad file type, empty name, bad index)."""


class ServiceFailure(RemixError):
    """Network/HTTP-level failure from an external collaborator."""

    retryable = True


class MalformedAiResponse(RemixError):
    """The collaborator replied but the payload failed normalization."""

    retryable = True

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw

    def raw_excerpt(self, limit: int = 500) -> str:
        """Raw payload trimmed for log lines."""
        text = self.raw if isinstance(self.raw, str) else repr(self.raw)
        return text if len(text) <= limit else text[:limit] + "..."


class StaleResponse(RemixError):
    """A response arrived for a superseded or cancelled request."""

    def __init__(self, operation: str, sequence: int, latest: int):
        super().__init__(f"Discarded stale {operation} response #{sequence} (latest #{latest})")
        self.operation = operation
        self.sequence = sequence
        self.latest = latest


class PersistenceFailure(RemixError):
    """Save/load/delete/favorite against the persistence backend failed."""

    retryable = True
