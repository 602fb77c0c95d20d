"""
Recipe Remix - Request tracking for AI operations.

Each AI-backed operation kind gets a monotonically increasing sequence
number. A call takes a RequestToken before awaiting the collaborator and
checks it afterwards: only the latest, uncancelled token of its kind may
apply its result. Anything else is a stale response and is dropped.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from recipe_remix.errors import StaleResponse

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """AI-backed operation kinds. One in flight per kind."""

    DETECT_INGREDIENTS = "detect_ingredients"
    GENERATE_RECIPES = "generate_recipes"
    GENERATE_SUBSTITUTIONS = "generate_substitutions"
    CHAT = "chat"


@dataclass
class RequestToken:
    operation: Operation
    sequence: int
    cancelled: bool = False


class RequestTracker:
    """Per-session registry of the latest request of each operation kind."""

    def __init__(self) -> None:
        self._sequences: dict[Operation, int] = {}
        self._in_flight: dict[Operation, RequestToken] = {}

    def begin(self, operation: Operation) -> RequestToken:
        """
        Issue a new request of `operation`.

        An older request of the same kind that is still outstanding is
        superseded: it stays running but its response will be discarded.
        """
        previous = self._in_flight.get(operation)
        if previous is not None:
            previous.cancelled = True
            logger.debug(f"{operation.value} #{previous.sequence} superseded")

        sequence = self._sequences.get(operation, 0) + 1
        self._sequences[operation] = sequence
        token = RequestToken(operation=operation, sequence=sequence)
        self._in_flight[operation] = token
        return token

    def is_current(self, token: RequestToken) -> bool:
        """True if the token is the latest of its kind and was not cancelled."""
        return not token.cancelled and self._sequences.get(token.operation) == token.sequence

    def check(self, token: RequestToken) -> None:
        """Raise StaleResponse unless the token may still apply its result."""
        if not self.is_current(token):
            raise StaleResponse(token.operation.value, token.sequence, self._sequences.get(token.operation, 0))

    def finish(self, token: RequestToken) -> None:
        """Clear the in-flight slot if it still belongs to this token."""
        if self._in_flight.get(token.operation) is token:
            del self._in_flight[token.operation]

    def cancel(self, operation: Operation) -> RequestToken | None:
        """Cancel the outstanding request of `operation`, if any."""
        token = self._in_flight.pop(operation, None)
        if token is not None:
            token.cancelled = True
            logger.debug(f"{operation.value} #{token.sequence} cancelled")
        return token

    def cancel_all(self) -> None:
        for operation in list(self._in_flight):
            self.cancel(operation)

    def is_loading(self, operation: Operation) -> bool:
        return operation in self._in_flight

    def loading(self) -> list[Operation]:
        """Operations with a request outstanding."""
        return list(self._in_flight)
