"""
Recipe Remix - Session identity.

The anonymous token that scopes saved recipes. Process-wide and
single-assignment: generated once, cached in a local file, read many times,
never rotated. Web clients carry their own token in a cookie instead.
"""

import logging
import uuid
from pathlib import Path

from recipe_remix.config import settings
from recipe_remix.errors import PersistenceFailure

logger = logging.getLogger(__name__)

_identity: str | None = None


def init_session_identity(path: Path | None = None) -> str:
    """
    Load the cached identity, creating and storing it on first use.

    Calling again returns the identity already assigned.

    Raises:
        PersistenceFailure: the identity file could not be read or written
    """
    global _identity

    if _identity is not None:
        return _identity

    path = Path(path or settings.session_id_path).expanduser()
    try:
        token = path.read_text(encoding="utf-8").strip() if path.exists() else ""
        if not token:
            token = str(uuid.uuid4())
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(token, encoding="utf-8")
            logger.info(f"Created session identity at {path}")
    except OSError as e:
        raise PersistenceFailure(f"Couldn't access session identity at {path}") from e

    _identity = token
    return _identity


def get_session_identity() -> str:
    """The process-wide identity, initializing it lazily."""
    return _identity if _identity is not None else init_session_identity()
