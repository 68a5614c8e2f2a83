"""ID Generation System.

ULID-based ids for requests and render sessions.

- K-sortable: Timeline queries without timestamps
- Prefixed: req_* / sess_* make logs readable
"""

from typing import NewType
from ulid import ULID

RequestID = NewType("RequestID", str)
"""HTTP request / correlation identifier"""

SessionID = NewType("SessionID", str)
"""Render session identifier"""


class Prefix:
    """ID prefix constants."""

    REQUEST = "req"
    SESSION = "sess"


class Generator:
    """ULID generator."""

    def generate(self) -> str:
        """Generate a new ULID."""
        return str(ULID())

    def generate_with_prefix(self, prefix: str) -> str:
        """Generate ULID with type prefix."""
        return f"{prefix}_{self.generate()}"


_generator = Generator()


def new_request_id() -> RequestID:
    """Generate new request ID."""
    return RequestID(_generator.generate_with_prefix(Prefix.REQUEST))


def new_session_id() -> SessionID:
    """Generate new render session ID."""
    return SessionID(_generator.generate_with_prefix(Prefix.SESSION))

