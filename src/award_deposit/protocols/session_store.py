"""Session storage protocol.

Per-client key/value state that outlives a single request: the stored
locale and, per item, the bitstream currently being edited.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Protocol for session storage backends."""

    def get(self, session_id: str, name: str) -> str | None:
        """Read a session attribute.

        Args:
            session_id: The client's session identifier
            name: Attribute name

        Returns:
            The value, or None if unset
        """
        ...

    def set(self, session_id: str, name: str, value: str) -> None:
        """Write a session attribute, refreshing the session's expiry.

        Args:
            session_id: The client's session identifier
            name: Attribute name
            value: Attribute value
        """
        ...

    def delete(self, session_id: str, name: str) -> None:
        """Remove a session attribute (no-op if unset).

        Args:
            session_id: The client's session identifier
            name: Attribute name
        """
        ...
