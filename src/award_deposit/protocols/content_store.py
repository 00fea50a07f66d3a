"""Content storage protocol.

Defines the interface for the backend holding submission items, their
bundle/bitstream graph and the bytes of each bitstream.

Changes made to a loaded ``Item`` are not visible to other readers until
``commit`` is called with it.
"""

from typing import Protocol, runtime_checkable

from award_deposit.entities import Item


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for content storage backends.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed.
    """

    def next_id(self, kind: str) -> int:
        """Allocate a new identifier.

        Args:
            kind: Identifier sequence ("item", "bundle", "bitstream")

        Returns:
            A positive identifier unique within the sequence
        """
        ...

    def create_item(self, submitter: str | None = None) -> Item:
        """Create and commit an empty item.

        Args:
            submitter: Optional submitter identity

        Returns:
            The new item
        """
        ...

    def load_item(self, item_id: int) -> Item | None:
        """Load the last committed state of an item.

        Args:
            item_id: The item identifier

        Returns:
            The item, or None if it does not exist
        """
        ...

    def store_content(self, bitstream_id: int, data: bytes) -> None:
        """Store the bytes of a bitstream.

        Args:
            bitstream_id: The bitstream the bytes belong to
            data: File content
        """
        ...

    def read_content(self, bitstream_id: int) -> bytes | None:
        """Read the bytes of a bitstream.

        Args:
            bitstream_id: The bitstream identifier

        Returns:
            File content, or None if nothing is stored
        """
        ...

    def commit(self, item: Item) -> None:
        """Durably persist the item graph.

        Content of bitstreams that are no longer part of the item is
        discarded. On success ``item.version`` is incremented.

        Args:
            item: The item to persist

        Raises:
            StaleItemError: If another commit happened since the item was loaded
        """
        ...

    def health_check(self) -> bool:
        """Check if the backend is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...

    def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...
