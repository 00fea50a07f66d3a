"""Submission bookkeeping around the upload step.

Loads a submission together with the client's edited-bitstream pointer and
saves the pointer back once a request is done.
"""

import logging

from award_deposit.entities import Bitstream, Item, SubmissionInfo
from award_deposit.protocols import ContentStore, SessionStore

logger = logging.getLogger(__name__)


def edited_bitstream_key(item_id: int) -> str:
    """Session attribute holding the bitstream being edited in an item."""
    return f"edited_bitstream:{item_id}"


class SubmissionService:
    """Creates submissions and keeps per-session submission state."""

    def __init__(self, repository: ContentStore, sessions: SessionStore) -> None:
        """Initialize the submission service.

        Args:
            repository: Content storage backend (required).
            sessions: Session storage backend (required).
        """
        self._repository = repository
        self._sessions = sessions

    def create_submission(self, submitter: str | None = None) -> Item:
        return self._repository.create_item(submitter=submitter)

    def load(self, session_id: str, item_id: int) -> SubmissionInfo | None:
        """Load a submission as seen by one client session.

        A stored pointer to a bitstream the item no longer holds is dropped.

        Args:
            session_id: The client's session
            item_id: The submission item

        Returns:
            SubmissionInfo, or None if the item does not exist
        """
        item = self._repository.load_item(item_id)
        if item is None:
            return None

        sub_info = SubmissionInfo(item=item)
        raw = self._sessions.get(session_id, edited_bitstream_key(item_id))
        if raw is not None and raw.isdigit() and item.find_bitstream(int(raw)) is not None:
            sub_info.edited_bitstream_id = int(raw)
        return sub_info

    def save(self, session_id: str, sub_info: SubmissionInfo) -> None:
        """Store the edited-bitstream pointer in the session.

        Args:
            session_id: The client's session
            sub_info: The submission after processing
        """
        if sub_info.item is None:
            return
        key = edited_bitstream_key(sub_info.item.id)
        if sub_info.edited_bitstream_id is None:
            self._sessions.delete(session_id, key)
        else:
            self._sessions.set(session_id, key, str(sub_info.edited_bitstream_id))

    def read_content(self, item_id: int, bitstream_id: int) -> tuple[Bitstream, bytes] | None:
        """Fetch a file of a submission.

        Args:
            item_id: The submission item
            bitstream_id: The file

        Returns:
            (bitstream, content), or None if the item does not hold the file
        """
        item = self._repository.load_item(item_id)
        if item is None:
            return None
        bitstream = item.find_bitstream(bitstream_id)
        if bitstream is None:
            return None
        content = self._repository.read_content(bitstream_id)
        if content is None:
            logger.warning("Item %s: bitstream %s has no stored content", item_id, bitstream_id)
            return None
        return bitstream, content

    def is_healthy(self) -> bool:
        return self._repository.health_check()

    def get_stats(self) -> dict:
        return self._repository.get_stats()
