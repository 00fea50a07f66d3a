"""Submission state entity."""

from dataclasses import dataclass

from .content import Bitstream, Item


@dataclass
class SubmissionInfo:
    """An item under submission plus the bitstream currently being edited.

    The edited-bitstream pointer lives in the client's session, not on the
    item, so it is carried here as an optional id.

    Attributes:
        item: The submission item, None when the request did not resolve one
        edited_bitstream_id: Id of the bitstream whose details are being edited
    """

    item: Item | None
    edited_bitstream_id: int | None = None

    @property
    def edited_bitstream(self) -> Bitstream | None:
        if self.item is None or self.edited_bitstream_id is None:
            return None
        return self.item.find_bitstream(self.edited_bitstream_id)

    def set_bitstream(self, bitstream: Bitstream | None) -> None:
        self.edited_bitstream_id = bitstream.id if bitstream is not None else None
