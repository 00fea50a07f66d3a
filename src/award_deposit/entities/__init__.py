"""Domain entities for internal representation.

These are plain dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
"""

from .content import ORIGINAL_BUNDLE, PRESERVATION_BUNDLE, Bitstream, BitstreamFormat, Bundle, Item
from .locale import Locale
from .step_request import StagedUpload, StepRequest
from .submission import SubmissionInfo

__all__ = [
    "ORIGINAL_BUNDLE",
    "PRESERVATION_BUNDLE",
    "Bitstream",
    "BitstreamFormat",
    "Bundle",
    "Item",
    "Locale",
    "StagedUpload",
    "StepRequest",
    "SubmissionInfo",
]
