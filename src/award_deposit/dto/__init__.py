"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import CreateSubmissionRequest
from .responses import (
    BitstreamItem,
    BundleItem,
    FormatItem,
    HealthCheckResponse,
    LocaleResponse,
    SubmissionResponse,
    UploadStepResponse,
)

__all__ = [
    "CreateSubmissionRequest",
    "BitstreamItem",
    "BundleItem",
    "FormatItem",
    "HealthCheckResponse",
    "LocaleResponse",
    "SubmissionResponse",
    "UploadStepResponse",
]
