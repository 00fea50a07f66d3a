"""Request DTOs for API endpoints.

The upload step itself takes a form (multipart or url-encoded) whose field
names are only known at request time, so it has no DTO.
"""

from pydantic import BaseModel, Field


class CreateSubmissionRequest(BaseModel):
    """Request DTO for starting a submission."""

    submitter: str | None = Field(
        None,
        description="Identity of the person depositing the item",
        max_length=256,
    )
