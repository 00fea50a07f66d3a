"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class LocaleResponse(BaseModel):
    """Response DTO for the resolved request locale."""

    language: str = Field(..., description="Lower-case language code, e.g. 'en'")
    country: str = Field("", description="Upper-case country code, empty if none")
    variant: str = Field("", description="Locale variant, empty if none")
    locale: str = Field(..., description="Full locale string, e.g. 'en_US'")


class FormatItem(BaseModel):
    """A format a submitter may choose."""

    id: int
    short_description: str
    mime_type: str
    description: str = ""
    extensions: list[str] = Field(default_factory=list)


class BitstreamItem(BaseModel):
    """Single file of a submission."""

    id: int
    name: str
    source: str
    description: str | None = None
    format_id: int | None = Field(None, description="Registry format id, null when unknown")
    format: str | None = Field(None, description="Short description of the format")
    mime_type: str | None = None
    user_format_description: str | None = None
    size_bytes: int = Field(0, ge=0)
    checksum: str = ""
    checksum_algorithm: str = "MD5"


class BundleItem(BaseModel):
    """Named group of files."""

    id: int
    name: str
    primary_bitstream_id: int | None = None
    bitstreams: list[BitstreamItem] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    """Response DTO describing a submission's files."""

    id: int
    submitter: str | None = None
    bundles: list[BundleItem] = Field(default_factory=list)
    edited_bitstream_id: int | None = Field(
        None,
        description="Bitstream currently being edited in this session",
    )
    needed_bitstreams: list[str] = Field(
        default_factory=list,
        description="Required documents not yet uploaded",
    )
    required_bitstreams: str = Field(..., description="Display text listing every required document")
    all_pdf: bool = Field(..., description="Whether every file is a PDF")


class UploadStepResponse(BaseModel):
    """Response DTO for one run of the upload step."""

    status: int = Field(..., description="Outcome code, 0 on success", ge=0)
    status_name: str = Field(..., description="Symbolic name of the outcome code")
    edited_bitstream_id: int | None = None
    needed_bitstreams: list[str] = Field(default_factory=list)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    storage_healthy: bool = Field(..., description="Whether the storage backend is reachable")
