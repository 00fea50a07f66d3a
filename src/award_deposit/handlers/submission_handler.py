"""HTTP handlers for submission and upload step operations.

Handlers convert between HTTP requests, DTOs and service calls.
They handle HTTP concerns like status codes, form parsing and error handling.
"""

import logging
from urllib.parse import quote

from fastapi import HTTPException, Request, Response, status
from starlette.datastructures import UploadFile

from award_deposit.dto import (
    BitstreamItem,
    BundleItem,
    CreateSubmissionRequest,
    FormatItem,
    SubmissionResponse,
    UploadStepResponse,
)
from award_deposit.entities import StepRequest, SubmissionInfo
from award_deposit.entities.step_request import DESCRIPTION_SUFFIX, PATH_SUFFIX, STREAM_SUFFIX
from award_deposit.repositories import StaleItemError
from award_deposit.services import SubmissionService, UploadStatus, UploadStepService, list_needed_bitstreams

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def content_disposition(filename: str) -> str:
    """Attachment header value carrying any file name (RFC 6266).

    ``filename`` holds an ASCII approximation for older clients; the exact
    name goes in ``filename*`` as percent-encoded UTF-8.
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    fallback = "".join(c for c in fallback if c.isprintable() and c not in '"\\').strip() or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


class SubmissionHandler:
    """HTTP handlers for submissions.

    This handler delegates business logic to SubmissionService and
    UploadStepService and handles HTTP-specific concerns like:
    - Turning form posts into StepRequest objects
    - Converting entities to DTOs
    - Setting appropriate status codes
    """

    def __init__(
        self,
        submission_service: SubmissionService,
        upload_service: UploadStepService,
        max_upload_size: int,
    ) -> None:
        """Initialize the submission handler.

        Args:
            submission_service: Loads and saves submissions (required).
            upload_service: The upload step decision chain (required).
            max_upload_size: Largest accepted file, in bytes.
        """
        self._submissions = submission_service
        self._upload = upload_service
        self._max_upload_size = max_upload_size

    async def build_step_request(self, request: Request) -> StepRequest:
        """Collect query/form parameters and staged uploads of a request.

        Every uploaded file becomes the ``<field>-path``, ``<field>-inputstream``
        and ``<field>-description`` attributes. File inputs left empty by the
        browser are ignored.

        Raises:
            HTTPException: 413 if a file exceeds the upload size limit
        """
        content_type = request.headers.get("content-type")
        step_request = StepRequest(content_type=content_type)

        for key, value in request.query_params.multi_items():
            step_request.params.setdefault(key, []).append(value)

        if content_type is None or not any(t in content_type for t in FORM_CONTENT_TYPES):
            return step_request

        form = await request.form()
        files = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.append((key, value))
            else:
                step_request.params.setdefault(key, []).append(value)

        for key, upload in files:
            data = await upload.read()
            if not upload.filename and not data:
                continue
            if len(data) > self._max_upload_size:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File {upload.filename!r} exceeds {self._max_upload_size} bytes",
                )
            step_request.attributes[key + PATH_SUFFIX] = upload.filename or None
            step_request.attributes[key + STREAM_SUFFIX] = data
            description = step_request.get(key + DESCRIPTION_SUFFIX)
            if description:
                step_request.attributes[key + DESCRIPTION_SUFFIX] = description

        return step_request

    async def create_submission(self, request: CreateSubmissionRequest) -> SubmissionResponse:
        """Handle POST /submissions requests."""
        try:
            item = self._submissions.create_submission(submitter=request.submitter)
            return self._to_response(SubmissionInfo(item=item))
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create submission: {e}",
            ) from e

    async def get_submission(self, request: Request, item_id: int) -> SubmissionResponse:
        """Handle GET /submissions/{item_id} requests.

        Raises:
            HTTPException: 404 if the submission does not exist
        """
        sub_info = self._load(request, item_id)
        return self._to_response(sub_info)

    async def upload_step(self, request: Request, item_id: int) -> UploadStepResponse:
        """Handle POST /submissions/{item_id}/upload requests.

        Args:
            request: Multipart or url-encoded form post
            item_id: The submission item

        Returns:
            UploadStepResponse with the outcome code

        Raises:
            HTTPException: 404 for an unknown submission, 409 if another
                request committed the submission first, 413 for oversized
                files, 500 if storage fails
        """
        sub_info = self._load(request, item_id)
        step_request = await self.build_step_request(request)

        try:
            result = self._upload.process(step_request, sub_info)
            self._submissions.save(request.state.session_id, sub_info)
        except StaleItemError as e:
            logger.warning("Upload step for item %s lost a concurrent update: %s", item_id, e)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Submission {item_id} was changed by another request, reload and retry",
            ) from e
        except Exception as e:
            logger.exception("Upload step failed for item %s", item_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to process upload step: {e}",
            ) from e

        needed = []
        if result is UploadStatus.MISSING_BITSTREAMS:
            needed = self._upload.needed_bitstreams(sub_info.item)

        return UploadStepResponse(
            status=int(result),
            status_name=result.name,
            edited_bitstream_id=sub_info.edited_bitstream_id,
            needed_bitstreams=needed,
        )

    async def get_content(self, item_id: int, bitstream_id: int) -> Response:
        """Handle GET /submissions/{item_id}/bitstreams/{bitstream_id}/content requests.

        The media type comes from the bitstream's stored format.

        Raises:
            HTTPException: 404 if the file does not exist
        """
        found = self._submissions.read_content(item_id, bitstream_id)
        if found is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bitstream not found")

        bitstream, content = found
        media_type = self._upload.registry.mime_type(bitstream.format_id) or "application/octet-stream"
        return Response(
            content=content,
            media_type=media_type,
            headers={"Content-Disposition": content_disposition(bitstream.name)},
        )

    async def list_formats(self) -> list[FormatItem]:
        """Handle GET /formats requests."""
        return [
            FormatItem(
                id=fmt.id,
                short_description=fmt.short_description,
                mime_type=fmt.mime_type,
                description=fmt.description,
                extensions=list(fmt.extensions),
            )
            for fmt in self._upload.registry.non_internal()
        ]

    async def health_check(self) -> dict:
        """Handle GET /health requests."""
        is_healthy = self._submissions.is_healthy()
        return {
            "status": "healthy" if is_healthy else "unhealthy",
            "storage_healthy": is_healthy,
        }

    def _load(self, request: Request, item_id: int) -> SubmissionInfo:
        sub_info = self._submissions.load(request.state.session_id, item_id)
        if sub_info is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Submission {item_id} not found",
            )
        return sub_info

    def _to_response(self, sub_info: SubmissionInfo) -> SubmissionResponse:
        item = sub_info.item
        registry = self._upload.registry
        bundles = []
        for bundle in item.bundles:
            files = []
            for b in bundle.bitstreams:
                fmt = registry.find(b.format_id) if b.format_id is not None else None
                files.append(
                    BitstreamItem(
                        id=b.id,
                        name=b.name,
                        source=b.source,
                        description=b.description,
                        format_id=b.format_id,
                        format=fmt.short_description if fmt else None,
                        mime_type=fmt.mime_type if fmt else None,
                        user_format_description=b.user_format_description,
                        size_bytes=b.size_bytes,
                        checksum=b.checksum,
                        checksum_algorithm=b.checksum_algorithm,
                    )
                )
            bundles.append(
                BundleItem(
                    id=bundle.id,
                    name=bundle.name,
                    primary_bitstream_id=bundle.primary_bitstream_id,
                    bitstreams=files,
                )
            )

        return SubmissionResponse(
            id=item.id,
            submitter=item.submitter,
            bundles=bundles,
            edited_bitstream_id=sub_info.edited_bitstream_id,
            needed_bitstreams=self._upload.needed_bitstreams(item),
            required_bitstreams=list_needed_bitstreams(),
            all_pdf=self._upload.is_all_pdf(item),
        )
