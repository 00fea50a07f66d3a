"""Upload step of the library award submission.

Processes one request against a submission's file list: stores newly
uploaded files, removes files, records descriptions and formats and selects
the primary file, then checks that the submission holds every required
document as PDF.

The outcome of a request is a single ``UploadStatus`` code. Step failures
are never raised; storage faults propagate to the caller.
"""

import hashlib
import logging
from collections.abc import Callable
from enum import IntEnum

from award_deposit.entities import (
    ORIGINAL_BUNDLE,
    PRESERVATION_BUNDLE,
    Bitstream,
    Bundle,
    Item,
    StepRequest,
    SubmissionInfo,
)
from award_deposit.formats import PDF_MIME_TYPE, FormatRegistry
from award_deposit.protocols import ContentStore

logger = logging.getLogger(__name__)

# Buttons
SUBMIT_UPLOAD_BUTTON = "submit_upload"
SUBMIT_SKIP_BUTTON = "submit_skip"
SUBMIT_MORE_BUTTON = "submit_more"
CANCEL_EDIT_BUTTON = "submit_edit_cancel"
PROGRESS_BAR_PREFIX = "submit_jump_"
EDIT_PREFIX = "submit_edit_"
REMOVE_SELECTED_BUTTON = "submit_remove_selected"
REMOVE_PREFIX = "submit_remove_"

# Descriptions every submission must provide, in display order
REQUIRED_BITSTREAMS: tuple[str, ...] = (
    "Application Form",
    "Essay",
    "Research Paper",
    "Bibliography",
    "Letter of Support",
)

# Descriptions whose files go to the PRESERVATION bundle
HIDDEN_BITSTREAMS: tuple[str, ...] = (
    "Application Form",
    "Letter of Support",
)


class UploadStatus(IntEnum):
    """Outcome of one upload step request. Zero means success."""

    COMPLETE = 0
    INTEGRITY_ERROR = 1
    UPLOAD_ERROR = 2
    NO_FILES_ERROR = 5
    UNKNOWN_FORMAT = 10
    EDIT_BITSTREAM = 20
    EDIT_COMPLETE = 25
    MISSING_BITSTREAMS = 30
    NOT_PDF = 35


# A step returns None to let processing continue, or the final status
Step = Callable[[StepRequest, SubmissionInfo], UploadStatus | None]


def strip_path(file_path: str) -> str:
    """Strip any directory prefix, in either slash style, from a client path."""
    name = file_path.rsplit("/", 1)[-1]
    return name.rsplit("\\", 1)[-1]


def list_needed_bitstreams() -> str:
    """Display text naming all required documents.

    Returns:
        e.g. "Application Form, Essay, Research Paper, Bibliography, and Letter of Support"
    """
    parts = []
    last = len(REQUIRED_BITSTREAMS) - 1
    for i, name in enumerate(REQUIRED_BITSTREAMS):
        if i == last and i > 0:
            parts.append(", and ")
        elif i > 0:
            parts.append(", ")
        parts.append(name)
    return "".join(parts)


class UploadStepService:
    """Decision chain for the upload step.

    Each request is run through an ordered table of steps. A step either
    handles the request and returns the final status, or returns None and
    lets the next step look at it.

    Example:
        ```python
        service = UploadStepService.create(repository=MemoryContentRepository())
        status = service.process(request, sub_info)
        if status is UploadStatus.MISSING_BITSTREAMS:
            print(service.needed_bitstreams(sub_info.item))
        ```
    """

    def __init__(self, repository: ContentStore, registry: FormatRegistry) -> None:
        """Initialize the upload step service.

        Args:
            repository: Content storage backend (required).
            registry: Format registry used for identification and checks.
        """
        self._repository = repository
        self._registry = registry
        self._steps: list[tuple[str, Step]] = [
            ("upload", self._upload_step),
            ("jump", self._jump_step),
            ("edit", self._edit_step),
            ("remove", self._remove_step),
            ("description", self._description_step),
            ("format", self._format_step),
            ("primary", self._primary_step),
            ("no_files", self._no_files_step),
            ("commit", self._commit_step),
            ("required", self._required_step),
            ("pdf", self._pdf_step),
            ("complete", self._complete_step),
        ]

    @classmethod
    def create(
        cls,
        repository: ContentStore,
        registry: FormatRegistry | None = None,
    ) -> "UploadStepService":
        """Factory method to create UploadStepService with the built-in formats.

        Args:
            repository: Content storage backend (required).
            registry: Format registry. If None, uses the built-in formats.

        Returns:
            Configured UploadStepService instance
        """
        return cls(repository=repository, registry=registry or FormatRegistry.create())

    @property
    def registry(self) -> FormatRegistry:
        return self._registry

    @staticmethod
    def number_of_pages() -> int:
        """The step appears once in the progress bar."""
        return 1

    def process(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus:
        """Run one request through the upload step.

        Args:
            request: The request data
            sub_info: The submission and its edited-bitstream pointer
                (updated in place)

        Returns:
            The outcome status
        """
        if sub_info.item is None:
            logger.error("process: integrity error, no submission item")
            return UploadStatus.INTEGRITY_ERROR

        for name, step in self._steps:
            status = step(request, sub_info)
            if status is not None:
                logger.debug("Item %s: step %r returned %s", sub_info.item.id, name, status.name)
                if status is not UploadStatus.COMPLETE:
                    # keep changes made before the chain stopped
                    self._repository.commit(sub_info.item)
                return status

        return UploadStatus.COMPLETE

    # -----------------------------------------------------------------
    # Decision table
    # -----------------------------------------------------------------

    def _upload_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        if not request.is_multipart:
            return None
        status = self.process_upload_file(request, sub_info)
        return None if status is UploadStatus.COMPLETE else status

    def _jump_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        if not request.button.startswith(PROGRESS_BAR_PREFIX):
            return None
        if not sub_info.item.has_uploaded_files():
            return UploadStatus.NO_FILES_ERROR
        return UploadStatus.COMPLETE

    def _edit_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        button = request.button
        bitstream_id = request.get("bitstream_id")

        if bitstream_id is not None:
            if button == CANCEL_EDIT_BUTTON:
                sub_info.set_bitstream(None)
                return UploadStatus.EDIT_COMPLETE

            bitstream = self._find_bitstream(sub_info.item, bitstream_id)
            if bitstream is None:
                return UploadStatus.INTEGRITY_ERROR
            sub_info.set_bitstream(bitstream)
            return None

        if button.startswith(EDIT_PREFIX):
            bitstream = self._find_bitstream(sub_info.item, button[len(EDIT_PREFIX):])
            if bitstream is None:
                return UploadStatus.INTEGRITY_ERROR
            sub_info.set_bitstream(bitstream)
            return UploadStatus.EDIT_BITSTREAM

        return None

    def _remove_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        button = request.button

        if button.lower() == REMOVE_SELECTED_BUTTON:
            remove_ids = request.get_all("remove")
            if remove_ids:
                for remove_id in remove_ids:
                    status = self.process_remove_file(sub_info.item, remove_id)
                    if status is not UploadStatus.COMPLETE:
                        return status
                sub_info.set_bitstream(None)
        elif button.startswith(REMOVE_PREFIX):
            status = self.process_remove_file(sub_info.item, button[len(REMOVE_PREFIX):])
            if status is not UploadStatus.COMPLETE:
                return status
            sub_info.set_bitstream(None)

        return None

    def _description_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        description = request.get("description")
        if not description:
            return None
        status = self.process_save_file_description(request, sub_info)
        return None if status is UploadStatus.COMPLETE else status

    def _format_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        format_id = request.get_int("format")
        format_description = request.get("format_description")
        if format_id < 0 and not format_description:
            return None
        status = self.process_save_file_format(request, sub_info)
        return None if status is UploadStatus.COMPLETE else status

    def _primary_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        raw_id = request.get("primary_bitstream_id")
        if raw_id is None:
            return None

        primary_id = _parse_id(raw_id)
        if primary_id is None:
            return UploadStatus.INTEGRITY_ERROR

        bundles = sub_info.item.get_bundles(ORIGINAL_BUNDLE)
        if bundles:
            bundle = bundles[0]
            if not any(b.id == primary_id for b in bundle.bitstreams):
                return UploadStatus.INTEGRITY_ERROR
            bundle.primary_bitstream_id = primary_id
        return None

    def _no_files_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        if not sub_info.item.has_uploaded_files():
            return UploadStatus.NO_FILES_ERROR
        return None

    def _commit_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        self._repository.commit(sub_info.item)
        return None

    def _required_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        if self.needed_bitstreams(sub_info.item):
            return UploadStatus.MISSING_BITSTREAMS
        return None

    def _pdf_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        if not self.is_all_pdf(sub_info.item):
            return UploadStatus.NOT_PDF
        return None

    def _complete_step(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus | None:
        self._repository.commit(sub_info.item)
        return UploadStatus.COMPLETE

    # -----------------------------------------------------------------
    # Sub-operations
    # -----------------------------------------------------------------

    def process_upload_file(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus:
        """Attach every file staged on the request to the submission.

        Args:
            request: Request carrying staged uploads
            sub_info: Submission; its pointer is moved to each new bitstream

        Returns:
            COMPLETE, UNKNOWN_FORMAT if any file's format could not be
            identified, or the first error met
        """
        format_known = True
        logger.debug("process_upload_file: begin")

        for upload in request.staged_uploads():
            if not upload.path or upload.content is None:
                logger.info("process_upload_file: upload error, %r has no path or content", upload.field)
                return UploadStatus.UPLOAD_ERROR

            item = sub_info.item
            if item is None:
                logger.error("process_upload_file: integrity error")
                return UploadStatus.INTEGRITY_ERROR

            bundle_name = ORIGINAL_BUNDLE
            if upload.description is not None and upload.description in HIDDEN_BITSTREAMS:
                bundle_name = PRESERVATION_BUNDLE

            bundles = item.get_bundles(bundle_name)
            if bundles:
                bundle = bundles[0]
            else:
                bundle = Bundle(id=self._repository.next_id("bundle"), name=bundle_name)
                item.add_bundle(bundle)

            bitstream = Bitstream(
                id=self._repository.next_id("bitstream"),
                name=strip_path(upload.path),
                source=upload.path,
                description=upload.description,
                size_bytes=len(upload.content),
                checksum=hashlib.md5(upload.content).hexdigest(),
            )
            bundle.add_bitstream(bitstream)

            bitstream_format = self._registry.guess_format(bitstream.name)
            bitstream.format_id = bitstream_format.id if bitstream_format else None

            if bitstream_format is not None and bitstream_format.internal:
                logger.warning(
                    "Attempt to upload file format marked as internal system use only: %s",
                    bitstream.name,
                )
                self._detach(item, bitstream)
                sub_info.set_bitstream(None)
                logger.error("process_upload_file: upload error, internal format")
                return UploadStatus.UPLOAD_ERROR

            self._repository.store_content(bitstream.id, upload.content)
            self._repository.commit(item)
            sub_info.set_bitstream(bitstream)
            logger.info(
                "Item %s: stored %r in %s as bitstream %s",
                item.id,
                bitstream.name,
                bundle_name,
                bitstream.id,
            )

            if bitstream_format is None:
                format_known = False

        if not format_known:
            return UploadStatus.UNKNOWN_FORMAT
        return UploadStatus.COMPLETE

    def process_remove_file(self, item: Item, bitstream_id: str | int) -> UploadStatus:
        """Remove a file from the item, dropping its bundle if left empty.

        Args:
            item: The submission item
            bitstream_id: Id of the file, possibly still as request text

        Returns:
            COMPLETE, or INTEGRITY_ERROR for an invalid or unknown id
        """
        bitstream = self._find_bitstream(item, bitstream_id)
        if bitstream is None:
            return UploadStatus.INTEGRITY_ERROR

        self._detach(item, bitstream)
        logger.info("Item %s: removed bitstream %s", item.id, bitstream.id)
        return UploadStatus.COMPLETE

    def process_save_file_description(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus:
        bitstream = sub_info.edited_bitstream
        if bitstream is None:
            return UploadStatus.INTEGRITY_ERROR

        bitstream.description = request.get("description")
        self._repository.commit(sub_info.item)
        return UploadStatus.COMPLETE

    def process_save_file_format(self, request: StepRequest, sub_info: SubmissionInfo) -> UploadStatus:
        """Record the format chosen or declared for the edited file.

        A registry id wins over a free-text description. Internal formats
        cannot be chosen.
        """
        bitstream = sub_info.edited_bitstream
        if bitstream is None:
            return UploadStatus.INTEGRITY_ERROR

        chosen = self._registry.find(request.get_int("format"))
        if chosen is not None:
            if chosen.internal:
                return UploadStatus.INTEGRITY_ERROR
            bitstream.format_id = chosen.id
            bitstream.user_format_description = None
        else:
            bitstream.format_id = None
            bitstream.user_format_description = request.get("format_description")

        return UploadStatus.COMPLETE

    def needed_bitstreams(self, item: Item) -> list[str]:
        """Required documents not yet uploaded.

        A requirement is met by any non-internal file whose description
        equals it exactly.

        Args:
            item: The submission item

        Returns:
            Unmet requirements in display order
        """
        descriptions = {b.description for b in self._non_internal_bitstreams(item)}
        needed = []
        for required in REQUIRED_BITSTREAMS:
            present = required in descriptions
            logger.debug("needed_bitstreams: %s is already present %s", required, present)
            if not present:
                needed.append(required)

        logger.debug("needed_bitstreams: returning %s", needed)
        return needed

    def is_all_pdf(self, item: Item) -> bool:
        """Check that every non-internal file is a PDF.

        Files of unknown format fail the check.
        """
        for bitstream in self._non_internal_bitstreams(item):
            if self._registry.mime_type(bitstream.format_id) != PDF_MIME_TYPE:
                logger.debug("is_all_pdf: bitstream %s is not a PDF", bitstream.id)
                return False
        return True

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _non_internal_bitstreams(self, item: Item) -> list[Bitstream]:
        return [b for b in item.all_bitstreams() if not self._registry.is_internal(b.format_id)]

    @staticmethod
    def _find_bitstream(item: Item, raw_id: str | int) -> Bitstream | None:
        bitstream_id = _parse_id(raw_id)
        if bitstream_id is None:
            return None
        return item.find_bitstream(bitstream_id)

    @staticmethod
    def _detach(item: Item, bitstream: Bitstream) -> None:
        bundle = item.bundle_of(bitstream)
        if bundle is None:
            return
        bundle.remove_bitstream(bitstream)
        if not bundle.bitstreams:
            item.remove_bundle(bundle)


def _parse_id(raw_id: str | int) -> int | None:
    try:
        return int(raw_id)
    except (TypeError, ValueError):
        return None
