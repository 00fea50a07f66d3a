"""
Shared fixtures for the award deposit tests.

The fixtures here use the in-memory storage backend; no Redis needed.
"""

import pytest

from award_deposit.entities import StepRequest, SubmissionInfo
from award_deposit.repositories import MemoryContentRepository, MemorySessionStore
from award_deposit.services import UploadStepService

MULTIPART = "multipart/form-data; boundary=----award"
FORM = "application/x-www-form-urlencoded"


def upload_request(files, params=None) -> StepRequest:
    """Build a multipart request staging ``(path, content, description)`` files."""
    request = StepRequest(content_type=MULTIPART, params=_as_lists(params))
    for i, (path, content, description) in enumerate(files):
        field = f"file{i}"
        request.attributes[f"{field}-path"] = path
        request.attributes[f"{field}-inputstream"] = content
        if description is not None:
            request.attributes[f"{field}-description"] = description
    return request


def form_request(params=None) -> StepRequest:
    """Build a url-encoded request carrying only parameters."""
    return StepRequest(content_type=FORM, params=_as_lists(params))


def _as_lists(params):
    return {k: v if isinstance(v, list) else [v] for k, v in (params or {}).items()}


REQUIRED_PDFS = [
    ("application.pdf", b"%PDF-1.4 application", "Application Form"),
    ("essay.pdf", b"%PDF-1.4 essay", "Essay"),
    ("paper.pdf", b"%PDF-1.4 paper", "Research Paper"),
    ("bibliography.pdf", b"%PDF-1.4 bibliography", "Bibliography"),
    ("letter.pdf", b"%PDF-1.4 letter", "Letter of Support"),
]


@pytest.fixture
def repository():
    """In-memory content repository."""
    return MemoryContentRepository()


@pytest.fixture
def sessions():
    """In-memory session store."""
    return MemorySessionStore()


@pytest.fixture
def service(repository):
    """Upload step service with the built-in formats."""
    return UploadStepService.create(repository=repository)


@pytest.fixture
def sub_info(repository):
    """A fresh, empty submission."""
    return SubmissionInfo(item=repository.create_item(submitter="jdoe"))
