"""
Tests for the upload step decision chain.
"""

import hashlib

from conftest import REQUIRED_PDFS, form_request, upload_request

from award_deposit.entities import Bitstream, StepRequest, SubmissionInfo
from award_deposit.services import UploadStatus, list_needed_bitstreams
from award_deposit.services.upload_service import strip_path


def _ids(sub_info, bundle_name):
    bundles = sub_info.item.get_bundles(bundle_name)
    return [b.id for bundle in bundles for b in bundle.bitstreams]


def test_no_files_reports_no_files(service, sub_info):
    """A plain form post on an empty submission never succeeds."""
    status = service.process(form_request({"submit_next": "Next"}), sub_info)
    assert status is UploadStatus.NO_FILES_ERROR


def test_no_files_without_any_button(service, sub_info):
    """An empty request is treated like pressing Next."""
    status = service.process(StepRequest(), sub_info)
    assert status is UploadStatus.NO_FILES_ERROR


def test_missing_item_is_integrity_error(service):
    """Without a submission item nothing can be processed."""
    status = service.process(form_request({"submit_next": "Next"}), SubmissionInfo(item=None))
    assert status is UploadStatus.INTEGRITY_ERROR


def test_upload_stores_file_in_original(service, sub_info, repository):
    """A described PDF lands in ORIGINAL with its path stripped."""
    content = b"%PDF-1.4 essay"
    request = upload_request([("C:\\Users\\jdoe\\Desktop\\Essay.pdf", content, "Essay")])

    status = service.process(request, sub_info)

    assert status is UploadStatus.MISSING_BITSTREAMS
    (bundle,) = sub_info.item.get_bundles("ORIGINAL")
    (bitstream,) = bundle.bitstreams
    assert bitstream.name == "Essay.pdf"
    assert bitstream.source == "C:\\Users\\jdoe\\Desktop\\Essay.pdf"
    assert bitstream.description == "Essay"
    assert bitstream.format_id == 4
    assert bitstream.size_bytes == len(content)
    assert bitstream.checksum == hashlib.md5(content).hexdigest()
    assert sub_info.edited_bitstream_id == bitstream.id
    assert repository.read_content(bitstream.id) == content


def test_upload_is_committed(service, sub_info, repository):
    """The stored item reflects a successful upload."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)

    stored = repository.load_item(sub_info.item.id)
    assert [b.name for b in stored.all_bitstreams()] == ["essay.pdf"]


def test_hidden_category_goes_to_preservation(service, sub_info):
    """Application forms and letters of support are kept out of ORIGINAL."""
    request = upload_request(
        [
            ("form.pdf", b"%PDF form", "Application Form"),
            ("letter.pdf", b"%PDF letter", "Letter of Support"),
        ]
    )

    service.process(request, sub_info)

    assert sub_info.item.get_bundles("ORIGINAL") == []
    (bundle,) = sub_info.item.get_bundles("PRESERVATION")
    assert [b.name for b in bundle.bitstreams] == ["form.pdf", "letter.pdf"]


def test_uploads_reuse_existing_bundle(service, sub_info):
    """A second upload joins the first ORIGINAL bundle."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    service.process(upload_request([("paper.pdf", b"%PDF", "Research Paper")]), sub_info)

    assert len(sub_info.item.get_bundles("ORIGINAL")) == 1
    assert len(_ids(sub_info, "ORIGINAL")) == 2


def test_internal_format_is_rejected(service, sub_info, repository):
    """Files of an internal format are removed together with their new bundle."""
    request = upload_request([("deposit.license", b"license text", "Essay")])

    status = service.process(request, sub_info)

    assert status is UploadStatus.UPLOAD_ERROR
    assert sub_info.item.bundles == []
    assert sub_info.edited_bitstream_id is None
    assert repository.load_item(sub_info.item.id).bundles == []


def test_internal_format_keeps_existing_bundle(service, sub_info):
    """Rejecting an internal file leaves earlier files in place."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)

    status = service.process(upload_request([("deposit.license", b"text", None)]), sub_info)

    assert status is UploadStatus.UPLOAD_ERROR
    (bundle,) = sub_info.item.get_bundles("ORIGINAL")
    assert [b.name for b in bundle.bitstreams] == ["essay.pdf"]


def test_unknown_format(service, sub_info):
    """Files the registry cannot identify are kept but reported."""
    status = service.process(upload_request([("notes.xyz", b"???", "Essay")]), sub_info)

    assert status is UploadStatus.UNKNOWN_FORMAT
    (bitstream,) = sub_info.item.all_bitstreams()
    assert bitstream.format_id is None
    assert sub_info.edited_bitstream_id == bitstream.id


def test_unknown_format_after_all_uploads(service, sub_info):
    """Later uploads in the same request are still stored."""
    request = upload_request([("notes.xyz", b"???", "Essay"), ("paper.pdf", b"%PDF", "Research Paper")])

    status = service.process(request, sub_info)

    assert status is UploadStatus.UNKNOWN_FORMAT
    assert len(sub_info.item.all_bitstreams()) == 2


def test_upload_without_path_fails(service, sub_info):
    """A staged upload that lost its path is an upload error."""
    request = upload_request([(None, b"%PDF", "Essay")])
    assert service.process(request, sub_info) is UploadStatus.UPLOAD_ERROR


def test_upload_without_stream_fails(service, sub_info):
    """A staged upload that lost its content is an upload error."""
    request = upload_request([("essay.pdf", None, "Essay")])
    assert service.process(request, sub_info) is UploadStatus.UPLOAD_ERROR
    assert sub_info.item.bundles == []


def test_upload_description_falls_back_to_parameter(service, sub_info):
    """Without a per-file description the form's description is used."""
    request = upload_request([("essay.pdf", b"%PDF", None)], {"description": "Essay"})

    service.process(request, sub_info)

    (bitstream,) = sub_info.item.all_bitstreams()
    assert bitstream.description == "Essay"


def test_all_required_pdfs_complete(service, sub_info, repository):
    """Five described PDFs complete the step."""
    status = service.process(upload_request(REQUIRED_PDFS), sub_info)

    assert status is UploadStatus.COMPLETE
    stored = repository.load_item(sub_info.item.id)
    assert len(stored.get_bundles("PRESERVATION")[0].bitstreams) == 2
    assert len(stored.get_bundles("ORIGINAL")[0].bitstreams) == 3


def test_not_all_pdf(service, sub_info):
    """A required document in another format blocks completion."""
    files = [f if f[2] != "Essay" else ("essay.doc", b"word", "Essay") for f in REQUIRED_PDFS]

    status = service.process(upload_request(files), sub_info)

    assert status is UploadStatus.NOT_PDF


def test_jump_requires_files(service, sub_info):
    """Jumping through the progress bar needs at least one file."""
    jump = {"submit_jump_2.1": "Describe"}
    assert service.process(form_request(jump), sub_info) is UploadStatus.NO_FILES_ERROR

    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    assert service.process(form_request(jump), sub_info) is UploadStatus.COMPLETE


def test_edit_button_starts_editing(service, sub_info):
    """Pressing a file's edit button points the session at it."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay"), ("paper.pdf", b"%PDF", None)]), sub_info)
    first = sub_info.item.all_bitstreams()[0]

    status = service.process(form_request({f"submit_edit_{first.id}": "Edit"}), sub_info)

    assert status is UploadStatus.EDIT_BITSTREAM
    assert sub_info.edited_bitstream_id == first.id


def test_edit_cancel(service, sub_info):
    """Cancelling an edit clears the pointer."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    bitstream_id = sub_info.edited_bitstream_id

    status = service.process(
        form_request({"bitstream_id": str(bitstream_id), "submit_edit_cancel": "Cancel"}),
        sub_info,
    )

    assert status is UploadStatus.EDIT_COMPLETE
    assert sub_info.edited_bitstream_id is None


def test_edit_unknown_or_malformed_id(service, sub_info):
    """Bad bitstream references are integrity errors."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)

    assert service.process(form_request({"submit_edit_999": "Edit"}), sub_info) is UploadStatus.INTEGRITY_ERROR
    assert service.process(form_request({"submit_edit_abc": "Edit"}), sub_info) is UploadStatus.INTEGRITY_ERROR
    assert service.process(form_request({"bitstream_id": "x1"}), sub_info) is UploadStatus.INTEGRITY_ERROR


def test_save_description(service, sub_info, repository):
    """The description form updates the edited file."""
    service.process(upload_request([("bib.pdf", b"%PDF", "Essay")]), sub_info)
    bitstream_id = sub_info.edited_bitstream_id

    status = service.process(
        form_request({"bitstream_id": str(bitstream_id), "description": "Bibliography", "submit_next": "Save"}),
        sub_info,
    )

    assert status is UploadStatus.MISSING_BITSTREAMS
    stored = repository.load_item(sub_info.item.id)
    assert stored.find_bitstream(bitstream_id).description == "Bibliography"


def test_save_description_requires_edited_file(service, sub_info):
    """A description with nothing being edited is an integrity error."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    sub_info.set_bitstream(None)

    status = service.process(form_request({"description": "Essay"}), sub_info)

    assert status is UploadStatus.INTEGRITY_ERROR


def test_save_chosen_format(service, sub_info):
    """A registry format id replaces an unknown format."""
    service.process(upload_request([("essay.xyz", b"%PDF", "Essay")]), sub_info)

    service.process(form_request({"format": "4"}), sub_info)

    assert sub_info.edited_bitstream.format_id == 4
    assert sub_info.edited_bitstream.user_format_description is None


def test_save_declared_format(service, sub_info):
    """A free-text format is recorded when no registry format is chosen."""
    service.process(upload_request([("essay.tex", b"\\documentclass", "Essay")]), sub_info)

    service.process(form_request({"format": "-1", "format_description": "LaTeX source"}), sub_info)

    assert sub_info.edited_bitstream.format_id is None
    assert sub_info.edited_bitstream.user_format_description == "LaTeX source"


def test_save_format_rejects_internal_and_missing_edit(service, sub_info):
    """Internal formats cannot be chosen; nothing edited is an error."""
    service.process(upload_request([("essay.xyz", b"%PDF", "Essay")]), sub_info)
    assert service.process(form_request({"format": "2"}), sub_info) is UploadStatus.INTEGRITY_ERROR

    sub_info.set_bitstream(None)
    assert service.process(form_request({"format": "4"}), sub_info) is UploadStatus.INTEGRITY_ERROR


def test_remove_one_of_several_keeps_bundle(service, sub_info):
    """Removing one file leaves its bundle and siblings."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay"), ("paper.pdf", b"%PDF", "Research Paper")]), sub_info)
    first, second = sub_info.item.all_bitstreams()

    status = service.process(form_request({f"submit_remove_{first.id}": "Remove"}), sub_info)

    assert status is UploadStatus.MISSING_BITSTREAMS
    assert _ids(sub_info, "ORIGINAL") == [second.id]
    assert sub_info.edited_bitstream_id is None


def test_remove_last_file_removes_bundle(service, sub_info, repository):
    """Removing the last file drops the bundle and its stored content."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    bitstream_id = sub_info.edited_bitstream_id

    status = service.process(form_request({f"submit_remove_{bitstream_id}": "Remove"}), sub_info)

    assert status is UploadStatus.NO_FILES_ERROR
    assert sub_info.item.bundles == []
    assert repository.load_item(sub_info.item.id).bundles == []
    assert repository.read_content(bitstream_id) is None


def test_remove_malformed_id(service, sub_info):
    """A mangled remove button is an integrity error."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay")]), sub_info)
    assert service.process(form_request({"submit_remove_x": "Remove"}), sub_info) is UploadStatus.INTEGRITY_ERROR


def test_remove_selected(service, sub_info):
    """Every selected file is removed."""
    service.process(upload_request(REQUIRED_PDFS[:3]), sub_info)
    ids = [str(b.id) for b in sub_info.item.all_bitstreams()]

    status = service.process(form_request({"submit_remove_selected": "Remove", "remove": ids[:2]}), sub_info)

    assert status is UploadStatus.MISSING_BITSTREAMS
    assert [str(b.id) for b in sub_info.item.all_bitstreams()] == ids[2:]
    assert sub_info.edited_bitstream_id is None


def test_remove_selected_stops_at_first_failure(service, sub_info):
    """Files listed after a bad id are kept."""
    service.process(upload_request(REQUIRED_PDFS[1:3]), sub_info)
    first, second = [str(b.id) for b in sub_info.item.all_bitstreams()]

    status = service.process(
        form_request({"submit_remove_selected": "Remove", "remove": [first, "999", second]}),
        sub_info,
    )

    assert status is UploadStatus.INTEGRITY_ERROR
    assert [str(b.id) for b in sub_info.item.all_bitstreams()] == [second]


def test_primary_bitstream(service, sub_info):
    """The primary file is set on the ORIGINAL bundle."""
    service.process(upload_request([("essay.pdf", b"%PDF", "Essay"), ("paper.pdf", b"%PDF", "Research Paper")]), sub_info)
    second = sub_info.item.all_bitstreams()[1]

    service.process(form_request({"primary_bitstream_id": str(second.id)}), sub_info)

    assert sub_info.item.get_bundles("ORIGINAL")[0].primary_bitstream_id == second.id
    assert service.process(form_request({"primary_bitstream_id": "first"}), sub_info) is UploadStatus.INTEGRITY_ERROR


def test_primary_bitstream_must_be_original(service, sub_info):
    """A file outside the ORIGINAL bundle cannot become primary."""
    service.process(
        upload_request([("form.pdf", b"%PDF", "Application Form"), ("essay.pdf", b"%PDF", "Essay")]),
        sub_info,
    )
    (hidden,) = sub_info.item.get_bundles("PRESERVATION")[0].bitstreams
    original = sub_info.item.get_bundles("ORIGINAL")[0]

    status = service.process(form_request({"primary_bitstream_id": str(hidden.id)}), sub_info)

    assert status is UploadStatus.INTEGRITY_ERROR
    assert original.primary_bitstream_id is None
    assert service.process(form_request({"primary_bitstream_id": "999"}), sub_info) is UploadStatus.INTEGRITY_ERROR


def test_needed_bitstreams_match_exactly(service, sub_info):
    """Descriptions must match a required category exactly."""
    service.process(upload_request([("essay.pdf", b"%PDF", "essay"), ("paper.pdf", b"%PDF", "Research Paper")]), sub_info)

    assert service.needed_bitstreams(sub_info.item) == [
        "Application Form",
        "Essay",
        "Bibliography",
        "Letter of Support",
    ]


def test_internal_files_are_ignored_by_checks(service, sub_info):
    """Files of internal formats neither satisfy requirements nor fail the PDF check."""
    service.process(upload_request(REQUIRED_PDFS[:1] + REQUIRED_PDFS[2:]), sub_info)
    bundle = sub_info.item.get_bundles("ORIGINAL")[0]
    bundle.add_bitstream(Bitstream(id=999, name="license.txt", description="Essay", format_id=2))

    assert service.needed_bitstreams(sub_info.item) == ["Essay"]
    assert service.is_all_pdf(sub_info.item) is True


def test_unknown_format_is_not_pdf(service, sub_info):
    """Files without a known format fail the PDF check."""
    service.process(upload_request([("essay.xyz", b"%PDF", "Essay")]), sub_info)
    assert service.is_all_pdf(sub_info.item) is False


def test_list_needed_bitstreams():
    """The required documents read as an English list."""
    assert list_needed_bitstreams() == (
        "Application Form, Essay, Research Paper, Bibliography, and Letter of Support"
    )


def test_strip_path():
    """Directory prefixes of either slash style are removed."""
    assert strip_path("essay.pdf") == "essay.pdf"
    assert strip_path("/home/jdoe/essay.pdf") == "essay.pdf"
    assert strip_path("C:\\Users\\jdoe\\essay.pdf") == "essay.pdf"
    assert strip_path("mixed/dir\\essay.pdf") == "essay.pdf"


def test_number_of_pages(service):
    """The step is a single progress bar page."""
    assert service.number_of_pages() == 1
