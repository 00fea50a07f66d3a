#!/usr/bin/env python3
"""
Demo script for award deposit.

This script walks a submission through the upload step with the in-memory
backend and shows how the request locale is resolved.
"""

from award_deposit.entities import StepRequest, SubmissionInfo
from award_deposit.repositories import MemoryContentRepository
from award_deposit.services import (
    LocaleResolver,
    LocaleSources,
    UploadStepService,
    list_needed_bitstreams,
)

MULTIPART = "multipart/form-data; boundary=demo"


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def upload_request(files: list[tuple[str, bytes, str]]) -> StepRequest:
    """Stage files the way the HTTP layer does."""
    request = StepRequest(content_type=MULTIPART, params={"submit_upload": ["Upload"]})
    for i, (path, content, description) in enumerate(files):
        request.attributes[f"file{i}-path"] = path
        request.attributes[f"file{i}-inputstream"] = content
        request.attributes[f"file{i}-description"] = description
    return request


def demo_upload_step() -> None:
    """Demonstrate the upload step outcomes."""
    print_section("Upload Step")

    repository = MemoryContentRepository()
    service = UploadStepService.create(repository=repository)
    sub_info = SubmissionInfo(item=repository.create_item(submitter="demo"))

    print(f"\n📋 Required documents: {list_needed_bitstreams()}")

    result = service.process(StepRequest(params={"submit_next": ["Next"]}), sub_info)
    print(f"\n  Next with no files: {result.name} ({int(result)})")

    batches = [
        [("essay.pdf", b"%PDF-1.4 essay", "Essay")],
        [("form.pdf", b"%PDF-1.4 form", "Application Form"), ("letter.doc", b"letter", "Letter of Support")],
        [("paper.pdf", b"%PDF-1.4 paper", "Research Paper"), ("refs.pdf", b"%PDF-1.4 refs", "Bibliography")],
    ]
    for files in batches:
        result = service.process(upload_request(files), sub_info)
        names = ", ".join(path for path, _, _ in files)
        print(f"\n  Uploaded {names}: {result.name} ({int(result)})")
        needed = service.needed_bitstreams(sub_info.item)
        if needed:
            print(f"    Still needed: {', '.join(needed)}")

    print("\n📦 Bundles:")
    for bundle in sub_info.item.bundles:
        print(f"  {bundle.name}")
        for bitstream in bundle.bitstreams:
            fmt = service.registry.find(bitstream.format_id) if bitstream.format_id else None
            print(f"    #{bitstream.id} {bitstream.name} [{fmt.short_description if fmt else 'unknown'}]")


def demo_locale() -> None:
    """Demonstrate locale resolution."""
    print_section("Locale Resolution")

    resolver = LocaleResolver.create(supported_locales="en, fr, de", default_locale="en")
    attribute = resolver.attribute

    cases = [
        ("nothing", LocaleSources()),
        ("request parameter", LocaleSources(request_parameter="fr")),
        ("unsupported request, cookie", LocaleSources(request_parameter="es", cookies={attribute: "de"})),
        ("browser", LocaleSources(accept_language="pt-BR, de;q=0.8")),
        ("pipeline parameter", LocaleSources(pipeline_parameters={"locale": "fr"}, accept_language="de")),
    ]

    print(f"\n🌍 Supported: {', '.join(str(l) for l in resolver.validator.supported)}")
    for label, sources in cases:
        print(f"  {label:<30} -> {resolver.resolve(sources)}")


def main() -> None:
    """Run all demos."""
    print("\n" + "=" * 70)
    print("  AWARD DEPOSIT DEMO")
    print("=" * 70)

    demo_upload_step()
    demo_locale()

    print_section("Demo Complete")


if __name__ == "__main__":
    main()
