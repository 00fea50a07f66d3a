"""Bitstream format registry and extension-based format identification."""

import logging

from award_deposit.entities import BitstreamFormat

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

DEFAULT_FORMATS: tuple[BitstreamFormat, ...] = (
    BitstreamFormat(2, "License", "text/plain", "Item-specific license agreed upon to submission",
                    ("license",), internal=True),
    BitstreamFormat(3, "CC License", "text/html", "Item-specific Creative Commons license agreed upon to submission",
                    ("cclicense",), internal=True),
    BitstreamFormat(4, "Adobe PDF", PDF_MIME_TYPE, "Adobe Portable Document Format", ("pdf",)),
    BitstreamFormat(5, "XML", "text/xml", "Extensible Markup Language", ("xml",)),
    BitstreamFormat(6, "Text", "text/plain", "Plain Text", ("txt", "asc")),
    BitstreamFormat(7, "HTML", "text/html", "Hypertext Markup Language", ("htm", "html")),
    BitstreamFormat(8, "CSS", "text/css", "Cascading Style Sheets", ("css",)),
    BitstreamFormat(9, "Microsoft Word", "application/msword", "Microsoft Word", ("doc",)),
    BitstreamFormat(10, "Microsoft Word XML",
                    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                    "Microsoft Word XML", ("docx",)),
    BitstreamFormat(11, "Microsoft Powerpoint", "application/vnd.ms-powerpoint", "Microsoft Powerpoint",
                    ("ppt",)),
    BitstreamFormat(12, "Microsoft Excel", "application/vnd.ms-excel", "Microsoft Excel", ("xls",)),
    BitstreamFormat(13, "RTF", "text/richtext", "Rich Text Format", ("rtf",)),
    BitstreamFormat(14, "JPEG", "image/jpeg", "Joint Photographic Experts Group/JPEG File Interchange Format",
                    ("jpeg", "jpg")),
    BitstreamFormat(15, "GIF", "image/gif", "Graphics Interchange Format", ("gif",)),
    BitstreamFormat(16, "image/png", "image/png", "Portable Network Graphics", ("png",)),
    BitstreamFormat(17, "TIFF", "image/tiff", "Tag Image File Format", ("tif", "tiff")),
    BitstreamFormat(18, "OpenDocument Text", "application/vnd.oasis.opendocument.text",
                    "OpenDocument Text", ("odt",)),
)


class FormatRegistry:
    """Lookup table of known bitstream formats.

    Identification is by file extension, matched case-insensitively against
    each format's extension list. Files without a matching extension have an
    unknown format (``guess_format`` returns None).

    Example:
        ```python
        registry = FormatRegistry.create()
        registry.guess_format("Essay.PDF").short_description  # "Adobe PDF"
        registry.guess_format("notes.xyz")  # None
        ```
    """

    def __init__(self, formats: tuple[BitstreamFormat, ...] | list[BitstreamFormat]) -> None:
        self._formats = {fmt.id: fmt for fmt in formats}
        self._by_extension: dict[str, BitstreamFormat] = {}
        for fmt in formats:
            for extension in fmt.extensions:
                self._by_extension.setdefault(extension.lower(), fmt)

    @classmethod
    def create(cls, formats: tuple[BitstreamFormat, ...] | None = None) -> "FormatRegistry":
        """Factory method using the built-in formats unless others are given."""
        return cls(formats if formats is not None else DEFAULT_FORMATS)

    def find(self, format_id: int) -> BitstreamFormat | None:
        return self._formats.get(format_id)

    def guess_format(self, filename: str) -> BitstreamFormat | None:
        """Identify a file's format from its extension.

        Args:
            filename: File name (any directory prefix is ignored)

        Returns:
            The matching format, or None when the extension is unknown
        """
        if "." not in filename:
            return None
        extension = filename.rsplit(".", 1)[1].lower()
        fmt = self._by_extension.get(extension)
        logger.debug("guess_format: %s -> %s", filename, fmt.short_description if fmt else None)
        return fmt

    def is_internal(self, format_id: int | None) -> bool:
        """Unknown formats are not internal."""
        if format_id is None:
            return False
        fmt = self._formats.get(format_id)
        return fmt is not None and fmt.internal

    def mime_type(self, format_id: int | None) -> str | None:
        fmt = self._formats.get(format_id) if format_id is not None else None
        return fmt.mime_type if fmt else None

    def non_internal(self) -> list[BitstreamFormat]:
        """Formats a submitter may choose, in registry order."""
        return [fmt for fmt in self._formats.values() if not fmt.internal]

    def __len__(self) -> int:
        return len(self._formats)
