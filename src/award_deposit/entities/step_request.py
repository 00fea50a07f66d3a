"""Framework-neutral view of one upload step request."""

from dataclasses import dataclass, field
from typing import Any

NEXT_BUTTON = "submit_next"

PATH_SUFFIX = "-path"
STREAM_SUFFIX = "-inputstream"
DESCRIPTION_SUFFIX = "-description"


@dataclass(frozen=True)
class StagedUpload:
    """One file staged on the request by the upload layer.

    Attributes:
        field: Form field the file was uploaded as
        path: Client-supplied file path, None if the upload layer lost it
        content: File bytes, None if the upload layer lost them
        description: Description sent with the file
    """

    field: str
    path: str | None
    content: bytes | None
    description: str | None


@dataclass
class StepRequest:
    """Request data seen by the upload step.

    Attributes:
        content_type: The request's Content-Type header
        params: Form/query parameters, each name mapping to all its values
        attributes: Staged upload attributes named ``<field>-path``,
            ``<field>-inputstream`` and ``<field>-description``
    """

    content_type: str | None = None
    params: dict[str, list[str]] = field(default_factory=dict)
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        return self.content_type is not None and "multipart/form-data" in self.content_type

    @property
    def button(self) -> str:
        """Name of the submit button pressed, ``submit_next`` if none."""
        for name in self.params:
            if name.startswith("submit"):
                return name
        return NEXT_BUTTON

    def get(self, name: str) -> str | None:
        values = self.params.get(name)
        return values[0] if values else None

    def get_all(self, name: str) -> list[str]:
        return list(self.params.get(name, []))

    def get_int(self, name: str) -> int:
        """Integer parameter value, -1 when absent or not a number."""
        value = self.get(name)
        if value is None:
            return -1
        try:
            return int(value.strip())
        except ValueError:
            return -1

    def staged_uploads(self) -> list[StagedUpload]:
        uploads = []
        for attr in self.attributes:
            if not attr.endswith(PATH_SUFFIX):
                continue

            name = attr[: -len(PATH_SUFFIX)]
            description = self.attributes.get(name + DESCRIPTION_SUFFIX)
            if not description:
                description = self.get("description")

            uploads.append(
                StagedUpload(
                    field=name,
                    path=self.attributes.get(attr),
                    content=self.attributes.get(name + STREAM_SUFFIX),
                    description=description,
                )
            )
        return uploads
