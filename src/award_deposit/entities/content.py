"""Content model entities: items, bundles, bitstreams and formats."""

from dataclasses import dataclass, field

ORIGINAL_BUNDLE = "ORIGINAL"
PRESERVATION_BUNDLE = "PRESERVATION"


@dataclass(frozen=True)
class BitstreamFormat:
    """A registered file format.

    Attributes:
        id: Registry identifier
        short_description: Display name, e.g. "Adobe PDF"
        mime_type: MIME type reported for files of this format
        description: Longer human-readable description
        extensions: Lower-case file extensions identifying the format
        internal: Reserved for system use, never accepted as a deposited file
    """

    id: int
    short_description: str
    mime_type: str
    description: str = ""
    extensions: tuple[str, ...] = ()
    internal: bool = False


@dataclass
class Bitstream:
    """A single uploaded file attached to an item.

    Attributes:
        id: Bitstream identifier (also keys the stored content)
        name: File name without any directory prefix
        source: Path as supplied by the client
        description: Free-text description, used to match required categories
        format_id: Identified or chosen format, None when unknown
        user_format_description: Format declared by the user when not in the registry
        size_bytes: Content length
        checksum: Hex digest of the content
        checksum_algorithm: Algorithm used for ``checksum``
    """

    id: int
    name: str = ""
    source: str = ""
    description: str | None = None
    format_id: int | None = None
    user_format_description: str | None = None
    size_bytes: int = 0
    checksum: str = ""
    checksum_algorithm: str = "MD5"


@dataclass
class Bundle:
    """A named group of bitstreams (e.g. ORIGINAL, PRESERVATION)."""

    id: int
    name: str
    bitstreams: list[Bitstream] = field(default_factory=list)
    primary_bitstream_id: int | None = None

    def add_bitstream(self, bitstream: Bitstream) -> None:
        self.bitstreams.append(bitstream)

    def remove_bitstream(self, bitstream: Bitstream) -> None:
        self.bitstreams = [b for b in self.bitstreams if b.id != bitstream.id]
        if self.primary_bitstream_id == bitstream.id:
            self.primary_bitstream_id = None


@dataclass
class Item:
    """The submission's content object being assembled.

    ``version`` counts commits; a commit is refused unless the item was
    loaded from the latest one.
    """

    id: int
    bundles: list[Bundle] = field(default_factory=list)
    submitter: str | None = None
    last_modified: float = 0.0
    version: int = 0

    def get_bundles(self, name: str) -> list[Bundle]:
        return [bundle for bundle in self.bundles if bundle.name == name]

    def add_bundle(self, bundle: Bundle) -> None:
        self.bundles.append(bundle)

    def remove_bundle(self, bundle: Bundle) -> None:
        self.bundles = [b for b in self.bundles if b.id != bundle.id]

    def all_bitstreams(self) -> list[Bitstream]:
        return [bitstream for bundle in self.bundles for bitstream in bundle.bitstreams]

    def find_bitstream(self, bitstream_id: int) -> Bitstream | None:
        for bitstream in self.all_bitstreams():
            if bitstream.id == bitstream_id:
                return bitstream
        return None

    def bundle_of(self, bitstream: Bitstream) -> Bundle | None:
        """Return the first bundle holding the bitstream."""
        for bundle in self.bundles:
            if any(b.id == bitstream.id for b in bundle.bitstreams):
                return bundle
        return None

    def has_uploaded_files(self) -> bool:
        return any(bundle.bitstreams for bundle in self.bundles)
