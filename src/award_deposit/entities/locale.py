"""Locale entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Locale:
    """A language/country/variant triple.

    ``str()`` renders the conventional ``ll_CC_variant`` form, dropping
    empty trailing parts (``en``, ``en_US``, ``de__POSIX``).
    """

    language: str
    country: str = ""
    variant: str = ""

    def __str__(self) -> str:
        if self.variant:
            return f"{self.language}_{self.country}_{self.variant}"
        if self.country:
            return f"{self.language}_{self.country}"
        return self.language

    def as_dict(self) -> dict[str, str]:
        return {
            "language": self.language,
            "country": self.country,
            "variant": self.variant,
            "locale": str(self),
        }
