"""Locale resolution for incoming requests.

The locale is looked up in these places, in order, stopping at the first
one that yields a supported locale:

1. Request parameter (``settings.locale_attribute``, "locale-attribute")
2. Session attribute of the same name
3. First cookie of the same name
4. Pipeline parameter "locale"
5. Locales accepted by the browser (Accept-Language, best first)
6. The configured default

Only locales listed in ``settings.supported_locales`` are accepted. With no
allow-list configured, every well-formed locale is. When nothing is found
the configured default is used anyway, so resolution never comes back empty.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from award_deposit.config import settings
from award_deposit.entities import Locale

logger = logging.getLogger(__name__)

PIPELINE_LOCALE_PARAMETER = "locale"

_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2,8}$")
_COUNTRY_RE = re.compile(r"^(?:[A-Za-z]{2}|[0-9]{3})$")
_VARIANT_RE = re.compile(r"^[A-Za-z0-9]+$")


def parse_locale(tag: str | None) -> Locale | None:
    """Parse a locale tag such as ``en``, ``en_US``, ``pt-BR`` or ``de_DE_POSIX``.

    Language is lower-cased and country upper-cased.

    Args:
        tag: The tag to parse

    Returns:
        The locale, or None if the tag is empty or malformed
    """
    if tag is None:
        return None
    parts = [part for part in re.split(r"[_-]", tag.strip()) if part]
    if not parts or len(parts) > 3:
        return None

    language = parts[0]
    country = parts[1] if len(parts) > 1 else ""
    variant = parts[2] if len(parts) > 2 else ""

    if not _LANGUAGE_RE.match(language):
        return None
    if country and not _COUNTRY_RE.match(country):
        return None
    if variant and not _VARIANT_RE.match(variant):
        return None

    return Locale(language.lower(), country.upper(), variant)


def parse_accept_language(header: str | None) -> list[Locale]:
    """Parse an Accept-Language header into locales, most preferred first.

    Entries with ``q=0``, the ``*`` wildcard and malformed tags are skipped.
    Entries of equal quality keep their header order.

    Args:
        header: The raw header value

    Returns:
        Locales ordered by quality
    """
    if not header:
        return []

    weighted = []
    for position, entry in enumerate(header.split(",")):
        tag, _, params = entry.strip().partition(";")
        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality <= 0 or tag.strip() == "*":
            continue
        locale = parse_locale(tag)
        if locale is not None:
            weighted.append((-quality, position, locale))

    return [locale for _, _, locale in sorted(weighted, key=lambda w: (w[0], w[1]))]


class LocaleValidator:
    """Tests locales against the configured allow-list.

    Example:
        ```python
        validator = LocaleValidator.from_config("en, fr")
        validator.test("request", parse_locale("fr"))  # True
        validator.test("request", parse_locale("de"))  # False
        LocaleValidator.from_config(None).test("request", parse_locale("de"))  # True
        ```
    """

    def __init__(self, supported: list[Locale] | None) -> None:
        """Initialize the validator.

        Args:
            supported: Allowed locales, or None to allow every locale
        """
        self._supported = supported

    @classmethod
    def from_config(cls, supported_locales: str | tuple[str, ...] | list[str] | None) -> "LocaleValidator":
        """Build a validator from the "supported locales" setting.

        Args:
            supported_locales: Comma-separated tags (or already split tags),
                None when the setting is absent. An absent, empty or wholly
                unparsable list accepts every locale.

        Returns:
            Configured LocaleValidator
        """
        if supported_locales is None:
            return cls(None)

        if isinstance(supported_locales, str):
            supported_locales = supported_locales.split(",")

        supported = []
        for part in supported_locales:
            locale = parse_locale(part.strip())
            if locale is not None:
                supported.append(locale)
        return cls(supported or None)

    @property
    def supported(self) -> list[Locale] | None:
        return list(self._supported) if self._supported is not None else None

    def test(self, name: str, locale: Locale | None) -> bool:
        """Check a candidate locale.

        Args:
            name: Where the candidate came from (for debugging)
            locale: The candidate

        Returns:
            True if the locale may be used
        """
        if locale is None:
            return False
        if self._supported is None:
            return True
        accepted = locale in self._supported
        if not accepted:
            logger.debug("Rejected %s locale %s: not supported", name, locale)
        return accepted


@dataclass
class LocaleSources:
    """Everything about one request that may name its locale.

    Attributes:
        request_parameter: Value of the locale request parameter
        session_value: Locale stored in the client's session
        cookies: Request cookies
        pipeline_parameters: Parameters configured for the handling route
        accept_language: The Accept-Language header
    """

    request_parameter: str | None = None
    session_value: str | None = None
    cookies: Mapping[str, str] = field(default_factory=dict)
    pipeline_parameters: Mapping[str, str] = field(default_factory=dict)
    accept_language: str | None = None


class LocaleResolver:
    """Resolves the locale of a request through the fallback chain.

    Example:
        ```python
        resolver = LocaleResolver.create(supported_locales="en, fr", default_locale="en")
        locale = resolver.resolve(LocaleSources(request_parameter="fr"))
        locale.as_dict()  # {"language": "fr", "country": "", "variant": "", "locale": "fr"}
        ```
    """

    def __init__(
        self,
        validator: LocaleValidator,
        default_locale: Locale,
        attribute: str,
    ) -> None:
        """Initialize the resolver.

        Args:
            validator: Allow-list check applied to every candidate
            default_locale: Locale used when no candidate is acceptable
            attribute: Name of the request parameter, session attribute
                and cookie carrying the locale
        """
        self._validator = validator
        self._default = default_locale
        self._attribute = attribute

    @classmethod
    def create(
        cls,
        supported_locales: str | tuple[str, ...] | None = None,
        default_locale: str | None = None,
        attribute: str | None = None,
    ) -> "LocaleResolver":
        """Factory method reading unset arguments from settings.

        Args:
            supported_locales: Allow-list. If None, uses settings.
            default_locale: Default tag. If None, uses settings.
            attribute: Locale attribute name. If None, uses settings.

        Returns:
            Configured LocaleResolver

        Raises:
            ValueError: If the default locale tag is malformed
        """
        if supported_locales is None:
            supported_locales = settings.supported_locales
        default_tag = default_locale or settings.default_locale
        default = parse_locale(default_tag)
        if default is None:
            raise ValueError(f"Invalid default locale: {default_tag!r}")

        return cls(
            validator=LocaleValidator.from_config(supported_locales),
            default_locale=default,
            attribute=attribute or settings.locale_attribute,
        )

    @property
    def attribute(self) -> str:
        return self._attribute

    @property
    def default_locale(self) -> Locale:
        return self._default

    @property
    def validator(self) -> LocaleValidator:
        return self._validator

    def find_locale(self, sources: LocaleSources) -> Locale | None:
        """Walk the fallback chain.

        Args:
            sources: The request's locale sources

        Returns:
            The first acceptable locale, or None
        """
        candidates = [
            ("request", sources.request_parameter),
            ("session", sources.session_value),
            ("cookie", sources.cookies.get(self._attribute)),
            ("pipeline", sources.pipeline_parameters.get(PIPELINE_LOCALE_PARAMETER)),
        ]
        for name, tag in candidates:
            if tag is None:
                continue
            locale = parse_locale(tag)
            if self._validator.test(name, locale):
                return locale

        for locale in parse_accept_language(sources.accept_language):
            if self._validator.test("browser", locale):
                return locale

        if self._validator.test("default", self._default):
            return self._default

        return None

    def resolve(self, sources: LocaleSources) -> Locale:
        """Resolve the request locale, falling back to the default.

        Args:
            sources: The request's locale sources

        Returns:
            The locale to use, never None
        """
        locale = self.find_locale(sources)
        if locale is None:
            logger.debug("No locale found, using default")
            locale = self._default

        logger.debug("Found locale: %s", locale)
        return locale
