"""Syntactic validation of catalog references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar

from .exceptions import InvalidReferenceError


@dataclass(frozen=True)
class ParsedReference:
    """A reference that is well-formed, whatever it points to."""

    kind: str  # Catalog-side kind: "track", "playlist", "album", ...
    id: str

    @property
    def uri(self) -> str:
        return f"spotify:{self.kind}:{self.id}"

    def __repr__(self) -> str:
        return f"ParsedReference(kind={self.kind!r}, id={self.id!r})"


class ReferenceParser:
    """Parses open.spotify.com URLs and spotify: URIs."""

    KINDS: ClassVar[str] = "track|playlist|album|artist|episode|show"

    URL_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"^https?://open\.spotify\.com/"
        r"(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?"  # Localized links
        r"(?:user/[^/]+/)?"  # Legacy user-scoped playlists
        rf"({KINDS})/([A-Za-z0-9]+)/?"
        r"(?:[?#].*)?$",
        re.IGNORECASE,
    )

    URI_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"^spotify:(?:user:[^:]+:)?"
        rf"({KINDS}):([A-Za-z0-9]+)$",
        re.IGNORECASE,
    )

    def parse(self, reference: Any) -> ParsedReference:
        """Validate ``reference`` and split it into kind and ID.

        Raises:
            InvalidReferenceError: if the reference is missing, not a string,
                or not a catalog URL/URI.
        """
        if reference is None or (isinstance(reference, str) and not reference.strip()):
            raise InvalidReferenceError("No catalog reference given", reference=reference)
        if not isinstance(reference, str):
            raise InvalidReferenceError(
                f"Catalog reference must be a string, got {type(reference).__name__}",
                reference=reference,
            )

        value = reference.strip()
        match = self.URL_PATTERN.match(value) or self.URI_PATTERN.match(value)
        if not match:
            raise InvalidReferenceError(
                f"Not a catalog URL or URI: {value!r}",
                reference=reference,
            )

        return ParsedReference(kind=match.group(1).lower(), id=match.group(2))

    def is_valid(self, reference: Any) -> bool:
        """Whether ``reference`` is well-formed."""
        try:
            self.parse(reference)
        except InvalidReferenceError:
            return False
        return True


_parser = ReferenceParser()


def parse_reference(reference: Any) -> ParsedReference:
    """Parse a catalog reference with the shared parser."""
    return _parser.parse(reference)
