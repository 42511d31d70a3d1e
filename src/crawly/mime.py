"""Media type sniffing from payload magic numbers."""

import filetype


def sniff_mime(payload: bytes) -> str | None:
    """Return the media type detected from the payload's leading bytes.

    Text formats (HTML, plain text, JSON) carry no magic number and yield None.
    """
    if not payload:
        return None
    kind = filetype.guess(payload)
    if kind is None:
        return None
    return kind.mime


def is_accepted(mime: str | None, allowed: frozenset[str]) -> bool:
    """Check a sniffed type against the allowed set.

    An empty set accepts everything and an unidentified type is accepted.
    """
    if not allowed or mime is None:
        return True
    return mime.lower() in allowed
