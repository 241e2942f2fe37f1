import re
import secrets
import string

from ._exception import FileRangeNotSatisfiableError

MAX_FILE_NAME_LENGTH = 255

_ALPHANUMERIC = string.ascii_letters + string.digits
_NAMED_PREFIX_LENGTH = 8
_UNNAMED_PREFIX_LENGTH = 10
_MAX_SLUG_LENGTH = MAX_FILE_NAME_LENGTH - _NAMED_PREFIX_LENGTH - 1

_BYTE_RANGE_RE = re.compile(r"bytes\s*=\s*(\d*)\s*-\s*(\d*)", re.IGNORECASE)


def make_random_string(length: int, /) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def clean_filename(filename: str, /) -> str:
    """Turns a client-supplied file name into a URL-safe slug.

    The name is lowercased, ASCII letters, digits and periods are kept, and
    every run of other characters becomes a single "-". Leading and trailing
    "-" are dropped.
    """
    slug: list[str] = []
    previous_dash = False

    for c in filename.lower():
        if c.isascii() and (c.isalnum() or c == "."):
            slug.append(c)
            previous_dash = False
        elif not previous_dash:
            slug.append("-")
            previous_dash = True

    return "".join(slug).strip("-")


def make_stored_name(filename: str | None, /) -> str:
    if filename is not None:
        # Long names keep their tail so the extension survives.
        slug = clean_filename(filename)[-_MAX_SLUG_LENGTH:].lstrip("-")
        if slug:
            return f"{make_random_string(_NAMED_PREFIX_LENGTH)}-{slug}"

    return f"{make_random_string(_UNNAMED_PREFIX_LENGTH)}-upload"


def parse_byte_range(header: str, /, *, size: int) -> tuple[int, int] | None:
    """Parses a single-range Range header into inclusive (first, last) offsets.

    Returns None when the header should be ignored (malformed, another unit,
    several ranges) and raises FileRangeNotSatisfiableError when the range
    does not overlap a file of the given size.
    """
    match = _BYTE_RANGE_RE.fullmatch(header.strip())
    if match is None:
        return None

    first, last = match.groups()
    if not first and not last:
        return None

    if not first:
        suffix_length = int(last)
        if suffix_length == 0 or size == 0:
            raise FileRangeNotSatisfiableError(size)
        return max(size - suffix_length, 0), size - 1

    first_byte = int(first)
    if last and int(last) < first_byte:
        return None
    if first_byte >= size:
        raise FileRangeNotSatisfiableError(size)

    last_byte = min(int(last), size - 1) if last else size - 1
    return first_byte, last_byte
