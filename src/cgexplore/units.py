"""Human-readable byte counts."""

UNITS: list[tuple[str, int]] = [
    ("B", 1),
    ("KB", 1024),
    ("MB", 1024**2),
    ("GB", 1024**3),
    ("TB", 1024**4),
    ("PB", 1024**5),
    ("EB", 1024**6),
]


def is_decimal(text: str) -> bool:
    """Check if text is a plain ASCII decimal number that int() accepts."""
    return text.isascii() and text.isdecimal()


def _to_int(value: int | str | None) -> int | None:
    """Convert a byte count or raw file content to an int, None if not numeric."""
    if isinstance(value, int):
        return value
    if value is None:
        return None
    text = value.strip()
    if not is_decimal(text):
        return None
    return int(text)


def format_bytes(value: int | str | None) -> str:
    """
    Format a byte count as a human-readable string.

    Accepts an int or the raw content of an interface file. Returns an empty
    string for 0 and for anything that is not a non-negative integer (such as
    the literal 'max'), so callers can drop the parenthetical.
    """
    size = _to_int(value)
    if not size or size < 0:
        return ""

    for unit, threshold in UNITS:
        if size < 1024 * threshold:
            return f"{size / threshold:.2f} {unit}"
    unit, threshold = UNITS[-1]
    return f"{size / threshold:.2f} {unit}"
