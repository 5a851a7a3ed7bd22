"""Display formatting helpers."""

SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(size: int, decimals: int = 2) -> str:
    """Render a byte count with a base-1024 unit, e.g. 1536 -> "1.5 KB".

    Trailing zeros are dropped ("1 KB", not "1.00 KB").
    """
    if size <= 0:
        return "0 Bytes"
    decimals = max(decimals, 0)

    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1

    text = f"{size / 1024**exponent:.{decimals}f}"
    if decimals:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"
