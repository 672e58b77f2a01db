SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """
    Format a byte count for humans, base 1024, trailing zeros trimmed.

    Examples:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(1536)
        '1.5 KB'
        >>> format_bytes(100 * 1024 * 1024)
        '100 MB'
    """
    if num_bytes <= 0:
        return "0 Bytes"

    decimals = max(decimals, 0)
    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(num_bytes / (1024 ** exponent), decimals)

    # 1.50 -> 1.5, 100.00 -> 100
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"
