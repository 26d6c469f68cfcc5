"""Small formatting helpers."""


def format_duration(total_seconds: float) -> str:
    """Render a duration as ``1d 2h 3m 4s``, omitting leading zero units."""
    seconds = int(total_seconds)
    parts: list[str] = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60)):
        if parts or seconds >= size:
            value, seconds = divmod(seconds, size)
            parts.append(f"{value}{unit}")
    parts.append(f"{seconds}s")
    return " ".join(parts)
