import re

from mixarchive.domain import Mix

_ILLEGAL = re.compile(r'[/\?<>\\:\*\|"\x00-\x1f\x80-\x9f]')
_RESERVED = re.compile(r'^\.+$')
_WINDOWS_RESERVED = re.compile(r'^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$', re.IGNORECASE)
_MAX_BYTES = 255


def format_mix(mix: Mix) -> str:
    """Render a mix as the plain-text tracklist stored for each item."""
    top = (
        f"{mix.name}\n"
        f"by {mix.owner}\n"
        f"tags: {', '.join(mix.tags)}\n"
        f"\n"
        f"{mix.notes}\n"
        f"\n"
    )
    bottom = "".join(
        f"{i}. {track.name} by {track.performer}\n"
        for i, track in enumerate(mix.tracks, start=1)
    )
    return top + bottom


def sanitize_filename(name: str, replacement: str = "_", max_bytes: int = _MAX_BYTES) -> str:
    cleaned = _ILLEGAL.sub(replacement, name)
    cleaned = cleaned.rstrip(". ")
    if not cleaned or _RESERVED.match(cleaned) or _WINDOWS_RESERVED.match(cleaned):
        cleaned = replacement + cleaned
    encoded = cleaned.encode("utf-8")[:max_bytes]
    return encoded.decode("utf-8", errors="ignore")


def artifact_key_for(mix: Mix) -> str:
    stem = sanitize_filename(f"{mix.owner}-{mix.name}", max_bytes=_MAX_BYTES - len(".txt"))
    return stem + ".txt"
