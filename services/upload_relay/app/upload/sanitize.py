"""Normalization of caller-supplied filename and MIME metadata."""

import re

DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_EXTENSION = ".jpg"
DEFAULT_BASENAME = "upload"
MAX_BASENAME_LENGTH = 80

# Substring of the declared subtype -> canonical MIME type, checked in order
_MIME_ALLOWLIST: tuple[tuple[str, str], ...] = (
    ("webp", "image/webp"),
    ("png", "image/png"),
    ("gif", "image/gif"),
    ("bmp", "image/bmp"),
    ("tif", "image/tiff"),
)

_JPEG_COERCED_EXTENSIONS = frozenset({".heic", ".heif", ".heifs"})

_EXTENSION_RE = re.compile(r"\.([a-z0-9]{2,5})\Z", re.IGNORECASE | re.ASCII)
_UNSAFE_RE = re.compile(r"[^a-z0-9\-_.]+")
_DASH_RUN_RE = re.compile(r"-+")
_SEPARATORS = "-_."


def sanitize_mime_type(mime_type: str | None) -> str:
    """Coerce a declared MIME type onto the image allow-list.

    HEIC/HEIF and anything unrecognised become ``image/jpeg``.
    """
    if not mime_type:
        return DEFAULT_MIME_TYPE

    mime_type = mime_type.strip().lower()
    if not mime_type.startswith("image/"):
        return DEFAULT_MIME_TYPE
    if "heic" in mime_type or "heif" in mime_type:
        return DEFAULT_MIME_TYPE

    for needle, canonical in _MIME_ALLOWLIST:
        if needle in mime_type:
            return canonical
    return DEFAULT_MIME_TYPE


def sanitize_filename(filename: str | None, fallback_ext: str = DEFAULT_EXTENSION) -> str:
    """Reduce a caller filename to ``[a-z0-9-_.]``, at most 80 chars plus extension.

    Path components are dropped, HEIC/HEIF extensions become ``.jpg`` and a
    missing extension falls back to ``fallback_ext``. Applying it twice
    returns the same name.
    """
    if not filename:
        filename = DEFAULT_BASENAME + fallback_ext

    # Both separators: browsers on Windows may send full client paths
    name = filename.split("/")[-1].split("\\")[-1]

    match = _EXTENSION_RE.search(name)
    extension = f".{match.group(1).lower()}" if match else fallback_ext
    if extension in _JPEG_COERCED_EXTENSIONS:
        extension = DEFAULT_EXTENSION

    base = name[: match.start()] if match else name
    base = _UNSAFE_RE.sub("-", base.lower())
    base = _DASH_RUN_RE.sub("-", base).strip(_SEPARATORS)
    base = base[:MAX_BASENAME_LENGTH].rstrip(_SEPARATORS)

    return f"{base or DEFAULT_BASENAME}{extension}"
