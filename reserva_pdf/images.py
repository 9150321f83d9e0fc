"""
Image normalization
-------------------
Turns an image reference (remote URL, site-relative path, inline base64
payload or image-library id) into bytes the PDF canvas can embed, as either
JPEG or PNG. Formats are sniffed from magic bytes, never from names or
declared MIME types. WEBP payloads are transcoded to JPEG.
"""
import base64
import binascii
import io
import logging
from typing import NamedTuple
from urllib.parse import urljoin

import requests
from PIL import Image as PILImage

from . import config

logger = logging.getLogger(__name__)

JPEG = "JPEG"
PNG = "PNG"
WEBP = "WEBP"

NATIVE_FORMATS = (JPEG, PNG)

_PNG_SIG = b"\x89PNG\r\n\x1a\n"
_JPEG_SIG = b"\xff\xd8\xff"


class ImageUnavailable(Exception):
    """The reference could not be turned into an embeddable image."""


class PreparedImage(NamedTuple):
    data: bytes
    format: str


# ── signature sniffing ─────────────────────────────────────────────────────────
def sniff_format(data):
    if not data:
        return None
    if data.startswith(_JPEG_SIG):
        return JPEG
    if data.startswith(_PNG_SIG):
        return PNG
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    return None


# ── raster surface helpers ─────────────────────────────────────────────────────
def _flatten(img):
    """Return an RGB copy of img, compositing any alpha onto white."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        bg = PILImage.new("RGB", img.size, (255, 255, 255))
        bg.paste(img, mask=img.getchannel("A"))
        return bg
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def check_decodable(data):
    """Fully decode data with Pillow; raise ImageUnavailable if that fails."""
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            img.load()
    except (OSError, ValueError, PILImage.DecompressionBombError) as exc:
        raise ImageUnavailable(f"cannot decode image: {exc}") from exc


def reencode_jpeg(data, quality=None):
    """Decode any Pillow-readable payload and re-encode it as JPEG."""
    q = config.JPEG_QUALITY if quality is None else quality
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            img.load()
            rgb = _flatten(img)
            out = io.BytesIO()
            rgb.save(out, "JPEG", quality=q)
    except (OSError, ValueError, PILImage.DecompressionBombError) as exc:
        raise ImageUnavailable(f"cannot decode image: {exc}") from exc
    return out.getvalue()


# ── reference resolution ───────────────────────────────────────────────────────
def _is_remote(ref):
    return ref.lower().startswith(("http://", "https://"))


def _decode_data_url(ref):
    header, sep, payload = ref.partition(",")
    if not sep:
        raise ImageUnavailable("malformed data URL")
    if ";base64" not in header.lower():
        raise ImageUnavailable("data URL is not base64 encoded")
    return _b64(payload)


def _b64(payload):
    cleaned = payload.replace("\n", "").replace("\r", "").replace(" ", "")
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageUnavailable(f"invalid base64 payload: {exc}") from exc


def _inline_payload(ref):
    """Bytes of a bare base64 payload, or None when ref is not one."""
    try:
        data = _b64(ref)
    except ImageUnavailable:
        return None
    return data if sniff_format(data) else None


def fetch_url(url, timeout=None):
    """Single GET; no retries."""
    resp = requests.get(url, timeout=timeout if timeout is not None else config.IMAGE_TIMEOUT)
    resp.raise_for_status()
    return resp.content


def resolve_reference(reference, library=None):
    """Map an image-library id to its URL; other references pass through."""
    if library:
        for entry in library:
            if entry.id == reference:
                return entry.url
    return reference


def _acquire(ref, fetch, base_url):
    """Return (bytes, fetched) for a reference."""
    if ref.lower().startswith("data:"):
        return _decode_data_url(ref), False
    if _is_remote(ref):
        return fetch(ref), True
    data = _inline_payload(ref)
    if data is not None:
        return data, False
    if ref.startswith(("/", "./", "../")):
        if not base_url:
            raise ImageUnavailable(f"no asset base URL for site-relative path {ref!r}")
        return fetch(urljoin(base_url, ref)), True
    raise ImageUnavailable(f"unrecognized image reference {ref[:40]!r}")


def prepare(reference, library=None, fetch=None, base_url=None):
    """
    Normalize one image reference into a PreparedImage whose format is JPEG or PNG.

    Fetched images are redrawn and re-encoded as JPEG. Inline payloads are
    decoded once as a check and kept byte-for-byte, unless they sniff as
    WEBP, which is transcoded.
    Raises ImageUnavailable for every recoverable failure.
    """
    ref = (reference or "").strip()
    if not ref:
        raise ImageUnavailable("empty image reference")
    ref = resolve_reference(ref, library)
    fetch = fetch or fetch_url
    base = config.ASSET_BASE_URL if base_url is None else base_url

    try:
        data, fetched = _acquire(ref, fetch, base)
    except (requests.RequestException, OSError) as exc:
        raise ImageUnavailable(f"fetch failed: {exc}") from exc

    if fetched:
        data = reencode_jpeg(data)

    fmt = sniff_format(data)
    if fmt == WEBP:
        return PreparedImage(reencode_jpeg(data), JPEG)
    if fmt in NATIVE_FORMATS:
        if not fetched:
            check_decodable(data)
        return PreparedImage(data, fmt)
    raise ImageUnavailable("unknown image signature")


def try_prepare(reference, library=None, fetch=None, base_url=None):
    """prepare(), with failures logged and reported as None."""
    if not reference:
        return None
    try:
        return prepare(reference, library=library, fetch=fetch, base_url=base_url)
    except ImageUnavailable as exc:
        logger.warning("Image unavailable (%s): %s", _short(reference), exc)
        return None


def _short(ref):
    ref = str(ref)
    return ref if len(ref) <= 60 else ref[:57] + "..."
