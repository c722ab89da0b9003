import asyncio
import io
import logging
import os
import tempfile
import time
import uuid
from typing import Optional, Tuple

import aiohttp
from PIL import Image

from core.exceptions import EmptyImageError, FetchError


logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


def mime_type_for_path(path: str) -> str:
    """Infer an image MIME type from a file extension, defaulting to JPEG."""
    ext = os.path.splitext(path)[1][1:]
    return f"image/{ext}" if ext else DEFAULT_MIME_TYPE


async def fetch_image_bytes(url: str) -> Tuple[bytes, Optional[str]]:
    """Download an image and return its bytes with the declared content type."""
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as resp:
            if not resp.ok:
                raise FetchError(f"Failed to fetch image: {resp.status} {resp.reason or ''}".strip())
            data = await resp.read()
            return data, resp.headers.get("Content-Type")


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _frame_path() -> str:
    return os.path.join(tempfile.gettempdir(), f"gif_frame_{time.time_ns()}_{uuid.uuid4().hex[:8]}.png")


def _write_first_frame(gif_bytes: bytes, dest: str) -> None:
    with Image.open(io.BytesIO(gif_bytes)) as img:
        img.seek(0)
        img.convert("RGBA").save(dest, format="PNG")


async def extract_first_gif_frame(gif_ref: str) -> bytes:
    """Return the first frame of a GIF (local path or URL) as PNG bytes.

    The frame goes through a uniquely named temp file which is always removed,
    including when decoding or reading it back fails.
    """
    if os.path.isfile(gif_ref):
        gif_bytes = _read_file(gif_ref)
    else:
        gif_bytes, _ = await fetch_image_bytes(gif_ref)

    if not gif_bytes:
        raise EmptyImageError(f"GIF resolved to zero bytes: {gif_ref}")

    path = _frame_path()
    try:
        await asyncio.to_thread(_write_first_frame, gif_bytes, path)
        return _read_file(path)
    finally:
        if os.path.exists(path):
            os.remove(path)


async def load_image_data(image_ref: str) -> Tuple[bytes, str]:
    """Resolve an image path or URL to raw bytes and a MIME type.

    - ``*.gif``: first frame only, returned as PNG
    - existing local file: read from disk, MIME from the extension
    - anything else: HTTP GET, MIME from the response headers
    """
    if image_ref.lower().endswith(".gif"):
        data = await extract_first_gif_frame(image_ref)
        mime_type = "image/png"
    elif os.path.isfile(image_ref):
        data = _read_file(image_ref)
        mime_type = mime_type_for_path(image_ref)
    else:
        data, content_type = await fetch_image_bytes(image_ref)
        mime_type = content_type or DEFAULT_MIME_TYPE

    if not data:
        raise EmptyImageError(f"Image resolved to zero bytes: {image_ref}")

    logger.debug(f"[ImageLoader] Loaded {len(data)} bytes ({mime_type}) from {image_ref}")
    return data, mime_type
