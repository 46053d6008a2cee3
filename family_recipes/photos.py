from __future__ import annotations

import base64
from typing import Optional

from werkzeug.datastructures import FileStorage

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

_MIMETYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
}


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def allowed_image(filename: Optional[str]) -> bool:
    return _extension(filename) in ALLOWED_IMAGE_EXTENSIONS


def has_upload(image: Optional[FileStorage]) -> bool:
    return bool(image and image.filename)


def read_photo(image: Optional[FileStorage]) -> Optional[str]:
    """Read an uploaded image into a ``data:`` URL, or ``None`` if nothing was sent."""

    if not has_upload(image):
        return None

    image.stream.seek(0)
    payload = base64.b64encode(image.stream.read()).decode("ascii")
    mimetype = image.mimetype
    if not mimetype or not mimetype.startswith("image/"):
        mimetype = _MIMETYPES[_extension(image.filename)]
    return f"data:{mimetype};base64,{payload}"


__all__ = ["ALLOWED_IMAGE_EXTENSIONS", "allowed_image", "has_upload", "read_photo"]
