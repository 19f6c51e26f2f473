"""
Image Uploads

Restaurant logos and menu images are stored under the upload directory
as ``<timestamp>-<sanitized lower-case name>`` and served at /uploads.
"""

import logging
import time
from pathlib import Path

from fastapi import UploadFile
from werkzeug.utils import secure_filename

from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import ValidationFailedError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


def upload_dir() -> Path:
    path = Path(get_settings().upload_directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


def allowed_file(filename: str) -> bool:
    return (
        "." in filename
        and filename.rsplit(".", 1)[1].lower() in get_settings().allowed_image_extensions_list
    )


def build_stored_name(filename: str) -> str:
    """``Nasi Goreng.PNG`` -> ``1718000000000-nasi_goreng.png``"""
    safe = secure_filename(filename).lower()
    if not safe:
        raise ValidationFailedError("Invalid file name")
    return f"{int(time.time() * 1000)}-{safe}"


async def save_image(upload: UploadFile) -> str:
    """
    Validate and store an uploaded image.

    Returns:
        Public URL of the stored file, e.g. ``/uploads/1718000000000-logo.png``

    Raises:
        ValidationFailedError: missing file, disallowed extension, or too large
    """
    settings = get_settings()

    if upload is None or not upload.filename:
        raise ValidationFailedError("No file selected")
    if not allowed_file(upload.filename):
        allowed = ", ".join(settings.allowed_image_extensions_list)
        raise ValidationFailedError(f"Invalid file type. Allowed types: {allowed}")

    content = await upload.read()
    if not content:
        raise ValidationFailedError("Uploaded file is empty")
    if len(content) > settings.max_upload_bytes:
        raise ValidationFailedError(
            f"File too large (max {settings.max_upload_bytes // (1024 * 1024)} MB)"
        )

    stored_name = build_stored_name(upload.filename)
    (upload_dir() / stored_name).write_bytes(content)

    logger.info(f"Stored upload {stored_name} ({len(content)} bytes)")
    return f"{UPLOAD_URL_PREFIX}/{stored_name}"
