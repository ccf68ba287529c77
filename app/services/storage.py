"""Local storage for uploaded files (profile pictures, POI icons and 3D models)."""

import logging
import secrets
import time
from pathlib import Path, PurePosixPath

from fastapi import Request, UploadFile

from app.core.config import settings
from app.core.errors import BadRequestError

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"
PROFILE_PICTURES_DIR = "profile-pictures"
ICONS_DIR = "icons"
MODELS_DIR = "models"
UPLOAD_SUBDIRS = frozenset({PROFILE_PICTURES_DIR, ICONS_DIR, MODELS_DIR})

ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg", "image/webp"})
# OBJ files are often sent as octet-stream or text/plain.
ALLOWED_MODEL_TYPES = frozenset({"application/octet-stream", "text/plain"})
ALLOWED_MODEL_EXTENSIONS = frozenset({".obj", ".glb", ".fbx"})

_CHUNK_SIZE = 1024 * 1024


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def ensure_upload_dirs() -> None:
    """Create the upload directory tree if missing."""
    for sub in UPLOAD_SUBDIRS:
        (upload_root() / sub).mkdir(parents=True, exist_ok=True)


def _extension(filename: str | None, default: str) -> str:
    return PurePosixPath(filename or "").suffix.lower() or default


def validate_image(upload: UploadFile, label: str = "image") -> None:
    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        raise BadRequestError(f"Invalid {label} file type. Only PNG, JPG, JPEG, WEBP allowed.")


def validate_model(upload: UploadFile) -> None:
    ext = _extension(upload.filename, "")
    if upload.content_type not in ALLOWED_MODEL_TYPES and ext not in ALLOWED_MODEL_EXTENSIONS:
        raise BadRequestError("Invalid model file type. Only OBJ, GLB, FBX files allowed.")


def save_upload(upload: UploadFile, subdir: str, max_bytes: int, default_ext: str = "") -> str:
    """
    Copy the upload under UPLOAD_DIR/subdir with a unique name and return its relative URL.

    The partial file is removed when the size limit is exceeded.
    """
    directory = upload_root() / subdir
    directory.mkdir(parents=True, exist_ok=True)
    filename = (
        f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        f"{_extension(upload.filename, default_ext)}"
    )
    target = directory / filename
    written = 0
    upload.file.seek(0)
    with target.open("wb") as out:
        while chunk := upload.file.read(_CHUNK_SIZE):
            written += len(chunk)
            if written > max_bytes:
                break
            out.write(chunk)
    if written > max_bytes:
        target.unlink(missing_ok=True)
        raise BadRequestError(f"File size must not exceed {max_bytes // (1024 * 1024)} MB.")
    return f"{UPLOADS_URL_PREFIX}/{subdir}/{filename}"


def stored_path(relative_url: str | None) -> Path | None:
    """
    Map a URL written by save_upload back to its file, or None.

    Only /uploads/<known subdir>/<file name> qualifies; any other URL (external,
    nested, or with . or .. segments) never resolves to a path.
    """
    if not relative_url or not relative_url.startswith(f"{UPLOADS_URL_PREFIX}/"):
        return None
    parts = PurePosixPath(relative_url).parts
    if len(parts) != 4 or parts[2] not in UPLOAD_SUBDIRS or parts[3] in (".", ".."):
        return None
    root = upload_root().resolve()
    path = (root / parts[2] / parts[3]).resolve()
    if not path.is_relative_to(root):
        return None
    return path


def delete_upload(relative_url: str | None) -> None:
    """Remove a file previously stored by save_upload; any other URL is ignored."""
    path = stored_path(relative_url)
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not delete stored file", extra={"path": str(path)})


def to_absolute_url(request: Request, url: str | None) -> str | None:
    """Render a stored relative URL as absolute using the request's scheme and host."""
    if not url:
        return None
    if url.startswith("http://") or url.startswith("https://"):
        return url
    origin = f"{request.url.scheme}://{request.url.netloc}"
    return f"{origin}{'' if url.startswith('/') else '/'}{url}"
