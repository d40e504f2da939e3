from __future__ import annotations

import io
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

from ..core.constants import AVATAR_EXTENSIONS, AVATAR_MAX_BYTES, DEFAULT_AVATAR_URL
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_FORMATS_BY_EXT = {"jpg": "JPEG", "jpeg": "JPEG", "png": "PNG"}


@dataclass(frozen=True)
class AvatarUpload:
    filename: str
    content: bytes


class AvatarStorage:
    """Stores profile pictures on local disk and maps them to public URLs."""

    def __init__(self, upload_dir: str | Path, *, public_prefix: str = "/uploads/avatars", max_bytes: int = AVATAR_MAX_BYTES):
        self._dir = Path(upload_dir)
        self._prefix = public_prefix.rstrip("/")
        self._max_bytes = int(max_bytes)

    @property
    def directory(self) -> Path:
        return self._dir

    def _extension(self, filename: str) -> str:
        name = secure_filename(filename or "")
        ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
        if ext not in AVATAR_EXTENSIONS:
            raise ValidationError("File upload only supports images (jpg/jpeg/png)!")
        return ext

    def _verify_image(self, content: bytes, ext: str) -> None:
        try:
            with Image.open(io.BytesIO(content)) as img:
                fmt = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError):
            raise ValidationError("Uploaded file is not a valid image")
        if fmt != _FORMATS_BY_EXT[ext]:
            raise ValidationError("Image content does not match its extension")

    def save(self, *, user_id: int, upload: AvatarUpload) -> str:
        ext = self._extension(upload.filename)
        if not upload.content:
            raise ValidationError("No file uploaded")
        if len(upload.content) > self._max_bytes:
            raise ValidationError(f"Upload failed: file too large. Max size is {self._max_bytes // 1_000_000}MB.")
        self._verify_image(upload.content, ext)

        self._dir.mkdir(parents=True, exist_ok=True)
        filename = f"avatar-{int(user_id)}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.{ext}"
        (self._dir / filename).write_bytes(upload.content)
        return f"{self._prefix}/{filename}"

    def path_for_url(self, url: Optional[str]) -> Optional[Path]:
        if not url or url == DEFAULT_AVATAR_URL or not url.startswith(self._prefix + "/"):
            return None
        name = secure_filename(url[len(self._prefix) + 1:])
        return self._dir / name if name else None

    def delete(self, url: Optional[str]) -> None:
        path = self.path_for_url(url)
        if path and path.exists():
            path.unlink()
            logger.info("old avatar %s removed", path.name)
