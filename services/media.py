"""
Local media storage for avatars and cover images.

Uploaded files are written under MEDIA_ROOT with a unique, sanitized name and
served back from MEDIA_URL_PREFIX. upload() returns None when there is nothing
to store or the write fails, and callers decide whether that is an error.
"""
from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


class LocalMediaStore:
    def __init__(self, root: str, url_prefix: str = "/media"):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, file) -> Optional[str]:
        """Store a Werkzeug FileStorage and return its public URL."""
        if file is None or not getattr(file, "filename", ""):
            return None
        name = secure_filename(file.filename)
        suffix = Path(name).suffix.lower()
        if suffix not in ALLOWED_EXTENSIONS:
            logger.info("rejected upload %r: unsupported extension", file.filename)
            return None

        stored_name = f"{uuid.uuid4().hex}{suffix}"
        try:
            file.save(self.root / stored_name)
        except OSError:
            logger.exception("could not store upload %r", file.filename)
            return None
        logger.info("stored upload %s", stored_name)
        return f"{self.url_prefix}/{stored_name}"

    def path_for(self, url: str) -> Optional[Path]:
        """Map a URL produced by upload() back to the file on disk."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        return self.root / url[len(self.url_prefix) + 1:]
