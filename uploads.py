import logging
import os
import random
import time

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

# Multipart field the post form attaches its cover image under
UPLOAD_FIELD = "file"


def generate_filename(original: str) -> str:
    """photo-<ms timestamp>-<random 0..1e9>.<original extension>

    Collisions are possible in principle and not checked against the disk.
    """
    ext = secure_filename((original or "").rsplit(".", 1)[-1]) or "bin"
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"photo-{suffix}.{ext}"


class FileIntake:
    def __init__(self, upload_folder: str):
        self.upload_folder = upload_folder

    def ensure_folder(self) -> None:
        os.makedirs(self.upload_folder, exist_ok=True)

    def path_for(self, filename: str) -> str:
        return os.path.join(self.upload_folder, filename)

    def save(self, file: FileStorage) -> str:
        """Store the upload and return its new filename, or "" when nothing was sent."""
        if file is None or not file.filename:
            return ""
        self.ensure_folder()
        filename = generate_filename(file.filename)
        file.save(self.path_for(filename))
        logger.info("Stored upload %s as %s", file.filename, filename)
        return filename
