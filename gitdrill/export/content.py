import logging
import os
import tempfile
from pathlib import Path

from gitdrill.errors import FatalExportError
from gitdrill.repository.models import File

logger = logging.getLogger(__name__)


class DirectoryContentStore:
    """Content-addressed copy of file blobs: root/<object hash>."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.copied = 0

    def copy(self, file: File):
        path = self.root / file.hash
        # Same blob in many commits is stored once
        if path.exists():
            return
        # Read before touching the disk; reader errors are the provider's to raise
        data = file.read()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{file.hash}-", dir=self.root)
        except OSError as e:
            raise FatalExportError(f"Cannot copy {file.name} ({file.hash}) to {path}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            # A partially written blob never appears under its final name
            os.replace(tmp_name, path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise FatalExportError(f"Cannot copy {file.name} ({file.hash}) to {path}: {e}") from e
        self.copied += 1


class NullContentStore:
    def copy(self, file: File):
        pass
