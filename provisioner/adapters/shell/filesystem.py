"""
Filesystem adapter — file and directory operations on the host.

All paths handed to the adapter are absolute host paths
(``/etc/nginx/...``).  They are resolved under ``root``, which is ``/``
on a real run and a scratch directory for ``render`` and in tests.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from provisioner.core.models.template import GeneratedFile

logger = logging.getLogger(__name__)


class FilesystemAdapter:
    """Read, write, link and remove files below a root directory."""

    def __init__(self, root: Path | str = "/"):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        """Map an absolute host path onto the adapter root."""
        return self._root / path.lstrip("/")

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def read_text(self, path: str) -> str | None:
        """Return file content, or None if the file does not exist."""
        target = self.resolve(path)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def write_text(self, path: str, content: str, mode: int = 0o644) -> Path:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        os.chmod(target, mode)
        logger.debug("Written %d bytes to %s", len(content), target)
        return target

    def write_bytes(self, path: str, data: bytes, mode: int = 0o644) -> Path:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        os.chmod(target, mode)
        logger.debug("Written %d bytes to %s", len(data), target)
        return target

    def write_generated(self, generated: GeneratedFile) -> Path:
        return self.write_text(generated.path, generated.content, mode=generated.mode)

    def mkdir(self, path: str) -> Path:
        target = self.resolve(path)
        target.mkdir(parents=True, exist_ok=True)
        return target

    def symlink(self, target: str, link: str) -> None:
        """Point ``link`` at ``target``, replacing whatever is there.

        The link body is the host path, so links created under a scratch
        root still read correctly once copied to a real host.
        """
        link_path = self.resolve(link)
        link_path.parent.mkdir(parents=True, exist_ok=True)
        if link_path.is_symlink() or link_path.exists():
            link_path.unlink()
        link_path.symlink_to(target)

    def readlink(self, path: str) -> str | None:
        """Target of a symlink, or None if ``path`` is not a link."""
        target = self.resolve(path)
        if not target.is_symlink():
            return None
        return os.readlink(target)

    def remove(self, path: str) -> bool:
        """Remove a file or link.  Returns False if nothing was there."""
        target = self.resolve(path)
        if target.is_symlink() or target.is_file():
            target.unlink()
            return True
        return False

    def remove_tree(self, path: str) -> bool:
        """Remove a directory and everything below it."""
        target = self.resolve(path)
        if not target.is_dir() or target.is_symlink():
            return False
        shutil.rmtree(target)
        logger.debug("Removed directory %s", target)
        return True
