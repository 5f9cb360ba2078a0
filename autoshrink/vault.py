"""Local directory vault: the folder being watched is the document store."""

import logging
import os
from pathlib import Path
from typing import Optional

from . import config
from .plugin_api import FileHandle, Vault, VaultError

logger = logging.getLogger(__name__)


class FolderVault(Vault):
    """
    Vault backed by a directory on disk.

    Writes go to a temporary sibling and are renamed over the target, so a
    failed write never leaves a half-written image behind. The rename shows
    up as a new file at the target path, which is the echo the guard absorbs.
    """

    echoes_writes = True

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if target != self.root and self.root not in target.parents:
            raise VaultError("Path escapes the vault root", path)
        return target

    def relative(self, path: Path) -> Optional[str]:
        """Vault-relative POSIX path for an absolute path, or None if outside."""
        try:
            return Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def read_binary(self, handle: FileHandle) -> bytes:
        target = self.resolve(handle.path)
        try:
            return target.read_bytes()
        except OSError as e:
            raise VaultError(f"Read failed: {e}", handle.path) from e

    def write_binary(self, path: str, data: bytes) -> None:
        target = self.resolve(path)
        tmp = target.with_name(target.name + config.TMP_SUFFIX)
        try:
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as e:
            try:
                if tmp.exists():
                    tmp.unlink()
            except OSError:
                logger.debug(f"Could not remove temporary file {tmp}")
            raise VaultError(f"Write failed: {e}", path) from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")
