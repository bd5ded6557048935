"""Filesystem storage for workspace documents.

Layout under the storage root::

    {root}/
    └── Workspaces/
        └── {org_slug}/
            └── {workspace_name}/
                └── {...folders}/{file_name}

Blocking filesystem calls run through ``asyncio.to_thread`` so request
handlers never stall the event loop.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from docspace.errors.exceptions import ConflictError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class FileStorage:
    """Reads and writes stored paths relative to a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def initialize(self) -> None:
        """Create the storage root. Idempotent."""
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("Storage root ready at %s", self.root)

    def resolve(self, relative_path: str) -> Path:
        """Map a stored path to an absolute path inside the root."""
        target = (self.root / relative_path).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValidationError(f"Path escapes the storage root: {relative_path}")
        return target

    async def write_new(self, relative_path: str, content: bytes) -> Path:
        """Create a file with exclusive-create semantics.

        Raises ConflictError when something already lives at the path.
        """
        target = self.resolve(relative_path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as fh:
                fh.write(content)

        try:
            await asyncio.to_thread(_write)
        except FileExistsError as exc:
            raise ConflictError(
                f"A file already exists at {relative_path}",
                details={"filepath": relative_path},
            ) from exc
        except OSError as exc:
            raise StorageError(f"Failed to write {relative_path}: {exc}") from exc

        logger.debug("Wrote %d bytes to %s", len(content), relative_path)
        return target

    async def exists(self, relative_path: str) -> bool:
        return await asyncio.to_thread(self.resolve(relative_path).exists)

    async def read_text(self, relative_path: str) -> str:
        target = self.resolve(relative_path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8", errors="replace")
        except OSError as exc:
            raise StorageError(f"Failed to read {relative_path}: {exc}") from exc

    async def delete_file(self, relative_path: str, missing_ok: bool = True) -> bool:
        """Unlink a file. Returns False when it was already gone."""
        target = self.resolve(relative_path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            if not missing_ok:
                raise StorageError(f"File not found: {relative_path}")
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete {relative_path}: {exc}") from exc
        return True

    async def remove_tree(self, relative_path: str) -> bool:
        """Remove a directory and everything below it. Missing is not an error."""
        target = self.resolve(relative_path)
        if not await asyncio.to_thread(target.exists):
            return False
        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except OSError as exc:
            raise StorageError(f"Failed to remove {relative_path}: {exc}") from exc
        return True

    async def rename_dir(self, old_path: str, new_path: str) -> bool:
        """Rename a directory.

        Returns False when the source does not exist. An existing destination
        is an error so that two workspaces never merge on disk.
        """
        source = self.resolve(old_path)
        destination = self.resolve(new_path)

        def _rename() -> bool:
            if not source.is_dir():
                return False
            if destination.exists():
                raise ConflictError(f"Destination folder already exists: {new_path}")
            destination.parent.mkdir(parents=True, exist_ok=True)
            source.rename(destination)
            return True

        try:
            return await asyncio.to_thread(_rename)
        except ConflictError:
            raise
        except OSError as exc:
            raise StorageError(f"Failed to rename {old_path} to {new_path}: {exc}") from exc
