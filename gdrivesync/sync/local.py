"""Access to the local side of a mirrored tree."""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalFile:
    """Represents a local file with the metadata used for comparison."""

    path: Path
    """Absolute path to the file"""

    mtime_ns: int
    """Last modification time in nanoseconds since the epoch"""

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, file_path: Path) -> "LocalFile":
        """Create LocalFile from a path (symlinks are not followed)."""
        stat = file_path.lstat()
        return cls(path=file_path, mtime_ns=stat.st_mtime_ns)


@dataclass
class LocalChildren:
    """Immediate children of a local directory, ordered by name."""

    dirs: list[Path] = field(default_factory=list)
    files: list[LocalFile] = field(default_factory=list)


class LocalTreeAccessor:
    """Enumerates and mutates the local directory tree.

    Symlinks are treated as files, so deleting a stale symlink never removes
    the target's contents.
    """

    def list_children(self, directory: Path) -> LocalChildren:
        """List the immediate subdirectories and files of a directory.

        A directory that does not exist yet (only possible in dry-run mode)
        has no children. Permission errors propagate: a listing that could
        not be read must not be mistaken for an empty one.

        Args:
            directory: Directory to list

        Returns:
            Children sorted by name
        """
        children = LocalChildren()
        if not directory.exists():
            return children

        for item in sorted(directory.iterdir(), key=lambda p: p.name):
            if item.is_dir() and not item.is_symlink():
                children.dirs.append(item)
            else:
                children.files.append(LocalFile.from_path(item))
        return children

    def create_dir(self, parent: Path, name: str) -> Path:
        """Create a subdirectory; an existing one is reused."""
        path = parent / name
        path.mkdir(exist_ok=True)
        return path

    def delete_dir(self, path: Path) -> None:
        """Delete a directory and everything below it."""
        logger.debug("Removing directory tree %s", path)
        shutil.rmtree(path)

    def delete_file(self, path: Path) -> None:
        """Delete a single file."""
        path.unlink()
