"""Staging and category placement of uploaded files on the local filesystem.

Uploads are first streamed into ``public/temp`` under a timestamp-qualified
name, then moved with a single rename into ``public/<category>``. Only the
category directories are ever served, so nothing half-written is visible.
"""
import errno
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Iterable

from app.core.exceptions import (
    FileTooLargeError,
    InvalidCategoryError,
    RelocationError,
    StorageReadError,
    UnsupportedFileTypeError,
    UploadValidationError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
# staged files older than this at startup are leftovers
STAGING_GRACE_SECONDS = 60 * 60


class Category(str, Enum):
    UNITS = "units"
    LESSONS = "lessons"
    TESTS = "tests"

    @classmethod
    def parse(cls, value: str | None) -> "Category":
        if not value:
            raise InvalidCategoryError()
        try:
            return cls(value)
        except ValueError:
            raise InvalidCategoryError(f"Invalid category: {value}") from None


@dataclass(frozen=True)
class StagedFile:
    temp_path: Path
    original_name: str
    assigned_name: str
    size_bytes: int
    mime_type: str


@dataclass(frozen=True)
class StoredFile:
    category: Category
    final_path: Path
    public_url: str
    original_name: str
    assigned_name: str
    size_bytes: int
    mime_type: str


def _base_name(declared_name: str | None) -> str:
    """Last path component of a client-supplied name (either slash style)."""
    return PurePosixPath((declared_name or "").replace("\\", "/")).name


def assign_name(original_name: str, millis: int) -> str:
    """notes.txt -> notes_<millis>.txt"""
    stem, ext = os.path.splitext(original_name)
    return f"{stem}_{millis}{ext}"


def discard(staged: StagedFile) -> None:
    try:
        staged.temp_path.unlink(missing_ok=True)
    except OSError:
        logger.exception("Could not remove staged file %s", staged.temp_path)


class UploadStager:
    """Write incoming bytes to the staging area under the upload policy."""

    def __init__(
        self,
        temp_dir: Path,
        max_bytes: int,
        allowed_mime_types: Iterable[str],
        category_dirs: Iterable[Path] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.temp_dir = Path(temp_dir)
        # final locations a new name must not clash with
        self.category_dirs = tuple(Path(d) for d in category_dirs)
        self.max_bytes = max_bytes
        self.allowed_mime_types = frozenset(m.lower() for m in allowed_mime_types)
        self._clock = clock

    def stage(self, stream: BinaryIO, declared_name: str | None, declared_mime_type: str | None) -> StagedFile:
        original_name = _base_name(declared_name)
        if not original_name:
            raise UploadValidationError()

        mime_type = (declared_mime_type or "").split(";", 1)[0].strip().lower()
        if mime_type not in self.allowed_mime_types:
            logger.info("Rejected %s: type %r not allowed", original_name, mime_type)
            raise UnsupportedFileTypeError()

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        temp_path, fh = self._open_exclusive(original_name)
        size = 0
        try:
            with fh:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise FileTooLargeError(
                            f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
                        )
                    fh.write(chunk)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug("Staged %s as %s (%d bytes)", original_name, temp_path.name, size)
        return StagedFile(
            temp_path=temp_path,
            original_name=original_name,
            assigned_name=temp_path.name,
            size_bytes=size,
            mime_type=mime_type,
        )

    def _open_exclusive(self, original_name: str) -> tuple[Path, BinaryIO]:
        # same name in the same millisecond: bump the timestamp
        millis = int(self._clock() * 1000)
        while True:
            name = assign_name(original_name, millis)
            path = self.temp_dir / name
            if not any((d / name).exists() for d in self.category_dirs):
                try:
                    return path, path.open("xb")
                except FileExistsError:
                    pass
            millis += 1


class CategoryRelocator:
    """Move a staged file into its category directory with one rename."""

    def __init__(self, public_dir: Path) -> None:
        self.public_dir = Path(public_dir)

    def category_dir(self, category: Category) -> Path:
        return self.public_dir / category.value

    def relocate(self, staged: StagedFile, category: str | None) -> StoredFile:
        try:
            target = Category.parse(category)
            final_path = self._move(staged, target)
        except Exception:
            discard(staged)
            raise

        logger.info("Stored %s at %s", staged.original_name, final_path)
        return StoredFile(
            category=target,
            final_path=final_path,
            public_url=f"/{target.value}/{staged.assigned_name}",
            original_name=staged.original_name,
            assigned_name=staged.assigned_name,
            size_bytes=staged.size_bytes,
            mime_type=staged.mime_type,
        )

    def _move(self, staged: StagedFile, category: Category) -> Path:
        target_dir = self.category_dir(category)
        final_path = target_dir / staged.assigned_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            if final_path.exists():
                raise RelocationError(f"{final_path} already exists")
            os.replace(staged.temp_path, final_path)
        except OSError as exc:
            if exc.errno == errno.EXDEV:
                raise RelocationError(
                    f"{staged.temp_path} and {target_dir} are on different devices"
                ) from exc
            raise RelocationError(f"Could not move {staged.temp_path} to {final_path}: {exc}") from exc
        return final_path


def list_category_files(public_dir: Path, folder: str) -> list[str]:
    """Sorted names in a category directory, dotfiles excluded."""
    try:
        category = Category(folder)
    except ValueError:
        raise InvalidCategoryError("Invalid folder") from None

    dir_path = Path(public_dir) / category.value
    try:
        names = os.listdir(dir_path)
    except OSError as exc:
        logger.error("Error reading folder %s: %s", dir_path, exc)
        raise StorageReadError() from exc
    return sorted(name for name in names if not name.startswith("."))


def purge_staging_area(
    temp_dir: Path,
    max_age_seconds: float = STAGING_GRACE_SECONDS,
    clock: Callable[[], float] = time.time,
) -> int:
    """Remove staged files older than the grace period; returns how many were removed.

    Younger files may belong to an upload still in flight in another worker.
    """
    temp_dir = Path(temp_dir)
    if not temp_dir.is_dir():
        return 0
    cutoff = clock() - max_age_seconds
    removed = 0
    for entry in temp_dir.iterdir():
        try:
            if not entry.is_file() or entry.stat().st_mtime > cutoff:
                continue
            entry.unlink(missing_ok=True)
            removed += 1
        except OSError:
            logger.exception("Could not remove stale staged file %s", entry)
    return removed
