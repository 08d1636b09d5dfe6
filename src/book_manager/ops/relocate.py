"""File relocation: template naming, move into the output dir, ownership."""

from __future__ import annotations

import errno
import filecmp
import os
import shutil
from pathlib import Path

from loguru import logger

from ..errors import DestinationExistsError, RelocationError, SourceMissingError
from ..models import FILENAME_TEMPLATE, BookMetadata, Owner

log = logger.bind(stage="relocate")

# link() errors meaning "this filesystem has no hard links"
_NO_HARDLINK_ERRNOS = {errno.EPERM, errno.EOPNOTSUPP, errno.ENOTSUP, errno.EMLINK}


def build_filename(metadata: BookMetadata, template: str = FILENAME_TEMPLATE) -> str:
    """Substitute metadata into the template (no escaping, extension excluded)."""
    return (
        template.replace("{title}", metadata.title)
        .replace("{author}", metadata.author)
        .replace("{year}", metadata.year)
    )


def destination_for(path: Path, metadata: BookMetadata, out_path: Path) -> Path:
    """Destination file path in out_path, keeping the source extension.

    Raises RelocationError if the built name would leave out_path (path
    separators, "." or "..", NUL); delimiters like "(" and "-" pass through.
    """
    name = build_filename(metadata) + path.suffix
    dest = out_path / name
    unsafe = (
        name in (".", "..")
        or os.sep in name
        or (os.altsep is not None and os.altsep in name)
        or "\0" in name
    )
    if unsafe or dest.parent != out_path:
        raise RelocationError(f"unsafe destination name {name!r}", path, dest)
    return dest


def move_file(source: Path, dest: Path) -> Path:
    """Move source to dest without overwriting an existing file.

    The destination is claimed atomically with a hard link (or an exclusive
    create for cross-device copies), so two moves racing for one name can't
    replace each other. Filesystems without hard links fall back to a plain
    rename after an existence check, which is not race-free.

    Fails with SourceMissingError if source is gone (e.g. already moved) and
    DestinationExistsError if dest is occupied.
    """
    if not source.is_file():
        raise SourceMissingError("source file does not exist", source, dest)
    if dest.exists():
        raise DestinationExistsError("destination already exists", source, dest)

    try:
        os.link(source, dest)
    except FileExistsError as e:
        raise DestinationExistsError("destination already exists", source, dest) from e
    except OSError as e:
        if e.errno == errno.EXDEV:
            return _copy_across_devices(source, dest)
        if e.errno not in _NO_HARDLINK_ERRNOS:
            raise RelocationError(f"link failed ({e.strerror})", source, dest) from e
        return _rename(source, dest)

    try:
        source.unlink()
    except OSError as e:
        dest.unlink(missing_ok=True)
        raise RelocationError(f"unlink failed ({e.strerror})", source, dest) from e
    return dest


def _rename(source: Path, dest: Path) -> Path:
    log.debug(f"Hard links unsupported, renaming {source.name}")
    try:
        os.rename(source, dest)
    except OSError as e:
        raise RelocationError(f"rename failed ({e.strerror})", source, dest) from e
    return dest


def _copy_across_devices(source: Path, dest: Path) -> Path:
    """Exclusive-create dest, copy, verify contents, then delete source."""
    log.debug(f"Cross-device move, copying {source.name}")
    try:
        with open(source, "rb") as src_fh, open(dest, "xb") as dest_fh:
            shutil.copyfileobj(src_fh, dest_fh)
    except FileExistsError as e:
        raise DestinationExistsError("destination already exists", source, dest) from e
    except OSError as e:
        dest.unlink(missing_ok=True)
        raise RelocationError(f"copy failed ({e.strerror})", source, dest) from e

    try:
        shutil.copystat(source, dest)
        if not filecmp.cmp(source, dest, shallow=False):
            dest.unlink(missing_ok=True)
            raise RelocationError("copied file does not match source", source, dest)
        source.unlink()
    except OSError as e:
        if source.exists():
            dest.unlink(missing_ok=True)
        raise RelocationError(f"copy failed ({e.strerror})", source, dest) from e

    return dest


def apply_owner(dest: Path, owner: Owner | None) -> None:
    """chown dest to owner; no-op when owner is None."""
    if owner is None:
        return
    log.debug(f"chown {owner.uid}:{owner.gid} {dest}")
    try:
        os.chown(dest, owner.uid, owner.gid)
    except OSError as e:
        raise RelocationError(f"chown failed ({e.strerror})", dest, dest) from e


def relocate(
    path: Path,
    metadata: BookMetadata,
    out_path: Path,
    owner: Owner | None = None,
    dry_run: bool = False,
) -> Path:
    """Move path into out_path under its template name and apply ownership.

    Returns the destination path (the planned one in dry-run mode).
    """
    dest = destination_for(path, metadata, out_path)

    if dry_run:
        log.info(f"[DRY-RUN] Would write {dest}")
        return dest

    log.info(f"Writing {dest}")
    move_file(path, dest)
    apply_owner(dest, owner)
    return dest
