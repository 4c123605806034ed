"""
Link-or-copy placement of skill directories.

`place()` is the only function in skillcast that creates entries inside
agent directories. It tries a symbolic link first and falls back to a full
recursive copy when the host refuses to create links (no privilege,
unsupported filesystem, cross-volume restriction).
"""

from __future__ import annotations

import enum as _enum
import logging as _logging
import os as _os
import pathlib as _pathlib
import shutil as _shutil

import skillcast.errors as errors

_logger = _logging.getLogger(__name__)


class PlaceMethod(_enum.Enum):
    """How a destination was materialized."""

    LINK = "link"
    COPY = "copy"


def clear_destination(dest: _pathlib.Path) -> None:
    """
    Remove whatever occupies `dest`.

    Symbolic links and files are unlinked (a link's target is never
    touched); real directories are deleted recursively. A missing
    destination is not an error.
    """
    try:
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        elif dest.is_dir():
            _shutil.rmtree(dest)
    except FileNotFoundError:
        pass


def create_link(source: _pathlib.Path, dest: _pathlib.Path, *, is_directory: bool = True) -> None:
    """
    Create a symbolic link at `dest` pointing at `source`.

    Relative sources are made absolute first; a relative link target would
    resolve against the link's own directory.

    Raises:
        LinkUnsupportedError: If the host refuses to create the link.
    """
    source = source.absolute()
    try:
        _os.symlink(source, dest, target_is_directory=is_directory)
    except (OSError, NotImplementedError) as e:
        raise errors.LinkUnsupportedError(f"cannot link {dest} -> {source}: {e}") from e


def replace_with_link(
    source: _pathlib.Path, dest: _pathlib.Path, *, is_directory: bool = True
) -> None:
    """
    Point `dest` at `source`, keeping the old `dest` if linking fails.

    The link is built under a hidden staging name next to `dest` and then
    renamed over it.

    Raises:
        LinkUnsupportedError: If the host refuses to create the link. `dest`
            is left untouched.
    """
    staging = dest.with_name(f".{dest.name}.linking")
    clear_destination(staging)
    create_link(source, staging, is_directory=is_directory)
    if dest.is_dir() and not dest.is_symlink():
        clear_destination(dest)
    _os.replace(staging, dest)


def copy_entry(source: _pathlib.Path, dest: _pathlib.Path, *, is_directory: bool = True) -> None:
    """Copy `source` to `dest` (recursively for directories)."""
    if is_directory:
        _shutil.copytree(source, dest)
    else:
        _shutil.copy2(source, dest)


def place(
    source: _pathlib.Path,
    dest: _pathlib.Path,
    *,
    is_directory: bool = True,
    copy: bool = False,
) -> PlaceMethod:
    """
    Materialize `source` at `dest`, replacing anything already there.

    Args:
        source: Existing file or directory to expose.
        dest: Path to create.
        is_directory: Whether `source` is a directory.
        copy: Force a full copy instead of attempting a link.

    Returns:
        PlaceMethod.LINK or PlaceMethod.COPY.
    """
    clear_destination(dest)

    if not copy:
        try:
            create_link(source, dest, is_directory=is_directory)
            _logger.debug("Linked %s -> %s", dest, source)
            return PlaceMethod.LINK
        except errors.LinkUnsupportedError as e:
            _logger.debug("Falling back to copy: %s", e)

    copy_entry(source, dest, is_directory=is_directory)
    _logger.debug("Copied %s -> %s", source, dest)
    return PlaceMethod.COPY
