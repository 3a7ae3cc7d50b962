"""Path validators that keep every filesystem access inside the trust boundary."""

import os
from pathlib import Path
from typing import Optional, Union

from glance.errors import ConfigurationError, NotFoundError, PathTypeError, SecurityError

PathLike = Union[str, "os.PathLike[str]"]


def establish_boundary(path: Optional[PathLike]) -> Path:
    """
    Resolve the trust boundary for a run.

    The boundary is made absolute and symlink-resolved exactly once; every
    later validation compares against this value.

    Args:
        path: Directory supplied by the user

    Returns:
        The resolved boundary directory

    Raises:
        ConfigurationError: If the value is empty, missing, or not a directory
    """
    if path is None or not str(path).strip():
        raise ConfigurationError(
            "Target directory is empty",
            suggestion="pass the directory to summarize as the first argument",
        )

    absolute = os.path.abspath(os.path.normpath(os.fspath(path)))
    resolved = Path(os.path.realpath(absolute))

    if not resolved.exists():
        raise ConfigurationError(f"Target directory does not exist: {display_path(path)}")
    if not resolved.is_dir():
        raise ConfigurationError(f"Target path is a file, not a directory: {display_path(path)}")
    return resolved


def is_within(path: Path, boundary: Path) -> bool:
    """Component-wise containment check (``/root-evil`` is not inside ``/root``)."""
    return path == boundary or boundary in path.parents


def validate_path(
    path: PathLike,
    boundary: Path,
    expect_dir: Optional[bool] = None,
    must_exist: bool = True,
) -> Path:
    """
    Validate a path against the trust boundary.

    Steps:
    - Clean the path lexically and make it absolute
    - Resolve symlinks. For a path that does not exist yet, the deepest
      existing ancestor is resolved and the remainder is kept as-is; a
      dangling symlink is followed to its target
    - Check containment component by component
    - Check existence and type when ``must_exist`` is set

    Args:
        path: Path to validate (relative paths are taken from the CWD)
        boundary: Resolved boundary from ``establish_boundary``
        expect_dir: True for a directory, False for a non-directory,
                    None to accept either
        must_exist: Whether the path has to exist already

    Returns:
        The resolved absolute path

    Raises:
        SecurityError: If the resolved path escapes the boundary
        NotFoundError: If ``must_exist`` is set and the path is absent
        PathTypeError: If the path exists with the wrong type
    """
    cleaned = os.path.abspath(os.path.normpath(os.fspath(path)))
    resolved = Path(os.path.realpath(cleaned))

    if not is_within(resolved, boundary):
        raise SecurityError(
            f"Path {display_path(path)} resolves to {display_path(resolved)}, "
            f"outside of {display_path(boundary)}"
        )

    if not must_exist:
        return resolved

    if not resolved.exists():
        raise NotFoundError(f"Path does not exist: {display_path(path)}")

    if expect_dir is True and not resolved.is_dir():
        raise PathTypeError(f"Path is not a directory: {display_path(path)}")
    if expect_dir is False and resolved.is_dir():
        raise PathTypeError(f"Path is a directory, expected a file: {display_path(path)}")

    return resolved


def display_path(path: PathLike) -> str:
    """
    Printable form of a path.

    POSIX names are bytes; undecodable runs (carried by Python as lone
    surrogates) become U+FFFD so the result can be written as UTF-8.
    """
    return os.fsencode(os.fspath(path)).decode("utf-8", errors="replace")


def relative_to_boundary(path: PathLike, boundary: Path) -> str:
    """Boundary-relative POSIX form of ``path``; the boundary itself is ``"."``.

    The result is for display: undecodable bytes are replaced.
    """
    absolute = Path(os.path.abspath(os.fspath(path)))
    try:
        rel = absolute.relative_to(boundary)
    except ValueError:
        return display_path(absolute.name)
    return display_path(rel.as_posix() or ".")
