"""Logical path handling: normalization, parents and ancestor chains."""

from __future__ import annotations

from virtualfs.exceptions import InvalidPathError


def normalize_path(path: str, *, allow_root: bool = False) -> str:
    """Normalize a forward-slash logical path relative to the root.

    Leading/trailing slashes and empty segments are dropped. The root is the
    empty string and is only accepted when allow_root is set.
    """
    segments = [s for s in path.replace("\\", "/").split("/") if s]
    for segment in segments:
        if segment in (".", ".."):
            raise InvalidPathError(f"Relative segments are not allowed: {path!r}")
        if "\x00" in segment:
            raise InvalidPathError(f"NUL byte in path: {path!r}")
    normalized = "/".join(segments)
    if not normalized and not allow_root:
        raise InvalidPathError("Path must not be empty")
    return normalized


def parent_of(path: str) -> str:
    """Return the parent of a normalized path ("" for top-level paths)."""
    head, sep, _ = path.rpartition("/")
    return head if sep else ""


def ancestors(path: str) -> list[str]:
    """Return every ancestor directory of path, shallow to deep.

    "a/b/c.txt" -> ["a", "a/b"]; top-level paths have no ancestors.
    """
    parts = path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so value matches literally (escape char is backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
