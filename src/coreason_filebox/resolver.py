# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

from pathlib import Path

from loguru import logger

from coreason_filebox.exceptions import InvalidInputError, PathTraversalError

_FORBIDDEN_NAME_PARTS = ("..", "/", "\\", "\x00")


class PathResolver:
    """Turns client-supplied names and paths into locations inside the sandbox root.

    Resolution never touches the filesystem beyond following symbolic links, and
    succeeds or fails independently of whether the target exists.
    """

    def __init__(self, root: Path):
        """Initializes the resolver.

        Args:
            root: The sandbox root. It is canonicalized once here.
        """
        self.root = root.resolve()

    def is_within_root(self, candidate: Path) -> bool:
        """True if ``candidate`` is the root or nested under it on a component boundary."""
        return candidate == self.root or self.root in candidate.parents

    def _canonicalize(self, candidate: Path, rejection: str) -> Path:
        try:
            try:
                return candidate.resolve(strict=True)
            except (FileNotFoundError, NotADirectoryError, PermissionError):
                # Targets need not exist yet.
                return candidate.resolve()
        except (OSError, RuntimeError) as e:
            # Symlink loops surface as RuntimeError before Python 3.13.
            logger.warning(f"Unresolvable path {candidate}: {e}")
            raise InvalidInputError(rejection) from e

    def _locate(self, candidate: Path, rejection: str) -> tuple[Path, Path]:
        """Return ``(entry, target)`` for an absolute candidate.

        ``entry`` names the directory entry itself: every component but the last is
        canonicalized, so a trailing symlink is kept as the link. ``target`` is the
        fully canonical location the entry points at.
        """
        target = self._canonicalize(candidate, rejection)
        if candidate.name in ("", ".."):
            return target, target
        return self._canonicalize(candidate.parent, rejection) / candidate.name, target

    def resolve_name(self, name: str) -> Path:
        """Resolve a bare file name directly under the root.

        The returned path is ``root/name`` itself, so operations act on the entry
        even when it is a symbolic link. Whatever the link points at must still lie
        inside the root.

        Args:
            name: An unqualified name such as ``report.pdf``.

        Returns:
            Path: The location ``root/name``.

        Raises:
            InvalidInputError: If the name is empty, contains ``..`` or a separator,
                or cannot be resolved (e.g. a symlink loop).
            PathTraversalError: If the name resolves to the root or outside it.
        """
        if not name:
            raise InvalidInputError("Invalid filename")
        if any(part in name for part in _FORBIDDEN_NAME_PARTS):
            logger.warning(f"Path traversal attempt in file name: {name!r}")
            raise InvalidInputError("Invalid filename")

        entry, target = self._locate(self.root / name, "Invalid filename")
        if self.root in (entry, target) or not self.is_within_root(target):
            logger.warning(f"Access denied for file name: {name!r}")
            raise PathTraversalError("Access denied: invalid file path")
        return entry

    def resolve_path(self, path: str | None, allow_root: bool = True) -> Path:
        """Resolve a relative or absolute path inside the root.

        Relative input is joined onto the root before canonicalization. Absolute
        input is accepted as long as it lands inside the root. A trailing symlink
        is returned as the link itself once its target is known to be inside.

        Args:
            path: The client-supplied path.
            allow_root: Whether the root itself is an acceptable result.

        Returns:
            Path: The location of the addressed entry.

        Raises:
            InvalidInputError: If ``path`` is missing, empty or cannot be resolved.
            PathTraversalError: If the result escapes the root, or is the root
                while ``allow_root`` is false.
        """
        if not path:
            raise InvalidInputError("Path is required")
        if "\x00" in path:
            raise InvalidInputError("Invalid path")

        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        entry, target = self._locate(candidate, "Invalid path")

        if not (self.is_within_root(entry) and self.is_within_root(target)):
            logger.warning(f"Path traversal attempt: {path!r}")
            raise PathTraversalError(f"Access denied: Path traversal detected: {path}")

        if not allow_root and self.root in (entry, target):
            logger.warning(f"Attempt to target the sandbox root: {path!r}")
            raise PathTraversalError("Access denied: Cannot access upload root directory directly")

        return entry

    def relative(self, resolved: Path) -> str:
        """Render a resolved path relative to the root, ``""`` for the root itself."""
        relative = resolved.relative_to(self.root)
        return "" if relative == Path(".") else relative.as_posix()
