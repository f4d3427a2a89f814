"""Filesystem helpers for shellsnip."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class FileWriteError(RuntimeError):
    """Raised when a snippet or shell config cannot be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot write '{path}': {reason}")
        self.path = path
        self.reason = reason


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def display_path(path: Path) -> str:
    """Render ``path`` as ``~/...`` when it lives under the user's home."""

    home = Path.home().resolve(strict=False)
    try:
        relative = path.resolve(strict=False).relative_to(home)
    except ValueError:
        return path.as_posix()
    return f"~/{relative.as_posix()}"


def expand_shell_path(raw: str, *, relative_to: Path) -> Path:
    """Best-effort expansion of a path written in a shell config file."""

    text = raw.strip().strip("'\"")
    expanded = Path(os.path.expandvars(text)).expanduser()
    if not expanded.is_absolute():
        expanded = relative_to / expanded
    return expanded.resolve(strict=False)


def _target_mode(path: Path) -> int:
    """Mode for a rewritten file: keep the existing one, else honour the umask."""

    try:
        return path.stat().st_mode & 0o7777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` through a temporary sibling file."""

    try:
        ensure_parent(path)
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.shellsnip-tmp-", dir=path.parent)
    except OSError as exc:
        raise FileWriteError(path, exc.strerror or str(exc)) from exc

    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.chmod(temp_path, _target_mode(path))
        os.replace(temp_path, path)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise FileWriteError(path, exc.strerror or str(exc)) from exc


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise FileWriteError(path, exc.strerror or str(exc)) from exc


def append_lines(path: Path, lines: list[str], *, existing: str) -> None:
    """Append ``lines`` to ``path`` without touching what is already there.

    ``existing`` is the current file content; it decides whether a newline must
    close the last line and whether a blank separator line is needed.
    """

    chunks: list[str] = []
    if existing and not existing.endswith("\n"):
        chunks.append("\n")
    if existing:
        chunks.append("\n")
    chunks.extend(f"{line}\n" for line in lines)

    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write("".join(chunks))
    except OSError as exc:
        raise FileWriteError(path, exc.strerror or str(exc)) from exc
