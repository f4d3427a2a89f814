"""Idempotent ``source`` line installation into shell startup files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Sequence

from .config import Settings
from .filesystem import FileWriteError, append_lines, display_path, expand_shell_path, read_text
from .models import InstallAction, InstallResult, ShellDialect, Snippet

logger = logging.getLogger(__name__)

_SOURCE_COMMANDS = ("source", ".")


class SourceInstaller:
    """Appends missing ``source`` lines; never rewrites existing content."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def config_path(self, dialect: ShellDialect) -> Path:
        return self.settings.config_path_for(dialect)

    def install(self, dialect: ShellDialect, snippets: Sequence[Snippet]) -> list[InstallResult]:
        config_path = self.config_path(dialect)
        if not snippets:
            return []

        if not config_path.is_file():
            logger.warning("- %s: %s does not exist, skipping", dialect.value, display_path(config_path))
            return [
                InstallResult(snippet, config_path, InstallAction.CONFIG_MISSING, "shell config not found")
                for snippet in snippets
            ]

        try:
            existing = read_text(config_path)
        except FileWriteError as exc:
            logger.error("x %s: %s", dialect.value, exc)
            return [
                InstallResult(snippet, config_path, InstallAction.WRITE_FAILED, exc.reason) for snippet in snippets
            ]

        results: list[InstallResult] = []
        pending: list[Snippet] = []
        for snippet in snippets:
            if contains_source_line(existing, snippet, comment_prefix=dialect.comment_prefix):
                logger.info("✓ %s/%s: already configured", snippet.tool, dialect.value)
                results.append(InstallResult(snippet, config_path, InstallAction.ALREADY_PRESENT))
            elif any(other.source_line == snippet.source_line for other in pending):
                results.append(InstallResult(snippet, config_path, InstallAction.ALREADY_PRESENT))
            else:
                pending.append(snippet)

        if not pending:
            return results

        try:
            append_lines(config_path, [snippet.source_line for snippet in pending], existing=existing)
        except FileWriteError as exc:
            logger.error("x %s: %s", dialect.value, exc)
            results.extend(
                InstallResult(snippet, config_path, InstallAction.WRITE_FAILED, exc.reason) for snippet in pending
            )
            return results

        for snippet in pending:
            logger.info(
                "✓ %s/%s: added '%s' to %s",
                snippet.tool,
                dialect.value,
                snippet.source_line,
                display_path(config_path),
            )
            results.append(InstallResult(snippet, config_path, InstallAction.ADDED))
        return results

    def is_sourced(self, dialect: ShellDialect, snippet: Snippet) -> bool:
        config_path = self.config_path(dialect)
        if not config_path.is_file():
            return False
        return contains_source_line(read_text(config_path), snippet, comment_prefix=dialect.comment_prefix)


def contains_source_line(text: str, snippet: Snippet, *, comment_prefix: str = "#") -> bool:
    """Return ``True`` if ``text`` already loads ``snippet``.

    Matches any line containing the source line as a whole word, so guarded
    forms such as ``test -f ~/.x.fish; and source ~/.x.fish`` count, or any
    ``source``/``.`` command whose argument resolves to the snippet's target path.
    """

    target = snippet.target_path.resolve(strict=False)
    pattern = re.compile(re.escape(snippet.source_line) + r"(?![\w./-])")
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(comment_prefix):
            continue
        if pattern.search(line):
            return True

        parts = line.split(None, 1)
        if len(parts) != 2 or parts[0] not in _SOURCE_COMMANDS:
            continue
        argument = parts[1].split(comment_prefix, 1)[0].strip()
        if argument and expand_shell_path(argument, relative_to=target.parent) == target:
            return True
    return False
