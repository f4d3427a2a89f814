"""Snippet generation: run each tool's init command or render its template."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, Iterable

from .config import Settings, ToolConfig
from .filesystem import FileWriteError, display_path, write_atomic
from .models import GenerateAction, GenerateResult, InitMode, ShellDialect, Snippet
from .registry import SnippetRegistry

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class SubprocessFailure(RuntimeError):
    """A tool's init command failed or printed nothing."""


class SnippetGenerator:
    """Writes one dotfile per (tool, dialect) pair."""

    def __init__(
        self,
        settings: Settings,
        registry: SnippetRegistry,
        *,
        runner: Runner = subprocess.run,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self._run = runner

    def resolve_executable(self, tool: ToolConfig) -> str | None:
        return shutil.which(tool.executable, path=self.settings.search_path)

    def generate(self, tool: ToolConfig, dialects: Iterable[ShellDialect] | None = None) -> list[GenerateResult]:
        requested = tool.dialects if dialects is None else tuple(dialects)
        selected = [dialect for dialect in requested if dialect in tool.dialects]
        snippets = [self.settings.snippet_for(tool, dialect) for dialect in selected]

        executable = self.resolve_executable(tool)
        if executable is None:
            logger.info("- %s: '%s' not found on PATH, skipping", tool.name, tool.executable)
            return [
                GenerateResult(snippet, GenerateAction.TOOL_ABSENT, f"'{tool.executable}' not on PATH")
                for snippet in snippets
            ]

        return [self._generate_one(tool, snippet, executable) for snippet in snippets]

    def render(self, tool: ToolConfig, dialect: ShellDialect, executable: str) -> str:
        """Return the snippet text for ``dialect``.

        Raises:
            SubprocessFailure: the init command exited non-zero, timed out, printed
                something other than UTF-8, or produced no output.
        """

        if tool.mode is InitMode.STATIC:
            text = self.registry.lookup(tool.name, dialect)
            if text is None:
                raise SubprocessFailure(f"no template registered for {tool.name}/{dialect.value}")
            return text

        command = [executable, *tool.command_for(dialect)]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = self._run(
                command,
                capture_output=True,
                text=True,
                timeout=self.settings.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise SubprocessFailure(f"timed out after {self.settings.timeout:g}s") from None
        except UnicodeDecodeError:
            raise SubprocessFailure("printed output that is not valid UTF-8") from None
        except OSError as exc:
            raise SubprocessFailure(str(exc)) from exc

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            reason = f"exited with status {completed.returncode}"
            raise SubprocessFailure(f"{reason}: {stderr}" if stderr else reason)
        if not (completed.stdout or "").strip():
            raise SubprocessFailure("produced no output")
        return completed.stdout

    def _generate_one(self, tool: ToolConfig, snippet: Snippet, executable: str) -> GenerateResult:
        try:
            content = self.render(tool, snippet.dialect, executable)
        except SubprocessFailure as exc:
            logger.warning("! %s/%s: init failed (%s)", tool.name, snippet.dialect.value, exc)
            return GenerateResult(snippet, GenerateAction.SUBPROCESS_FAILED, str(exc))

        try:
            write_atomic(snippet.target_path, content)
        except FileWriteError as exc:
            logger.error("x %s/%s: %s", tool.name, snippet.dialect.value, exc)
            return GenerateResult(snippet, GenerateAction.WRITE_FAILED, exc.reason)

        logger.info("✓ %s/%s: wrote %s", tool.name, snippet.dialect.value, display_path(snippet.target_path))
        return GenerateResult(
            Snippet(
                tool=snippet.tool,
                dialect=snippet.dialect,
                target_path=snippet.target_path,
                source_line=snippet.source_line,
                content=content,
            ),
            GenerateAction.WRITTEN,
        )
