"""High level orchestration for shellsnip operations."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .config import Config, ToolConfig
from .filesystem import FileWriteError
from .generator import Runner, SnippetGenerator
from .installer import SourceInstaller
from .models import (
    GenerateAction,
    GenerateResult,
    InstallResult,
    RunReport,
    RunState,
    ShellDialect,
    Snippet,
    StatusEntry,
    StatusReport,
    StatusState,
)
from .registry import SnippetRegistry, validate

logger = logging.getLogger(__name__)


class ShellsnipError(RuntimeError):
    """Raised when shellsnip is asked to do something it cannot."""


class ShellsnipManager:
    """Coordinates snippet generation and shell config installation."""

    def __init__(self, config: Config, *, runner: Runner | None = None) -> None:
        self.config = config
        self.registry = SnippetRegistry.from_config(config)
        validate(config, self.registry)

        generator_kwargs = {"runner": runner} if runner is not None else {}
        self.generator = SnippetGenerator(config.settings, self.registry, **generator_kwargs)
        self.installer = SourceInstaller(config.settings)
        self.state = RunState.IDLE

    def install(
        self,
        tools: Iterable[str] | None = None,
        dialects: Iterable[str | ShellDialect] | None = None,
    ) -> RunReport:
        """Generate every selected snippet, then wire the written ones into shell configs."""

        selected_tools = self._select_tools(tools)
        selected_dialects = self._select_dialects(dialects)

        self.state = RunState.GENERATING
        generated: list[GenerateResult] = []
        for tool in selected_tools:
            generated.extend(self.generator.generate(tool, selected_dialects))

        self.state = RunState.INSTALLING
        installed: list[InstallResult] = []
        for dialect in selected_dialects:
            ready = [
                result.snippet
                for result in generated
                if result.action is GenerateAction.WRITTEN and result.snippet.dialect is dialect
            ]
            installed.extend(self.installer.install(dialect, ready))

        self.state = RunState.DONE
        report = RunReport(generated=tuple(generated), installed=tuple(installed), state=self.state)
        if report.failed:
            failed = ", ".join(dialect.value for dialect in report.failed_dialects()) or "snippet files"
            logger.error("Installation finished with errors (%s)", failed)
        return report

    def status(
        self,
        tools: Iterable[str] | None = None,
        dialects: Iterable[str | ShellDialect] | None = None,
    ) -> StatusReport:
        selected_dialects = self._select_dialects(dialects)
        entries: list[StatusEntry] = []

        for tool in self._select_tools(tools):
            present = self.generator.resolve_executable(tool) is not None
            for snippet in self._snippets_for(tool, selected_dialects):
                entries.append(self._status_for_snippet(snippet, present=present))

        entries.sort(key=lambda item: item.snippet.key())
        return StatusReport(entries=tuple(entries))

    def snippets(
        self,
        tools: Iterable[str] | None = None,
        dialects: Iterable[str | ShellDialect] | None = None,
    ) -> list[Snippet]:
        """Planned (tool, dialect) pairs, without touching the filesystem."""

        selected_dialects = self._select_dialects(dialects)
        planned: list[Snippet] = []
        for tool in self._select_tools(tools):
            planned.extend(self._snippets_for(tool, selected_dialects))
        return planned

    def is_available(self, tool: ToolConfig) -> bool:
        return self.generator.resolve_executable(tool) is not None

    # ------------------------------------------------------------------
    # Internal helpers

    def _select_tools(self, tools: Iterable[str] | None) -> Sequence[ToolConfig]:
        if tools is None:
            return list(self.config.tools.values())

        selected: list[ToolConfig] = []
        for name in tools:
            if name not in self.config.tools:
                raise ShellsnipError(f"Unknown tool '{name}'")
            selected.append(self.config.tools[name])
        return selected

    def _select_dialects(self, dialects: Iterable[str | ShellDialect] | None) -> list[ShellDialect]:
        if dialects is None:
            return list(ShellDialect)

        selected: list[ShellDialect] = []
        for raw in dialects:
            try:
                dialect = ShellDialect(raw)
            except ValueError:
                raise ShellsnipError(f"Unknown shell '{raw}'") from None
            if dialect not in selected:
                selected.append(dialect)
        return selected

    def _snippets_for(self, tool: ToolConfig, dialects: Sequence[ShellDialect]) -> list[Snippet]:
        return [self.config.settings.snippet_for(tool, dialect) for dialect in dialects if dialect in tool.dialects]

    def _status_for_snippet(self, snippet: Snippet, *, present: bool) -> StatusEntry:
        if not present:
            return StatusEntry(snippet, StatusState.TOOL_ABSENT, "Executable not found on PATH")

        if not snippet.target_path.is_file():
            return StatusEntry(snippet, StatusState.SNIPPET_MISSING, "Snippet file has not been generated")

        config_path = self.installer.config_path(snippet.dialect)
        if not config_path.is_file():
            return StatusEntry(snippet, StatusState.CONFIG_MISSING, f"'{config_path}' does not exist")

        try:
            sourced = self.installer.is_sourced(snippet.dialect, snippet)
        except FileWriteError as exc:
            return StatusEntry(snippet, StatusState.NOT_SOURCED, exc.reason)
        if not sourced:
            return StatusEntry(snippet, StatusState.NOT_SOURCED, f"'{snippet.source_line}' missing from config")

        return StatusEntry(snippet, StatusState.IN_SYNC)
