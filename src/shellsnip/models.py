"""Shared models and enums for shellsnip."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ShellDialect(str, Enum):
    """Shells that shellsnip knows how to wire snippets into."""

    BASH = "bash"
    FISH = "fish"
    NUSHELL = "nushell"
    ZSH = "zsh"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def default_config(self) -> Path:
        """Startup file relative to the home directory."""

        return _DEFAULT_CONFIGS[self]

    @property
    def comment_prefix(self) -> str:
        return "#"

    def source_statement(self, path: str) -> str:
        return f"source {path}"


_EXTENSIONS = {
    ShellDialect.BASH: "bash",
    ShellDialect.FISH: "fish",
    ShellDialect.NUSHELL: "nu",
    ShellDialect.ZSH: "zsh",
}

_DEFAULT_CONFIGS = {
    ShellDialect.BASH: Path(".bashrc"),
    ShellDialect.FISH: Path(".config/fish/config.fish"),
    ShellDialect.NUSHELL: Path(".config/nushell/config.nu"),
    ShellDialect.ZSH: Path(".zshrc"),
}


class InitMode(str, Enum):
    """Where a tool's snippet text comes from."""

    GENERATED = "generated"
    STATIC = "static"


class RunState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    INSTALLING = "installing"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class Snippet:
    """Shell code for one (tool, dialect) pair and how to load it."""

    tool: str
    dialect: ShellDialect
    target_path: Path
    source_line: str
    content: str = ""

    def key(self) -> tuple[str, str]:
        return (self.tool, self.dialect.value)


class GenerateAction(str, Enum):
    """Outcome of generating one snippet."""

    WRITTEN = "written"
    TOOL_ABSENT = "tool_absent"
    SUBPROCESS_FAILED = "subprocess_failed"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True, slots=True)
class GenerateResult:
    snippet: Snippet
    action: GenerateAction
    details: str | None = None


class InstallAction(str, Enum):
    """Outcome of wiring one snippet into a shell config."""

    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    CONFIG_MISSING = "config_missing"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True, slots=True)
class InstallResult:
    snippet: Snippet
    config_path: Path
    action: InstallAction
    details: str | None = None


@dataclass(frozen=True, slots=True)
class RunReport:
    """Everything an install run did, in order."""

    generated: tuple[GenerateResult, ...]
    installed: tuple[InstallResult, ...]
    state: RunState = RunState.DONE

    @property
    def failed(self) -> bool:
        return any(result.action is GenerateAction.WRITE_FAILED for result in self.generated) or any(
            result.action is InstallAction.WRITE_FAILED for result in self.installed
        )

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def failed_dialects(self) -> list[ShellDialect]:
        dialects = {
            result.snippet.dialect for result in self.installed if result.action is InstallAction.WRITE_FAILED
        }
        return sorted(dialects, key=lambda dialect: dialect.value)


class StatusState(str, Enum):
    """High-level states reported by ``shellsnip status``."""

    IN_SYNC = "in_sync"
    TOOL_ABSENT = "tool_absent"
    SNIPPET_MISSING = "snippet_missing"
    CONFIG_MISSING = "config_missing"
    NOT_SOURCED = "not_sourced"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    snippet: Snippet
    state: StatusState
    details: str | None = None


@dataclass(frozen=True, slots=True)
class StatusReport:
    entries: tuple[StatusEntry, ...]

    @property
    def healthy(self) -> bool:
        return all(entry.state in (StatusState.IN_SYNC, StatusState.TOOL_ABSENT) for entry in self.entries)
