"""Core package for the shellsnip project."""

from .cli import app, run
from .config import Config, ConfigError, Settings, ToolConfig, load_config
from .generator import SnippetGenerator, SubprocessFailure
from .installer import SourceInstaller
from .manager import ShellsnipError, ShellsnipManager
from .models import (
    GenerateAction,
    GenerateResult,
    InitMode,
    InstallAction,
    InstallResult,
    RunReport,
    RunState,
    ShellDialect,
    Snippet,
    StatusEntry,
    StatusReport,
    StatusState,
)
from .registry import SnippetRegistry

__all__ = [
    "Config",
    "ConfigError",
    "Settings",
    "ToolConfig",
    "load_config",
    "SnippetGenerator",
    "SubprocessFailure",
    "SourceInstaller",
    "ShellsnipManager",
    "ShellsnipError",
    "SnippetRegistry",
    "GenerateAction",
    "GenerateResult",
    "InitMode",
    "InstallAction",
    "InstallResult",
    "RunReport",
    "RunState",
    "ShellDialect",
    "Snippet",
    "StatusEntry",
    "StatusReport",
    "StatusState",
    "app",
    "run",
]
