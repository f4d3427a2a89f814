"""TOML configuration loading for shellsnip."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .filesystem import display_path
from .models import InitMode, ShellDialect, Snippet
from .registry import BUILTIN_TOOLS

DEFAULT_CONFIG_FILENAME = "shellsnip.toml"
DEFAULT_TIMEOUT = 5.0
SHELL_PLACEHOLDER = "{shell}"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


def _expand_path(raw: str | os.PathLike[str] | Path, *, base_dir: Path) -> Path:
    """Return an absolute ``Path`` by expanding env vars and user segments."""

    text = str(raw)
    expanded = Path(os.path.expandvars(text)).expanduser()
    if expanded.is_absolute():
        return expanded.resolve(strict=False)
    return (base_dir / expanded).resolve(strict=False)


def _parse_dialect(raw: object, *, context: str) -> ShellDialect:
    try:
        return ShellDialect(str(raw))
    except ValueError:
        choices = ", ".join(dialect.value for dialect in ShellDialect)
        raise ConfigError(f"{context}: unknown shell '{raw}' (expected one of {choices})") from None


class Settings(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    home: Path = Field(default_factory=Path.home)
    timeout: float = DEFAULT_TIMEOUT
    search_path: str | None = None
    shell_configs: Dict[ShellDialect, Path] = Field(default_factory=dict)

    @classmethod
    def from_raw(
        cls,
        raw: Mapping[str, Any],
        shells: Mapping[str, Any],
        *,
        base_dir: Path,
    ) -> "Settings":
        home = _expand_path(raw.get("home", "~"), base_dir=base_dir)

        timeout = raw.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"settings.timeout must be a positive number, got '{timeout}'")

        shell_configs: dict[ShellDialect, Path] = {}
        for name, body in shells.items():
            dialect = _parse_dialect(name, context="[shells]")
            if not isinstance(body, Mapping) or "config" not in body:
                raise ConfigError(f"[shells.{name}] must define a 'config' path")
            shell_configs[dialect] = _expand_path(body["config"], base_dir=home)

        search_path = raw.get("search_path")
        if search_path is not None:
            search_path = os.path.expandvars(str(search_path))

        return cls(home=home, timeout=float(timeout), search_path=search_path, shell_configs=shell_configs)

    def config_path_for(self, dialect: ShellDialect) -> Path:
        """Return the startup file that should source snippets for ``dialect``."""

        return self.shell_configs.get(dialect, self.home / dialect.default_config)

    def snippet_for(self, tool: "ToolConfig", dialect: ShellDialect) -> Snippet:
        target = self.home / f".{tool.stem}.{dialect.extension}"
        return Snippet(
            tool=tool.name,
            dialect=dialect,
            target_path=target,
            source_line=dialect.source_statement(display_path(target)),
        )


class ToolConfig(BaseModel):
    """A command-line tool that contributes shell integration snippets."""

    model_config = ConfigDict(frozen=True)

    name: str
    executable: str
    mode: InitMode = InitMode.GENERATED
    command: tuple[str, ...] = ("init", SHELL_PLACEHOLDER)
    dialects: tuple[ShellDialect, ...] = tuple(ShellDialect)
    shell_names: Dict[ShellDialect, str] = Field(default_factory=dict)
    target: str | None = None
    templates: Dict[ShellDialect, str] = Field(default_factory=dict)

    @classmethod
    def from_raw(
        cls,
        name: str,
        raw: Mapping[str, Any],
        *,
        base: "ToolConfig | None" = None,
    ) -> "ToolConfig":
        context = f"[tools.{name}]"
        values: dict[str, Any] = base.model_dump() if base is not None else {"name": name, "executable": name}

        if "executable" in raw:
            values["executable"] = str(raw["executable"])
        if "mode" in raw:
            try:
                values["mode"] = InitMode(str(raw["mode"]))
            except ValueError:
                raise ConfigError(f"{context}: mode must be 'generated' or 'static', got '{raw['mode']}'") from None
        if "command" in raw:
            command = raw["command"]
            if not isinstance(command, list) or not all(isinstance(arg, str) for arg in command):
                raise ConfigError(f"{context}: command must be a list of strings")
            values["command"] = tuple(command)
        if "dialects" in raw:
            if not isinstance(raw["dialects"], list):
                raise ConfigError(f"{context}: dialects must be a list of shell names")
            dialects = tuple(_parse_dialect(item, context=context) for item in raw["dialects"])
            if not dialects:
                raise ConfigError(f"{context}: dialects must not be empty")
            values["dialects"] = dialects
        if "shell_names" in raw:
            if not isinstance(raw["shell_names"], Mapping):
                raise ConfigError(f"{context}: shell_names must be a table")
            values["shell_names"] = {
                _parse_dialect(key, context=context): str(value) for key, value in raw["shell_names"].items()
            }
        if "target" in raw:
            target = str(raw["target"])
            if not target or "/" in target or target.startswith("."):
                raise ConfigError(f"{context}: target '{target}' must be a bare file stem")
            values["target"] = target
        if "templates" in raw:
            if not isinstance(raw["templates"], Mapping):
                raise ConfigError(f"{context}: templates must be a table")
            templates = dict(values.get("templates") or {})
            for key, text in raw["templates"].items():
                templates[_parse_dialect(key, context=context)] = str(text)
            values["templates"] = templates

        try:
            tool = cls(**values)
        except ValidationError as exc:
            raise ConfigError(f"{context}: {exc}") from exc

        if tool.mode is InitMode.GENERATED and not tool.command:
            raise ConfigError(f"{context}: generated tools need a non-empty command")
        return tool

    @property
    def stem(self) -> str:
        return self.target or self.name

    def shell_name(self, dialect: ShellDialect) -> str:
        return self.shell_names.get(dialect, dialect.value)

    def command_for(self, dialect: ShellDialect) -> list[str]:
        """Return the init arguments for ``dialect`` with the shell name filled in."""

        shell = self.shell_name(dialect)
        return [arg.replace(SHELL_PLACEHOLDER, shell) for arg in self.command]


class Config(BaseModel):
    """Fully parsed configuration."""

    model_config = ConfigDict(frozen=True)

    config_path: Path | None = None
    settings: Settings = Field(default_factory=Settings)
    tools: Dict[str, ToolConfig]

    def tool(self, name: str) -> ToolConfig:
        try:
            return self.tools[name]
        except KeyError as exc:
            raise ConfigError(f"Unknown tool '{name}'") from exc


def builtin_tools() -> dict[str, ToolConfig]:
    return {name: ToolConfig.from_raw(name, raw) for name, raw in BUILTIN_TOOLS.items()}


def default_config(*, home: Path | None = None) -> Config:
    """Configuration used when no file is found: built-in tools only."""

    settings = Settings(home=home) if home is not None else Settings()
    return Config(config_path=None, settings=settings, tools=builtin_tools())


def load_config(path: Path | None = None) -> Config:
    """Load and validate a configuration file.

    Args:
        path: Optional path to the TOML file or its directory. When omitted,
            ``shellsnip.toml`` in the working directory and then in
            ``~/.config/shellsnip`` is tried; if neither exists the built-in
            defaults are returned.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return default_config()

    base_dir = config_path.parent
    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    settings = Settings.from_raw(data.get("settings", {}), data.get("shells", {}), base_dir=base_dir)

    tools = builtin_tools()
    for tool_name, tool_body in (data.get("tools") or {}).items():
        if not isinstance(tool_body, Mapping):
            raise ConfigError(f"[tools.{tool_name}] must be a table")
        if tool_body.get("enabled", True) is False:
            tools.pop(tool_name, None)
            continue
        tools[tool_name] = ToolConfig.from_raw(tool_name, tool_body, base=tools.get(tool_name))

    if not tools:
        raise ConfigError("Configuration leaves no tools enabled")

    return Config(config_path=config_path, settings=settings, tools=tools)


def _resolve_config_path(path: Path | None) -> Path | None:
    if path is None:
        for candidate in (
            Path.cwd() / DEFAULT_CONFIG_FILENAME,
            Path.home() / ".config" / "shellsnip" / DEFAULT_CONFIG_FILENAME,
        ):
            if candidate.is_file():
                return candidate.resolve(strict=False)
        return None

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
