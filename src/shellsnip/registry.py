"""Built-in tool table and static snippet templates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping

from .models import InitMode, ShellDialect

if TYPE_CHECKING:
    from .config import Config, ToolConfig


# Raw tool definitions, same shape as a ``[tools.<name>]`` table.
BUILTIN_TOOLS: dict[str, dict[str, Any]] = {
    "zoxide": {
        "mode": "generated",
        "command": ["init", "{shell}"],
    },
    "atuin": {
        "mode": "generated",
        "command": ["init", "{shell}"],
        "shell_names": {"nushell": "nu"},
    },
    "starship": {
        "mode": "generated",
        "command": ["init", "{shell}"],
        "shell_names": {"nushell": "nu"},
    },
    "direnv": {
        "mode": "generated",
        "command": ["hook", "{shell}"],
        "dialects": ["bash", "fish", "zsh"],
    },
    "yazi": {
        "mode": "static",
    },
    "cldy": {
        "mode": "static",
        "executable": "claude",
        "dialects": ["fish", "nushell"],
    },
    "ncrs": {
        "mode": "static",
        "executable": "nixos-rebuild",
        "dialects": ["fish", "nushell"],
    },
}


_YAZI_POSIX = """\
# Yazi wrapper - cd to last directory on exit
function y() {
    local tmp="$(mktemp -t "yazi-cwd.XXXXXX")" cwd
    yazi "$@" --cwd-file="$tmp"
    IFS= read -r -d "" cwd < "$tmp"
    test -n "$cwd" && test "$cwd" != "$PWD" && builtin cd -- "$cwd"
    rm -f -- "$tmp"
}
"""

TEMPLATES: dict[tuple[str, ShellDialect], str] = {
    ("yazi", ShellDialect.BASH): _YAZI_POSIX,
    ("yazi", ShellDialect.ZSH): _YAZI_POSIX,
    ("yazi", ShellDialect.FISH): """\
# Yazi wrapper - cd to last directory on exit
function y
    set tmp (mktemp -t "yazi-cwd.XXXXXX")
    yazi $argv --cwd-file="$tmp"
    if read -z cwd < "$tmp"; and test -n "$cwd"; and test "$cwd" != "$PWD"
        builtin cd -- "$cwd"
    end
    rm -f -- "$tmp"
end
""",
    ("yazi", ShellDialect.NUSHELL): """\
# Yazi wrapper - cd to last directory on exit
def --env y [...args] {
    let tmp = (mktemp -t "yazi-cwd.XXXXXX")
    yazi ...$args --cwd-file $tmp
    let cwd = (open $tmp)
    if $cwd != "" and $cwd != $env.PWD {
        cd $cwd
    }
    rm -fp $tmp
}
""",
    ("cldy", ShellDialect.FISH): "alias cldy 'claude --dangerously-skip-permissions'\n",
    ("cldy", ShellDialect.NUSHELL): "alias cldy = claude --dangerously-skip-permissions\n",
    ("ncrs", ShellDialect.FISH): """\
# Rebuild the NixOS system from the flake, then collect garbage
function ncrs
    pushd ~/.config/nixos
    and sudo nixos-rebuild switch --flake .#(hostname)
    and sudo nix-collect-garbage --delete-older-than 7d
    popd
end
""",
    ("ncrs", ShellDialect.NUSHELL): """\
# Rebuild the NixOS system from the flake, then collect garbage
def ncrs [] {
    cd ~/.config/nixos
    sudo nixos-rebuild switch --flake $".#(sys host | get hostname)"
    sudo nix-collect-garbage --delete-older-than 7d
}
""",
}


class SnippetRegistry:
    """In-memory (tool, dialect) -> template table."""

    def __init__(self, templates: Mapping[tuple[str, ShellDialect], str] | None = None) -> None:
        self._templates: dict[tuple[str, ShellDialect], str] = dict(TEMPLATES if templates is None else templates)

    @classmethod
    def from_config(cls, config: "Config") -> "SnippetRegistry":
        registry = cls()
        for tool in config.tools.values():
            for dialect, text in tool.templates.items():
                registry.register(tool.name, dialect, text)
        return registry

    def lookup(self, tool: str, dialect: ShellDialect) -> str | None:
        return self._templates.get((tool, dialect))

    def register(self, tool: str, dialect: ShellDialect, text: str) -> None:
        self._templates[(tool, dialect)] = text

    def keys(self) -> Iterable[tuple[str, ShellDialect]]:
        return self._templates.keys()


def validate(config: "Config", registry: SnippetRegistry) -> None:
    """Fail fast on tool definitions that could never be generated correctly.

    Raises:
        ConfigError: a static tool lacks a template for one of its dialects, or
            two (tool, dialect) pairs would write the same file.
    """

    from .config import ConfigError

    problems: list[str] = []
    owners: dict[str, str] = {}

    for tool in config.tools.values():
        for dialect in tool.dialects:
            if tool.mode is InitMode.STATIC and registry.lookup(tool.name, dialect) is None:
                problems.append(f"static tool '{tool.name}' has no template for {dialect.value}")

            target = config.settings.snippet_for(tool, dialect).target_path.as_posix()
            owner = f"{tool.name}/{dialect.value}"
            if target in owners:
                problems.append(f"'{owner}' and '{owners[target]}' both write to '{target}'")
            else:
                owners[target] = owner

    if problems:
        raise ConfigError("Invalid tool configuration: " + "; ".join(problems))


def describe(tool: "ToolConfig") -> str:
    if tool.mode is InitMode.STATIC:
        return "static template"
    return " ".join([tool.executable, *tool.command])
