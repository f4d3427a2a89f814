from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from shellsnip.config import DEFAULT_CONFIG_FILENAME, ConfigError, load_config
from shellsnip.models import InitMode, ShellDialect


def _write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / DEFAULT_CONFIG_FILENAME
    config_path.write_text(dedent(body))
    return config_path


def test_load_config_happy_path(tmp_path: Path, fake_home: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [settings]
        home = "~"
        timeout = 2

        [shells.nushell]
        config = "nu/config.nu"

        [tools.mytool]
        mode = "static"
        dialects = ["fish"]

        [tools.mytool.templates]
        fish = "alias mt mytool"
        """,
    )

    config = load_config(config_path)

    assert config.config_path == config_path.resolve(strict=False)
    assert config.settings.home == fake_home.resolve(strict=False)
    assert config.settings.timeout == 2.0
    assert config.settings.config_path_for(ShellDialect.NUSHELL) == (fake_home / "nu/config.nu").resolve(strict=False)
    assert config.settings.config_path_for(ShellDialect.FISH) == config.settings.home / ".config/fish/config.fish"

    tool = config.tool("mytool")
    assert tool.mode is InitMode.STATIC
    assert tool.executable == "mytool"
    assert tool.dialects == (ShellDialect.FISH,)
    assert tool.templates == {ShellDialect.FISH: "alias mt mytool"}

    # Built-ins stay available next to user tools.
    assert "zoxide" in config.tools


def test_user_table_overrides_builtin_fields(tmp_path: Path, fake_home: Path) -> None:
    config_path = _write_config(
        tmp_path,
        """
        [tools.atuin]
        dialects = ["fish", "nushell"]

        [tools.direnv]
        enabled = false
        """,
    )

    config = load_config(config_path)

    atuin = config.tool("atuin")
    assert atuin.dialects == (ShellDialect.FISH, ShellDialect.NUSHELL)
    assert atuin.command_for(ShellDialect.NUSHELL) == ["init", "nu"]
    assert "direnv" not in config.tools


def test_missing_config_uses_builtins(fake_home: Path) -> None:
    config = load_config()

    assert config.config_path is None
    assert config.settings.home == Path.home()
    assert {"zoxide", "atuin", "yazi", "cldy", "ncrs"} <= set(config.tools)


def test_explicit_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="does not exist"):
        load_config(tmp_path / "nope.toml")


def test_directory_argument_resolves_default_file(tmp_path: Path, fake_home: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    _write_config(config_dir, "[settings]\nhome = '~'\n")

    config = load_config(config_dir)

    assert config.config_path == (config_dir / DEFAULT_CONFIG_FILENAME).resolve(strict=False)


def test_directory_without_config_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Expected to find"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "body",
    [
        "[tools.foo]\nmode = 'magic'\n",
        "[tools.foo]\ndialects = ['powershell']\n",
        "[tools.foo]\ncommand = 'init fish'\n",
        "[tools.foo]\ncommand = []\n",
        "[tools.foo]\ntarget = '../escape'\n",
        "[settings]\ntimeout = 0\n",
        "[shells.fish]\npath = '~/config.fish'\n",
        "[settings\n",
    ],
)
def test_invalid_config_rejected(tmp_path: Path, fake_home: Path, body: str) -> None:
    config_path = _write_config(tmp_path, body)

    with pytest.raises(ConfigError):
        load_config(config_path)


def test_snippet_paths_and_source_lines(fake_home: Path) -> None:
    config = load_config()
    zoxide = config.tool("zoxide")

    snippet = config.settings.snippet_for(zoxide, ShellDialect.NUSHELL)

    assert snippet.target_path == fake_home / ".zoxide.nu"
    assert snippet.source_line == "source ~/.zoxide.nu"


def test_snippet_outside_home_uses_absolute_path(tmp_path: Path, fake_home: Path) -> None:
    elsewhere = tmp_path / "elsewhere"
    config_path = _write_config(tmp_path, f'[settings]\nhome = "{elsewhere}"\n')

    config = load_config(config_path)
    snippet = config.settings.snippet_for(config.tool("zoxide"), ShellDialect.FISH)

    assert snippet.source_line == f"source {(elsewhere / '.zoxide.fish').as_posix()}"
