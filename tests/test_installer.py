from __future__ import annotations

import os
from pathlib import Path

import pytest

from shellsnip.config import Settings, ToolConfig
from shellsnip.installer import SourceInstaller, contains_source_line
from shellsnip.models import InstallAction, ShellDialect, Snippet


def _snippet(settings: Settings, name: str, dialect: ShellDialect) -> Snippet:
    return settings.snippet_for(ToolConfig.from_raw(name, {}), dialect)


@pytest.fixture
def settings(fake_home: Path) -> Settings:
    return Settings(home=fake_home)


def _fish_config(home: Path, content: str = "") -> Path:
    config = home / ".config" / "fish" / "config.fish"
    config.parent.mkdir(parents=True)
    config.write_text(content)
    return config


def test_adds_source_line_to_empty_config(settings: Settings, fake_home: Path) -> None:
    config = _fish_config(fake_home)
    snippet = _snippet(settings, "zoxide", ShellDialect.FISH)

    [result] = SourceInstaller(settings).install(ShellDialect.FISH, [snippet])

    assert result.action is InstallAction.ADDED
    assert result.config_path == config
    assert config.read_text().splitlines().count("source ~/.zoxide.fish") == 1


def test_second_run_is_byte_identical(settings: Settings, fake_home: Path) -> None:
    config = _fish_config(fake_home, "set -gx EDITOR nvim\n")
    snippets = [_snippet(settings, name, ShellDialect.FISH) for name in ("zoxide", "atuin")]
    installer = SourceInstaller(settings)

    installer.install(ShellDialect.FISH, snippets)
    after_first = config.read_bytes()
    second = installer.install(ShellDialect.FISH, snippets)

    assert config.read_bytes() == after_first
    assert {result.action for result in second} == {InstallAction.ALREADY_PRESENT}


def test_existing_content_is_preserved_in_order(settings: Settings, fake_home: Path) -> None:
    original = "# my fish config\nset -gx EDITOR nvim\nalias ll 'ls -al'"
    config = _fish_config(fake_home, original)

    SourceInstaller(settings).install(ShellDialect.FISH, [_snippet(settings, "zoxide", ShellDialect.FISH)])

    content = config.read_text()
    assert content.startswith(original)
    assert content == original + "\n\nsource ~/.zoxide.fish\n"


def test_missing_config_is_not_created(settings: Settings, fake_home: Path, caplog: pytest.LogCaptureFixture) -> None:
    snippet = _snippet(settings, "zoxide", ShellDialect.NUSHELL)

    with caplog.at_level("WARNING", logger="shellsnip"):
        [result] = SourceInstaller(settings).install(ShellDialect.NUSHELL, [snippet])

    assert result.action is InstallAction.CONFIG_MISSING
    assert not (fake_home / ".config" / "nushell" / "config.nu").exists()
    assert "does not exist" in caplog.text


def test_alternative_spellings_count_as_present(settings: Settings, fake_home: Path) -> None:
    config = fake_home / ".bashrc"
    original = f'. "$HOME/.zoxide.bash"\nsource {fake_home}/.atuin.bash  # history\n'
    config.write_text(original)
    snippets = [_snippet(settings, name, ShellDialect.BASH) for name in ("zoxide", "atuin")]

    results = SourceInstaller(settings).install(ShellDialect.BASH, snippets)

    assert {result.action for result in results} == {InstallAction.ALREADY_PRESENT}
    assert config.read_text() == original


def test_commented_out_line_is_not_present(settings: Settings) -> None:
    snippet = _snippet(settings, "zoxide", ShellDialect.ZSH)

    assert not contains_source_line("# source ~/.zoxide.zsh\n", snippet)
    assert contains_source_line("  source ~/.zoxide.zsh  \n", snippet)
    assert not contains_source_line("source ~/.zoxide.zsh.bak\n", snippet)


def test_custom_config_path(fake_home: Path) -> None:
    custom = fake_home / "dotfiles" / "zshrc"
    custom.parent.mkdir()
    custom.write_text("")
    settings = Settings(home=fake_home, shell_configs={ShellDialect.ZSH: custom})

    [result] = SourceInstaller(settings).install(ShellDialect.ZSH, [_snippet(settings, "zoxide", ShellDialect.ZSH)])

    assert result.config_path == custom
    assert custom.read_text() == "source ~/.zoxide.zsh\n"
    assert not (fake_home / ".zshrc").exists()


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores file permissions")
def test_read_only_config_reports_write_failure(settings: Settings, fake_home: Path) -> None:
    config = _fish_config(fake_home, "set -gx EDITOR nvim\n")
    config.chmod(0o444)
    try:
        [result] = SourceInstaller(settings).install(ShellDialect.FISH, [_snippet(settings, "zoxide", ShellDialect.FISH)])
    finally:
        config.chmod(0o644)

    assert result.action is InstallAction.WRITE_FAILED
    assert config.read_text() == "set -gx EDITOR nvim\n"


def test_is_sourced(settings: Settings, fake_home: Path) -> None:
    snippet = _snippet(settings, "zoxide", ShellDialect.FISH)
    installer = SourceInstaller(settings)

    assert installer.is_sourced(ShellDialect.FISH, snippet) is False
    _fish_config(fake_home, "source ~/.zoxide.fish\n")
    assert installer.is_sourced(ShellDialect.FISH, snippet) is True


def test_no_snippets_is_a_noop(settings: Settings, fake_home: Path) -> None:
    assert SourceInstaller(settings).install(ShellDialect.FISH, []) == []


def test_guarded_source_line_counts_as_present(settings: Settings, fake_home: Path) -> None:
    original = "test -f ~/.zoxide.fish; and source ~/.zoxide.fish\n"
    config = _fish_config(fake_home, original)

    [result] = SourceInstaller(settings).install(ShellDialect.FISH, [_snippet(settings, "zoxide", ShellDialect.FISH)])

    assert result.action is InstallAction.ALREADY_PRESENT
    assert config.read_text() == original


def test_non_utf8_config_is_appended_byte_for_byte(settings: Settings, fake_home: Path) -> None:
    config = fake_home / ".bashrc"
    config.write_bytes(b"# caf\xe9\n")
    snippet = _snippet(settings, "zoxide", ShellDialect.BASH)
    installer = SourceInstaller(settings)

    [result] = installer.install(ShellDialect.BASH, [snippet])

    assert result.action is InstallAction.ADDED
    assert config.read_bytes() == b"# caf\xe9\n\nsource ~/.zoxide.bash\n"
    assert installer.is_sourced(ShellDialect.BASH, snippet) is True
