from __future__ import annotations

import stat
from pathlib import Path
from typing import Callable

import pytest

FakeTool = Callable[..., Path]


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def fake_bin(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """An empty directory that is the only entry on ``PATH``."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


@pytest.fixture
def make_tool(fake_bin: Path) -> FakeTool:
    """Create an executable shell script named ``name`` on the fake ``PATH``.

    By default the script answers ``<name> <verb> <shell>`` by printing
    ``# <name> init for <shell>``.
    """

    def _make(name: str, body: str | None = None, *, verb: str = "init") -> Path:
        if body is None:
            body = f'if [ "$1" = "{verb}" ]; then echo "# {name} init for $2"; exit 0; fi\nexit 1\n'
        script = fake_bin / name
        script.write_text(f"#!/bin/sh\n{body}")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make
