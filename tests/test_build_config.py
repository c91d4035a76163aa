"""Tests for tools/build_config.py: settings file and builder identity."""
from __future__ import annotations

import dataclasses
import multiprocessing
import socket
import sys
from datetime import datetime
from pathlib import Path

import pytest

_REPO = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO / "tools"))

import build_config  # noqa: E402
from build_config import (  # noqa: E402
    DEFAULT_VERSION,
    BuildConfiguration,
    package_version,
    read_build_settings,
)


def test_defaults_without_file(tmp_path):
    settings = read_build_settings(tmp_path)
    assert settings["gnu_mirror"] == "https://ftp.gnu.org/gnu"
    assert settings["arch_flags"] == "-march=x86-64"
    assert settings["target"] == "x86_64-unknown-linux-gnu"
    assert settings["jobs"] == multiprocessing.cpu_count()
    assert settings["toolchain_tarball"] == "gcc-13.3.0-linux-x86_64-glibc-2.19+.tar.xz"


def test_overrides_from_file(tmp_path):
    (tmp_path / ".buildconfig").write_text(
        "[download]\n"
        "gnu_mirror = https://mirrors.kernel.org/gnu\n"
        "timeout = 90\n"
        "[build]\n"
        "jobs = 3\n"
        "arch_flags = -march=x86-64-v2\n"
    )
    settings = read_build_settings(tmp_path)
    assert settings["gnu_mirror"] == "https://mirrors.kernel.org/gnu"
    assert settings["timeout"] == 90
    assert settings["jobs"] == 3
    assert settings["arch_flags"] == "-march=x86-64-v2"
    # untouched keys keep their defaults
    assert settings["target"] == "x86_64-unknown-linux-gnu"


def test_malformed_file_falls_back(tmp_path, capsys):
    (tmp_path / ".buildconfig").write_text("[build]\njobs = many\n")
    settings = read_build_settings(tmp_path)
    assert settings["jobs"] == multiprocessing.cpu_count()
    assert "warning: failed to parse" in capsys.readouterr().err


def test_package_version_from_git(monkeypatch):
    values = {"user.name": "Ada Lovelace", "user.email": "ada@example.com"}
    monkeypatch.setattr(build_config, "_git_config", values.get)
    assert package_version() == "Ada Lovelace <ada@example.com>"


@pytest.mark.parametrize("values", [{}, {"user.name": "Ada Lovelace"}, {"user.email": "ada@example.com"}])
def test_package_version_falls_back_to_host(monkeypatch, values):
    monkeypatch.setattr(build_config, "_git_config", values.get)
    now = datetime(2024, 3, 5, 7, 8, 9)
    assert package_version(now) == f"{socket.gethostname()} 2024/03/05 07:08:09"


def test_git_config_missing_binary(monkeypatch):
    def _boom(*args, **kwargs):
        raise FileNotFoundError("git")
    monkeypatch.setattr(build_config.subprocess, "run", _boom)
    assert build_config._git_config("user.name") is None


def test_from_settings_default_version(tmp_path):
    config = BuildConfiguration.from_settings(None, read_build_settings(tmp_path), pkgversion="me")
    assert config.version == DEFAULT_VERSION == "2.42"
    assert config.package_version == "me"


def test_derived_names():
    config = BuildConfiguration(version="2.43", package_version="me")
    assert config.component == "binutils"
    assert config.name == "binutils-2.43"
    assert config.source_tarball == "binutils-2.43.tar.xz"
    assert config.source_url_root == "https://ftp.gnu.org/gnu/binutils"


def test_configuration_is_immutable():
    config = BuildConfiguration(version="2.42", package_version="me")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.version = "2.43"
