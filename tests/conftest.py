from __future__ import annotations

import io
import shutil
import sys
import tarfile
from pathlib import Path

import pytest

_REPO = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO / "tools"))

from build_config import BuildConfiguration  # noqa: E402
from workspace import WorkspaceLayout  # noqa: E402


def make_tar(path: Path, members, mode: str | None = None) -> Path:
    """Create a tarball at *path* from (name, content, perms) tuples.

    Compression follows the suffix unless *mode* is given.  A content of
    None makes a directory entry.
    """
    if mode is None:
        if path.name.endswith(".xz"):
            mode = "w:xz"
        elif path.name.endswith(".bz2"):
            mode = "w:bz2"
        elif path.name.endswith(".gz"):
            mode = "w:gz"
        else:
            mode = "w"
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, mode) as tf:
        for entry in members:
            name, content = entry[0], entry[1]
            perms = entry[2] if len(entry) > 2 else 0o644
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
                continue
            data = content if isinstance(content, bytes) else content.encode()
            info.size = len(data)
            info.mode = perms
            tf.addfile(info, io.BytesIO(data))
    return path


class FakeDownloader:
    """Copies files from a local 'remote' directory and records every URL."""

    name = "fake"

    def __init__(self, remote: Path, available: bool = True, succeed: bool = True):
        self.remote = remote
        self._available = available
        self.succeed = succeed
        self.calls: list[str] = []

    def available(self) -> bool:
        return self._available

    def download(self, url: str, dest: Path) -> bool:
        self.calls.append(url)
        if not self.succeed:
            dest.write_bytes(b"partial")
            return False
        src = self.remote / url.rsplit("/", 1)[-1]
        if not src.exists():
            return False
        shutil.copyfile(src, dest)
        return True


@pytest.fixture
def make_config():
    def _make(version: str = "2.42", **kwargs) -> BuildConfiguration:
        kwargs.setdefault("package_version", "tester <tester@example.com>")
        kwargs.setdefault("jobs", 2)
        return BuildConfiguration(version=version, **kwargs)
    return _make


@pytest.fixture
def config(make_config) -> BuildConfiguration:
    return make_config()


@pytest.fixture
def layout(config, tmp_path) -> WorkspaceLayout:
    return WorkspaceLayout.from_config(config, tmp_path)


@pytest.fixture
def remote(tmp_path) -> Path:
    """A 'release server' holding a binutils tarball per version and the toolchain."""
    root = tmp_path / "remote"
    root.mkdir()
    for version in ("2.42", "2.43"):
        make_tar(root / f"binutils-{version}.tar.xz", [
            (f"binutils-{version}", None),
            (f"binutils-{version}/configure", "#!/bin/sh\nexit 0\n", 0o755),
            (f"binutils-{version}/README", f"binutils {version}\n"),
        ])
    make_tar(root / "gcc-13.3.0-linux-x86_64-glibc-2.19+.tar.xz", [
        ("bin", None),
        ("bin/gcc", "#!/bin/sh\n", 0o755),
        ("bin/g++", "#!/bin/sh\n", 0o755),
    ])
    return root


@pytest.fixture
def fake_tools(monkeypatch):
    """Replace configure/make with a recorder.

    ``make install-strip`` drops a fake ``bin/ld`` into the install prefix.
    Returns the list of (cmd, cwd, env) calls.
    """
    import build_helper
    import install_helper

    calls = []

    def _run(cmd, cwd, env, nice=False):
        cmd = [str(c) for c in cmd]
        calls.append((cmd, Path(cwd), dict(env)))
        if cmd[-1] == "install-strip":
            prefix = next(
                c for recorded, _, _ in reversed(calls) for c in recorded
                if c.startswith("--prefix=")
            )
            bindir = Path(prefix.split("=", 1)[1]) / "bin"
            bindir.mkdir(parents=True, exist_ok=True)
            (bindir / "ld").write_text("ld\n")
        return None

    monkeypatch.setattr(build_helper, "run_command", _run)
    monkeypatch.setattr(install_helper, "run_command", _run)
    return calls


@pytest.fixture
def host_environ():
    return {
        "USER": "builder",
        "HOME": "/home/builder",
        "PATH": "/opt/weird/bin:/usr/bin",
        "CC": "clang",
        "LD_LIBRARY_PATH": "/opt/lib",
        "CFLAGS": "-O0",
    }

