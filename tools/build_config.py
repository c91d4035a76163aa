"""Build configuration for the binutils pipeline.

Defaults live here as module constants.  A ``.buildconfig`` INI file in
the working directory can override them:

    [download]
    gnu_mirror = https://mirrors.kernel.org/gnu
    timeout = 60

    [build]
    jobs = 8
    arch_flags = -march=x86-64-v2

Settings are read once at startup, before the environment is sanitized.
"""

from __future__ import annotations

import configparser
import multiprocessing
import socket
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

COMPONENT = "binutils"
DEFAULT_VERSION = "2.42"

GNU_MIRROR = "https://ftp.gnu.org/gnu"
TOOLCHAIN_URL = "https://github.com/shediao/gcc.build/releases/download/v0.0.1"
TOOLCHAIN_TARBALL = "gcc-13.3.0-linux-x86_64-glibc-2.19+.tar.xz"

ARCH_FLAGS = "-march=x86-64"
BUILD_TARGET = "x86_64-unknown-linux-gnu"
DOWNLOAD_TIMEOUT = 30

SETTINGS_FILE = ".buildconfig"


def read_build_settings(cwd: Path) -> dict:
    """Read overrides from ``<cwd>/.buildconfig``.

    Returns a dict with every supported key; missing keys, a missing file
    or a malformed file fall back to the module defaults.
    """
    defaults = {
        "gnu_mirror": GNU_MIRROR,
        "toolchain_url": TOOLCHAIN_URL,
        "toolchain_tarball": TOOLCHAIN_TARBALL,
        "timeout": DOWNLOAD_TIMEOUT,
        "jobs": multiprocessing.cpu_count(),
        "arch_flags": ARCH_FLAGS,
        "target": BUILD_TARGET,
    }

    path = Path(cwd) / SETTINGS_FILE
    if not path.exists():
        return defaults

    config = configparser.ConfigParser()
    try:
        config.read(path)
        settings = dict(defaults)
        if config.has_section("download"):
            settings["gnu_mirror"] = config.get("download", "gnu_mirror", fallback=defaults["gnu_mirror"])
            settings["toolchain_url"] = config.get("download", "toolchain_url", fallback=defaults["toolchain_url"])
            settings["toolchain_tarball"] = config.get(
                "download", "toolchain_tarball", fallback=defaults["toolchain_tarball"])
            settings["timeout"] = config.getint("download", "timeout", fallback=defaults["timeout"])
        if config.has_section("build"):
            settings["jobs"] = config.getint("build", "jobs", fallback=defaults["jobs"])
            settings["arch_flags"] = config.get("build", "arch_flags", fallback=defaults["arch_flags"])
            settings["target"] = config.get("build", "target", fallback=defaults["target"])
    except (configparser.Error, ValueError) as e:
        print(f"warning: failed to parse {path}: {e}", file=sys.stderr)
        return defaults

    return settings


def _git_config(key):
    try:
        result = subprocess.run(
            ["git", "config", "--get", key],
            capture_output=True, text=True,
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def package_version(now: datetime | None = None) -> str:
    """Identify the builder for ``--with-pkgversion``.

    Uses the git identity when both user.name and user.email are
    configured, otherwise hostname and timestamp.
    """
    name = _git_config("user.name")
    email = _git_config("user.email")
    if name and email:
        return f"{name} <{email}>"
    now = now or datetime.now()
    return f"{socket.gethostname()} {now.strftime('%Y/%m/%d %H:%M:%S')}"


@dataclass(frozen=True)
class BuildConfiguration:
    version: str
    package_version: str
    arch_flags: str = ARCH_FLAGS
    target: str = BUILD_TARGET
    jobs: int = 1
    gnu_mirror: str = GNU_MIRROR
    toolchain_url: str = TOOLCHAIN_URL
    toolchain_tarball: str = TOOLCHAIN_TARBALL
    download_timeout: int = DOWNLOAD_TIMEOUT

    @property
    def component(self) -> str:
        return COMPONENT

    @property
    def name(self) -> str:
        return f"{COMPONENT}-{self.version}"

    @property
    def source_tarball(self) -> str:
        return f"{self.name}.tar.xz"

    @property
    def source_url_root(self) -> str:
        return f"{self.gnu_mirror}/{COMPONENT}"

    @classmethod
    def from_settings(cls, version: str | None, settings: dict,
                      pkgversion: str | None = None) -> "BuildConfiguration":
        return cls(
            version=version or DEFAULT_VERSION,
            package_version=pkgversion if pkgversion is not None else package_version(),
            arch_flags=settings["arch_flags"],
            target=settings["target"],
            jobs=settings["jobs"],
            gnu_mirror=settings["gnu_mirror"],
            toolchain_url=settings["toolchain_url"],
            toolchain_tarball=settings["toolchain_tarball"],
            download_timeout=settings["timeout"],
        )
