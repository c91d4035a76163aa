"""Install, package and clean up after a successful build.

The install prefix is emptied first so the tarball reflects exactly this
run.  The tarball is named after the host it was built on:

    binutils-<version>-<os>-<arch>[-glibc-<libc>+].tar.xz

and lands next to the install prefix.
"""

import os
import platform
import re
import shutil
import subprocess
import tarfile
from pathlib import Path

from build_helper import run_command

_LIBC_VERSION_RE = re.compile(r"^[0-9]+(\.[0-9]+)+$")


def reset_install_dir(install_dir):
    install_dir = Path(install_dir)
    if install_dir.is_dir():
        shutil.rmtree(install_dir)
        install_dir.mkdir(parents=True)


def install(layout, env):
    """Install with debug symbols stripped."""
    reset_install_dir(layout.install_dir)
    return run_command(["make", "install-strip"], layout.build_dir, env, nice=True)


def parse_ldd_version(output):
    """Pull the libc version from the first line of ``ldd --version``."""
    lines = output.splitlines()
    if not lines or not lines[0].startswith("ldd "):
        return None
    version = lines[0].rsplit(" ", 1)[-1].strip()
    if _LIBC_VERSION_RE.match(version):
        return version
    return None


def glibc_version(env=None):
    """Best effort: None when ldd is missing or reports something odd."""
    env = dict(env or {})
    env["LC_ALL"] = "C"
    try:
        result = subprocess.run(
            ["ldd", "--version"],
            capture_output=True, text=True, env=env,
        )
    except OSError:
        return None
    if result.returncode != 0:
        return None
    return parse_ldd_version(result.stdout)


def artifact_name(config, system=None, machine=None, libc=None):
    system = system if system is not None else platform.system()
    machine = machine if machine is not None else platform.machine()
    name = f"{config.name}-{system.lower()}-{machine}"
    if libc and _LIBC_VERSION_RE.match(libc):
        name = f"{name}-glibc-{libc}+"
    return name


def pack(install_dir, name):
    """Archive the contents of *install_dir* as ``../<name>.tar.xz``."""
    install_dir = Path(install_dir)
    output = install_dir.parent / f"{name}.tar.xz"

    def _list(info):
        print(info.name)
        return info

    with tarfile.open(output, "w:xz") as tf:
        tf.add(install_dir, arcname=".", filter=_list)

    size_mb = os.path.getsize(output) / (1024 * 1024)
    print(f"Archive:  {output}")
    print(f"Size:     {size_mb:.1f} MB")
    return output


def cleanup(layout):
    """Remove the temporary build and source trees."""
    for d in (layout.build_dir, layout.source_dir):
        if d.exists():
            shutil.rmtree(d)
