"""Environment sanitization for the configure/build/install steps.

The host shell's environment must not leak into the build.  Rather than
picking a whitelist, every variable is swept and only USER, HOME and a
fixed minimal PATH are restored; the compiler variables are layered on
top afterwards.

Nothing here touches os.environ.  The sanitized environment is a plain
dict handed to subprocess via env=.
"""

import os
import re
import sys

from build_config import BuildConfiguration

# Matches every legal variable name, so the sweep clears everything.
SAFE_NAME = re.compile(r"^[0-9A-Za-z_]*$")

MINIMAL_PATH = "/usr/local/bin:/usr/bin:/bin:/sbin:/usr/sbin"

# Vars carried across the sweep.
_RESTORED = ("USER", "HOME")

_STATIC_RUNTIME = "-static-libgcc -static-libstdc++"


def sanitize_env(environ=None):
    """Return the minimal build environment derived from *environ*.

    *environ* defaults to os.environ and is never modified.
    """
    if environ is None:
        environ = os.environ
    saved = {key: environ[key] for key in _RESTORED if key in environ}

    leftover = dict(environ)
    for name in list(leftover):
        if SAFE_NAME.match(name):
            leftover.pop(name, None)
    if leftover:
        print(f"warning: dropping variables with unusual names: {', '.join(sorted(leftover))}",
              file=sys.stderr)

    env = dict(saved)
    env["PATH"] = MINIMAL_PATH
    return env


def compile_flags(arch_flags):
    """CFLAGS and CXXFLAGS.  C++ is compiled without -Wall."""
    cflags = f"-O2 -Wall {arch_flags} {_STATIC_RUNTIME}"
    cxxflags = f" {cflags} ".replace(" -Wall ", " ").strip()
    return cflags, cxxflags


def toolchain_env(base, config: BuildConfiguration, layout):
    """Layer the prebuilt toolchain on top of a sanitized environment."""
    env = dict(base)
    path = env.get("PATH", "")
    env["PATH"] = str(layout.toolchain_bin) + (":" + path if path else "")
    cflags, cxxflags = compile_flags(config.arch_flags)
    env["CC"] = str(layout.cc)
    env["CXX"] = str(layout.cxx)
    env["CFLAGS"] = cflags
    env["CXXFLAGS"] = cxxflags
    env["LDFLAGS"] = _STATIC_RUNTIME
    return env


def format_env(env):
    return "\n".join(f"{key}={env[key]}" for key in sorted(env))


def print_env(env):
    print("sanitised shell environment follows:")
    print(format_env(env))
