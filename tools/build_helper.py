"""Configure and compile the unpacked source tree.

Both steps run out of tree in the build directory with the sanitized
toolchain environment.  A failing tool is fatal: its exit status is
propagated unchanged and nothing is retried.
"""

import os
import shutil
import subprocess

from errors import ExternalToolFailure


def run_command(cmd, cwd, env, nice=False):
    """Run *cmd* to completion, raising ExternalToolFailure on non-zero exit.

    With *nice*, the command is prefixed with ``nice`` when it can be
    found on the PATH of *env*.
    """
    cmd = [str(c) for c in cmd]
    if nice:
        nice_bin = shutil.which("nice", path=env.get("PATH"))
        if nice_bin:
            cmd = [nice_bin] + cmd
    result = subprocess.run(cmd, cwd=cwd, env=env)
    if result.returncode != 0:
        code = result.returncode
        if code < 0:
            # killed by a signal
            code = 128 - code
        raise ExternalToolFailure(cmd, code)
    return result


def configure_args(config, layout):
    """Native build: build, host and target triples are all the same."""
    return [
        f"--prefix={layout.install_dir}",
        "--disable-nls",
        "--disable-gprofng",
        f"--build={config.target}",
        f"--target={config.target}",
        f"--host={config.target}",
        f"--with-pkgversion={config.package_version}",
    ]


def configure(config, layout, env):
    script = layout.source_tree / "configure"
    if not script.is_file():
        raise ExternalToolFailure([str(script)], 127)
    if not os.access(script, os.X_OK):
        os.chmod(script, os.stat(script).st_mode | 0o755)
    return run_command([script] + configure_args(config, layout), layout.build_dir, env)


def make_flags(jobs):
    return ["-j", str(jobs)]


def build(config, layout, env):
    return run_command(["make"] + make_flags(config.jobs), layout.build_dir, env, nice=True)
