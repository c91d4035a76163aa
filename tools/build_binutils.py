#!/usr/bin/env python3
"""Build GNU binutils from source with a pinned prebuilt GCC.

Stages run strictly in order and any failure is fatal:

  1. create the workspace (refusing stale build/source dirs)
  2. download the binutils release and the GCC toolchain into the caches
  3. unpack both (the toolchain only if bin/gcc is missing)
  4. sanitize the environment
  5. configure and make with the toolchain
  6. make install-strip, pack the prefix into a tarball
  7. remove the build and source trees

Downloaded tarballs and the unpacked toolchain are kept for later runs.

Usage:
    build-binutils            # default version
    build-binutils 2.43
"""

from pathlib import Path

import click

from _env import print_env, sanitize_env, toolchain_env
from build_config import DEFAULT_VERSION, BuildConfiguration, read_build_settings
from build_helper import build, configure
from extract import toolchain_present, unpack_toolchain, untar
from fetch_helper import ArchiveAsset, default_downloaders, fetch_all
from install_helper import artifact_name, cleanup, glibc_version, install, pack
from lifecycle import banner, build_session
from workspace import WorkspaceLayout, create_workspace


def archive_assets(config, layout):
    """The source release and the prebuilt toolchain, in download order."""
    return [
        ArchiveAsset(config.source_url_root, config.source_tarball, layout.tarball_dir),
        ArchiveAsset(config.toolchain_url, config.toolchain_tarball, layout.toolchain_tarball_dir),
    ]


def run_pipeline(config, layout, downloaders=None, environ=None):
    """Run every stage for *config* in *layout*.  Returns the tarball path."""
    banner("Creating directories")
    create_workspace(layout)

    banner("Downloading source code")
    source, toolchain = archive_assets(config, layout)
    if downloaders is None:
        downloaders = default_downloaders(config.download_timeout)
    required = [source.path]
    if not toolchain_present(layout.toolchain_dir):
        required.append(toolchain.path)
    fetch_all([source, toolchain], required=required, downloaders=downloaders)

    banner("Unpacking source code")
    untar(layout.source_dir, source.path)
    unpack_toolchain(layout.toolchain_dir, toolchain.path)

    banner("Cleaning environment")
    env = sanitize_env(environ)
    print_env(env)

    banner("Configuring source code")
    env = toolchain_env(env, config, layout)
    configure(config, layout, env)
    build(config, layout, env)

    banner("Installing")
    install(layout, env)
    name = artifact_name(config, libc=glibc_version(env))
    tarball = pack(layout.install_dir, name)
    cleanup(layout)

    banner("Complete")
    return tarball


@click.command()
@click.argument("version", required=False, default=DEFAULT_VERSION)
def main(version: str):
    """Download, build and package binutils VERSION (default 2.42)."""
    with build_session():
        cwd = Path.cwd()
        config = BuildConfiguration.from_settings(version, read_build_settings(cwd))
        layout = WorkspaceLayout.from_config(config, cwd)
        tarball = run_pipeline(config, layout)
        click.echo(f"Package: {tarball}")


if __name__ == "__main__":
    main()
