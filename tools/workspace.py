"""Workspace layout and directory setup.

All paths hang off the directory the build is started from.  Cache
directories and the toolchain directory survive between runs; the build
and source directories must not, so their presence is treated as a stale
workspace from an earlier failed run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from build_config import BuildConfiguration
from errors import DirectoryCreationError, WorkspaceConflict


@dataclass(frozen=True)
class WorkspaceLayout:
    install_dir: Path
    build_dir: Path
    source_dir: Path
    tarball_dir: Path
    toolchain_tarball_dir: Path
    toolchain_dir: Path
    version: str

    @classmethod
    def from_config(cls, config: BuildConfiguration, cwd: Path | str) -> "WorkspaceLayout":
        root = Path(cwd).absolute()
        return cls(
            install_dir=root / "stage" / config.name,
            build_dir=root / f"{config.name}_build",
            source_dir=root / f"{config.name}_source",
            tarball_dir=root / f"{config.name}_taballs",
            toolchain_tarball_dir=root / "gcc_taballs",
            toolchain_dir=root / "gcc",
            version=config.version,
        )

    @property
    def source_tree(self) -> Path:
        """Top-level directory of the unpacked release tarball."""
        return self.source_dir / f"binutils-{self.version}"

    @property
    def toolchain_bin(self) -> Path:
        return self.toolchain_dir / "bin"

    @property
    def cc(self) -> Path:
        return self.toolchain_bin / "gcc"

    @property
    def cxx(self) -> Path:
        return self.toolchain_bin / "g++"

    @property
    def sentinel(self) -> Path:
        return self.cc

    def directories(self) -> list[Path]:
        return [
            self.install_dir,
            self.build_dir,
            self.source_dir,
            self.tarball_dir,
            self.toolchain_tarball_dir,
            self.toolchain_dir,
        ]


def check_workspace(layout: WorkspaceLayout) -> None:
    """Refuse to reuse build or source directories from a previous run."""
    for d in (layout.build_dir, layout.source_dir):
        if d.is_dir():
            raise WorkspaceConflict(d)


def create_workspace(layout: WorkspaceLayout) -> list[Path]:
    """Validate the workspace and create every directory the build uses.

    Returns the directories that were newly created.
    """
    check_workspace(layout)

    created = []
    for d in layout.directories():
        if d.is_dir():
            continue
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(d, e.strerror or e) from e
        print(f"created directory: {d}")
        created.append(d)
    return created
