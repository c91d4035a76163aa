"""Download release archives into the local tarball caches.

A file already present in its cache directory is never fetched again.
There is no checksum verification: a corrupt cached file surfaces later,
when it is unpacked.  A failed download deletes whatever partial file it
left behind so the next run starts from a missing-file check rather than
trying to resume.
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

import httpx
from tqdm import tqdm

from errors import MissingArchive


@dataclass(frozen=True)
class ArchiveAsset:
    """A downloadable archive: ``<url_root>/<filename>`` into ``dest_dir``."""
    url_root: str
    filename: str
    dest_dir: Path

    @property
    def url(self) -> str:
        return f"{self.url_root.rstrip('/')}/{self.filename}"

    @property
    def path(self) -> Path:
        return Path(self.dest_dir) / self.filename


class HttpxDownloader:
    """In-process HTTP client with a progress bar."""

    name = "httpx"

    def __init__(self, timeout: int = 30, progress: bool = True):
        self.timeout = timeout
        self.progress = progress

    def available(self) -> bool:
        return True

    def download(self, url: str, dest: Path) -> bool:
        print(f"Downloading {url} -> {dest}")
        try:
            with httpx.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length", 0)) or None
                with open(dest, "wb") as f, tqdm(
                    total=total, unit="B", unit_scale=True,
                    desc=dest.name, disable=not self.progress,
                ) as bar:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
                        bar.update(len(chunk))
        except (httpx.HTTPError, OSError) as e:
            print(f"warning: download of {url} failed: {e}", file=sys.stderr)
            return False
        return True


class CurlDownloader:
    """Host ``curl`` binary."""

    name = "curl"

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which("curl") is not None

    def download(self, url: str, dest: Path) -> bool:
        cmd = ["curl", "-fL", "--connect-timeout", str(self.timeout), "-o", str(dest), url]
        result = subprocess.run(cmd)
        if result.returncode != 0:
            print(f"warning: curl exited with code {result.returncode} for {url}", file=sys.stderr)
            return False
        return True


def default_downloaders(timeout: int = 30) -> list:
    """Downloaders in preference order."""
    return [HttpxDownloader(timeout=timeout), CurlDownloader(timeout=timeout)]


def download(asset: ArchiveAsset, downloaders: list) -> bool:
    """Fetch *asset* unless it is already cached.

    Uses the first available downloader only.  The downloader writes to
    ``<file>.tmp``, which is moved into place only after it succeeds.
    Returns True when the file is present afterwards.
    """
    dest = asset.path
    if dest.exists():
        print(f"already downloaded: {asset.filename}  '{dest}'")
        return True

    for downloader in downloaders:
        if not downloader.available():
            continue
        temp_path = dest.with_suffix(dest.suffix + ".tmp")
        try:
            if downloader.download(asset.url, temp_path):
                temp_path.rename(dest)
                return True
            return False
        finally:
            # Drop partial output, also on interrupt; a later run re-downloads from scratch.
            temp_path.unlink(missing_ok=True)

    print(f"warning: no download tool available for {asset.url}", file=sys.stderr)
    return False


def verify_archives(paths) -> None:
    for path in paths:
        if not Path(path).is_file():
            raise MissingArchive(path)


def fetch_all(assets: list[ArchiveAsset], required: list[Path], downloaders: list | None = None) -> None:
    """Download every asset, then insist that the *required* files exist."""
    if downloaders is None:
        downloaders = default_downloaders()
    for asset in assets:
        download(asset, downloaders)
    verify_archives(required)
