"""Archive unpacker for release and toolchain tarballs.

Compression is chosen strictly from the filename suffix:
.xz -> LZMA, .bz2 -> bzip2, .gz -> gzip.  Anything else is rejected
before the archive is opened, so nothing is extracted on that path.
"""

import os
import tarfile

from errors import BuildError, MissingArchive, UnsupportedArchiveFormat


# suffix -> tarfile mode
_FORMATS = {
    "xz":  "r:xz",
    "bz2": "r:bz2",
    "gz":  "r:gz",
}


def detect_compression(path):
    """Return the compression name for *path*, or None if unsupported."""
    name = os.path.basename(str(path))
    for suffix in _FORMATS:
        if name.endswith("." + suffix):
            return suffix
    return None


def untar(dest_dir, archive):
    """Extract *archive* into the existing directory *dest_dir*."""
    comp = detect_compression(archive)
    if comp is None:
        raise UnsupportedArchiveFormat(archive)
    if not os.path.isfile(archive):
        raise MissingArchive(archive)
    if not os.path.isdir(dest_dir):
        raise BuildError(f"extraction directory not found: {dest_dir}")

    output = os.path.abspath(dest_dir)
    print(f"Extracting {archive} -> {output}")
    with tarfile.open(archive, _FORMATS[comp]) as tf:
        for member in tf.getmembers():
            # Security: prevent path traversal
            dest = os.path.abspath(os.path.join(output, member.name))
            if dest != output and not dest.startswith(output + os.sep):
                raise BuildError(f"path traversal detected: {member.name}")
            tf.extract(member, output, filter="tar")


def toolchain_present(toolchain_dir):
    gcc = os.path.join(toolchain_dir, "bin", "gcc")
    return os.path.isfile(gcc) and os.access(gcc, os.X_OK)


def unpack_toolchain(toolchain_dir, archive):
    """Unpack the prebuilt compiler unless ``bin/gcc`` is already there.

    Returns True if the archive was extracted.
    """
    if toolchain_present(toolchain_dir):
        print(f"toolchain already unpacked: {toolchain_dir}")
        return False
    untar(toolchain_dir, archive)
    return True

