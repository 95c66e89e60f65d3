"""
Zip extraction into a deploy target.

The archive comes from an upstream build and is treated as untrusted:
every entry name is resolved against the target directory and entries
that would land outside it (zip-slip) are skipped with a warning. A
corrupt container aborts the whole extraction. There is no all-or-nothing
guarantee: a failure part way through leaves the files already written.
"""

import io
import logging
import os
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath, PureWindowsPath

from lanchanto.errors import CorruptArchive, ExtractError

logger = logging.getLogger(__name__)

COPY_BUFFER = 64 * 1024


def safe_destination(target: Path, name: str) -> Path | None:
    """
    Resolve an archive member name under `target` (already resolved).
    Returns None when the member would escape the target or is the
    target itself.
    """
    if PurePosixPath(name).is_absolute() or PureWindowsPath(name).anchor:
        return None
    dest = (target / name).resolve()
    if dest == target or not dest.is_relative_to(target):
        return None
    return dest


def extract(archive: bytes, target_dir: str | os.PathLike) -> list[Path]:
    """
    Unpack zip bytes into target_dir, overwriting existing files.
    Returns the files written, in archive order.
    """
    target = Path(target_dir)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExtractError(f"cannot create {target}: {e}")
    target = target.resolve()

    try:
        zf = zipfile.ZipFile(io.BytesIO(archive))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as e:
        raise CorruptArchive(f"not a zip archive: {e}")

    written = []
    with zf:
        for info in zf.infolist():
            dest = safe_destination(target, info.filename)
            if dest is None:
                logger.warning("skipping unsafe archive entry %r for %s",
                               info.filename, target)
                continue

            try:
                if info.is_dir():
                    dest.mkdir(parents=True, exist_ok=True)
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(dest, "wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_BUFFER)
            except (zipfile.BadZipFile, zlib.error, EOFError,
                    NotImplementedError, RuntimeError) as e:
                raise CorruptArchive(f"{info.filename}: {e}")
            except OSError as e:
                raise ExtractError(f"cannot write {dest}: {e}")
            written.append(dest)

    logger.debug("extracted %d files into %s", len(written), target)
    return written
