"""Archival — per-unit bzip2 archives and the final gzip-tar bundle.

Archives are reproducible: members are added in sorted order with owner,
mtime and mode normalized, and the gzip header carries no timestamp or name.
"""

import gzip
import logging
import os
import shutil
import tarfile

from appexport.pacts.errors import PackagingError

log = logging.getLogger(__name__)


def _normalize(ti: tarfile.TarInfo) -> tarfile.TarInfo:
    ti.uid = 0
    ti.gid = 0
    ti.uname = ""
    ti.gname = ""
    ti.mtime = 0
    ti.mode = 0o755 if ti.isdir() else 0o644
    return ti


def _add_tree(tar: tarfile.TarFile, src_dir: str, arcroot: str) -> None:
    """Add *src_dir* as *arcroot*, walking in sorted order."""
    tar.add(src_dir, arcname=arcroot, recursive=False, filter=_normalize)
    for dirpath, dirnames, filenames in os.walk(src_dir):
        dirnames.sort()
        for name in sorted(dirnames + filenames):
            full = os.path.join(dirpath, name)
            rel = os.path.relpath(full, src_dir).replace(os.sep, "/")
            tar.add(full, arcname=f"{arcroot}/{rel}", recursive=False, filter=_normalize)


def compress_subtree(src_dir: str, dest_path: str) -> str:
    """Compress *src_dir* into a standalone bzip2 tar at *dest_path*, then delete *src_dir*.

    Members are rooted at the directory's base name. Returns *dest_path*.
    """
    arcroot = os.path.basename(os.path.normpath(src_dir))
    try:
        with tarfile.open(dest_path, "w:bz2", format=tarfile.PAX_FORMAT) as tar:
            _add_tree(tar, src_dir, arcroot)
        shutil.rmtree(src_dir)
    except (OSError, tarfile.TarError) as exc:
        raise PackagingError("compress", f"{src_dir} -> {dest_path}: {exc}") from exc
    log.debug("compressed %s into %s", src_dir, dest_path)
    return dest_path


def bundle(src_dir: str, output_dir: str, package_name: str) -> str:
    """Write the whole of *src_dir* as gzip tar ``<output_dir>/<package_name>``.

    The archive is built under a ``.partial`` name and renamed into place, so a
    failure never leaves a finished-looking artifact. Returns the final path.
    """
    final_path = os.path.join(output_dir, package_name)
    partial_path = final_path + ".partial"
    arcroot = os.path.basename(os.path.normpath(src_dir))
    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(partial_path, "wb") as raw, \
                gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz, \
                tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
            _add_tree(tar, src_dir, arcroot)
        os.replace(partial_path, final_path)
    except (OSError, tarfile.TarError) as exc:
        if os.path.exists(partial_path):
            os.remove(partial_path)
        raise PackagingError("bundle", f"{package_name}: {exc}") from exc
    log.info("wrote %s", final_path)
    return final_path
