"""Filelist generation — size, permissions and SHA-1 of packaged files."""

import hashlib
import os

from appexport.core.constants import FILE_PERMISSIONS, DIR_PERMISSIONS

_CHUNK_SIZE = 1024 * 1024


def sha1_file(path: str) -> str:
    """Streamed SHA-1 hex digest; never reads the whole file at once."""
    h = hashlib.sha1()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def file_entry(path: str, rel: str) -> str:
    """``F,<path>,<size>,<perm>,<sha1>`` for a file as persisted on disk."""
    size = os.stat(path).st_size
    return f"F,{rel},{size},{FILE_PERMISSIONS},{sha1_file(path)}"


def dir_entry(rel: str, size: int) -> str:
    return f"D,{rel},{size},{DIR_PERMISSIONS}"


def _rel(root: str, path: str) -> str:
    """Installer path: rooted at ``/``, forward slashes."""
    return "/" + os.path.relpath(path, root).replace(os.sep, "/")


def generate_filelist(root: str, exclude: tuple = ()) -> list[str]:
    """Filelist lines for every file and directory under *root*.

    Files come first, then directories, each group sorted by path. A
    directory's size is the total size of the files beneath it. Names in
    *exclude* are skipped at the top level of *root*.
    """
    files: list[tuple[str, str]] = []
    dir_sizes: dict[str, int] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        if dirpath == root:
            dirnames[:] = [d for d in dirnames if d not in exclude]
            filenames = [f for f in filenames if f not in exclude]
        else:
            dir_sizes.setdefault(_rel(root, dirpath), 0)
        for name in filenames:
            full = os.path.join(dirpath, name)
            files.append((_rel(root, full), full))

    entries = []
    for rel, full in sorted(files):
        entries.append(file_entry(full, rel))
        size = os.stat(full).st_size
        for d in dir_sizes:
            if rel.startswith(d + "/"):
                dir_sizes[d] += size
    entries.extend(dir_entry(d, dir_sizes[d]) for d in sorted(dir_sizes))
    return entries


def write_filelist(path: str, entries: list[str]) -> None:
    """Write entries one per line (no trailing newline, as the installer reads it)."""
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(entries))
