import hashlib
import os

from appexport.core.manifest import (
    dir_entry, file_entry, generate_filelist, sha1_file, write_filelist,
)


def _write(path, data: bytes):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def test_file_entry_matches_persisted_bytes(tmp_path):
    data = b'{"apps": [], "id": "/cpk.rbd.web-1.0"}'
    path = tmp_path / "image.json"
    path.write_bytes(data)
    expected = f"F,/image.json,{len(data)},0666,{hashlib.sha1(data).hexdigest()}"
    assert file_entry(str(path), "/image.json") == expected


def test_sha1_streams_large_files(tmp_path):
    data = os.urandom(3 * 1024 * 1024 + 17)
    path = tmp_path / "big.tar"
    path.write_bytes(data)
    assert sha1_file(str(path)) == hashlib.sha1(data).hexdigest()


def test_dir_entry_format():
    assert dir_entry("/image", 0) == "D,/image,0,0777"


def test_filelist_files_first_then_dirs(tmp_path):
    root = tmp_path / "files"
    _write(str(root / "image.json"), b"{}")
    _write(str(root / "image" / "cpk.rbd.web_1.0.tar"), b"x" * 10)
    lines = generate_filelist(str(root))
    assert [line.split(",")[1] for line in lines] == [
        "/image.json", "/image/cpk.rbd.web_1.0.tar", "/image"]
    assert lines[1] == f"F,/image/cpk.rbd.web_1.0.tar,10,0666,{hashlib.sha1(b'x' * 10).hexdigest()}"
    assert lines[2] == "D,/image,10,0777"


def test_filelist_empty_dir_and_exclude(tmp_path):
    root = tmp_path / "unit"
    (root / "image").mkdir(parents=True)
    _write(str(root / "filelist"), b"old")
    lines = generate_filelist(str(root), exclude=("filelist",))
    assert lines == ["D,/image,0,0777"]


def test_write_filelist_has_no_trailing_newline(tmp_path):
    path = tmp_path / "filelist"
    write_filelist(str(path), ["F,/a,1,0666,abc", "D,/b,0,0777"])
    assert path.read_text() == "F,/a,1,0666,abc\nD,/b,0,0777"
