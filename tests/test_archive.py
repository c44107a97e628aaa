import os
import tarfile

import pytest

from appexport.core.archive import bundle, compress_subtree
from appexport.pacts.errors import PackagingError


def _tree(root, mtime=None):
    os.makedirs(os.path.join(root, "sub"), exist_ok=True)
    for rel, data in (("b.txt", b"bee"), ("a.txt", b"ay"), ("sub/c.bin", b"\x00\x01")):
        path = os.path.join(root, rel)
        with open(path, "wb") as f:
            f.write(data)
        if mtime is not None:
            os.utime(path, (mtime, mtime))


def test_compress_subtree_removes_source(tmp_path):
    unit = tmp_path / "cpk.rbd.web_v1.0_amd64"
    _tree(str(unit))
    dest = str(unit) + ".cpk"
    assert compress_subtree(str(unit), dest) == dest
    assert not unit.exists()
    with tarfile.open(dest, "r:bz2") as tar:
        names = tar.getnames()
    assert names == [
        "cpk.rbd.web_v1.0_amd64",
        "cpk.rbd.web_v1.0_amd64/a.txt",
        "cpk.rbd.web_v1.0_amd64/b.txt",
        "cpk.rbd.web_v1.0_amd64/sub",
        "cpk.rbd.web_v1.0_amd64/sub/c.bin",
    ]


def test_bundle_is_reproducible(tmp_path):
    first, second = tmp_path / "a" / "work", tmp_path / "b" / "work"
    _tree(str(first), mtime=1_000_000)
    _tree(str(second), mtime=2_000_000)
    p1 = bundle(str(first), str(tmp_path / "out1"), "demo-1.0-cpk.tar.gz")
    p2 = bundle(str(second), str(tmp_path / "out2"), "demo-1.0-cpk.tar.gz")
    with open(p1, "rb") as f1, open(p2, "rb") as f2:
        assert f1.read() == f2.read()
    with tarfile.open(p1, "r:gz") as tar:
        member = tar.getmember("work/a.txt")
    assert (member.mtime, member.uid, member.uname, member.mode) == (0, 0, "", 0o644)


def test_bundle_failure_leaves_no_artifact(tmp_path):
    out = tmp_path / "out"
    with pytest.raises(PackagingError):
        bundle(str(tmp_path / "missing"), str(out), "demo-1.0-cpk.tar.gz")
    assert os.listdir(out) == []


def test_bundle_replaces_existing_artifact(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    (out / "demo-1.0-cpk.tar.gz").write_bytes(b"stale")
    src = tmp_path / "work"
    _tree(str(src))
    path = bundle(str(src), str(out), "demo-1.0-cpk.tar.gz")
    assert tarfile.is_tarfile(path)
    assert sorted(os.listdir(out)) == ["demo-1.0-cpk.tar.gz"]
