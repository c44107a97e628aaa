import threading

import pytest

from appexport.pacts.types import (
    ApplicationDescriptor, Component, K8sResource, Plugin, RegistryCredentials,
)


class FakeImageClient:
    """Records pulls/saves; a save writes the joined refs as the archive bytes."""

    def __init__(self, fail_pull=(), fail_save=False, write=True, block=None):
        self.fail_pull = set(fail_pull)
        self.fail_save = fail_save
        self.write = write
        self.block = block
        self.pulls = []
        self.saves = []
        self._lock = threading.Lock()

    def pull(self, ref, user, password, timeout):
        with self._lock:
            self.pulls.append((ref, user, password, timeout))
        if ref in self.fail_pull:
            raise RuntimeError(f"unauthorized: {ref}")
        if self.block is not None:
            self.block.wait(0.5)

    def save(self, dest, refs):
        self.saves.append((dest, list(refs)))
        if self.fail_save:
            raise OSError("no space left on device")
        if self.write:
            with open(dest, "wb") as f:
                f.write("\n".join(refs).encode("utf-8"))

    @property
    def pulled_refs(self):
        return [p[0] for p in self.pulls]


def make_component(name="web", image="registry.example.com/team/web:1.0", **kw):
    kw.setdefault("credentials", RegistryCredentials(
        hub_url="registry.example.com", hub_user="deployer", hub_password="s3cret-pw"))
    return Component(name=name, image=image, **kw)


def make_descriptor(**kw):
    kw.setdefault("name", "demo")
    kw.setdefault("version", "1.0")
    kw.setdefault("components", [make_component()])
    return ApplicationDescriptor(**kw)


DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {name}
  namespace: prod
  resourceVersion: "4711"
  uid: 0b7c6f3e-1111-2222-3333-444455556666
  creationTimestamp: "2024-05-01T10:00:00Z"
  labels:
    app: {name}
spec:
  replicas: 2
"""

SERVICE = """\
apiVersion: v1
kind: Service
metadata:
  name: web
  namespace: prod
  uid: 9a9a9a9a-0000-0000-0000-000000000000
spec:
  ports:
  - port: 80
"""


@pytest.fixture
def client():
    return FakeImageClient()


@pytest.fixture
def dirs(tmp_path):
    """(scratch_dir, output_dir) — separate roots, scratch not yet created."""
    return str(tmp_path / "work"), str(tmp_path / "out")


@pytest.fixture
def resources():
    return [
        K8sResource(content=DEPLOYMENT.format(name="api"), kind="Deployment", name="api"),
        K8sResource(content=SERVICE, kind="Service", name="web"),
        K8sResource(content=DEPLOYMENT.format(name="worker"), kind="Deployment", name="worker"),
    ]


@pytest.fixture
def plugin():
    return Plugin(name="mesh", image="registry.example.com/infra/mesh:2",
                  credentials=RegistryCredentials(hub_user="plug-user",
                                                  hub_password="plug-pw"))
