"""Image materialization — pull referenced images and save them into the layout."""

import logging
import os
import subprocess
import tempfile
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Protocol

from appexport.core.constants import PULL_TIMEOUT_SECONDS
from appexport.pacts.errors import PullError, SaveError
from appexport.pacts.types import ImageTarget, ImageUnit

log = logging.getLogger(__name__)


class ImageClient(Protocol):
    """Registry capability. Implementations raise on failure."""

    def pull(self, ref: str, user: str, password: str, timeout: int) -> None: ...

    def save(self, dest: str, refs: list[str]) -> None: ...


def _registry_host(ref: str) -> str | None:
    """Registry host of an image reference, or None for Docker Hub."""
    first = ref.split("/", 1)[0]
    if "/" in ref and ("." in first or ":" in first or first == "localhost"):
        return first
    return None


class DockerCLIClient:
    """ImageClient backed by the ``docker`` command line.

    An authenticated pull logs in against a throwaway ``DOCKER_CONFIG``
    directory, so credentials never land in the host's docker config.
    Login and pull share one deadline of *timeout* seconds.
    """

    def __init__(self, docker: str = "docker", clock=time.monotonic):
        self.docker = docker
        self.clock = clock

    def _run(self, cmd: list[str], timeout: float | None = None,
             stdin: str | None = None, env: dict | None = None) -> None:
        result = subprocess.run(cmd, input=stdin, capture_output=True, text=True,
                                timeout=timeout, env=env, check=False)
        if result.returncode != 0:
            raise RuntimeError(f"{' '.join(cmd[:2])} failed: "
                               f"{result.stderr.strip() or result.stdout.strip()}")

    def pull(self, ref: str, user: str, password: str, timeout: int) -> None:
        if not user:
            self._run([self.docker, "pull", ref], timeout=timeout)
            return
        deadline = self.clock() + timeout
        with tempfile.TemporaryDirectory(prefix="appexport-docker-") as config_dir:
            env = {**os.environ, "DOCKER_CONFIG": config_dir}
            cmd = [self.docker, "login", "--username", user, "--password-stdin"]
            host = _registry_host(ref)
            if host:
                cmd.append(host)
            self._run(cmd, timeout=timeout, stdin=password, env=env)
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise RuntimeError(f"pull of {ref} timed out after login ({timeout}s)")
            self._run([self.docker, "pull", ref], timeout=remaining, env=env)

    def save(self, dest: str, refs: list[str]) -> None:
        self._run([self.docker, "save", "-o", dest, *refs])


class ImageMaterializer:
    """Pull and save images through an ImageClient, with export error semantics."""

    def __init__(self, client: ImageClient, timeout: int = PULL_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    def pull(self, unit: ImageUnit) -> None:
        creds = unit.credentials
        try:
            self.client.pull(unit.ref, creds.hub_user, creds.hub_password, self.timeout)
        except Exception as exc:  # pylint: disable=broad-except
            raise PullError("pull", f"{unit.name} ({unit.ref}): {exc}") from exc
        log.info("pulled image %s for %s", unit.ref, unit.name)

    def save(self, dest: str, refs: list[str]) -> None:
        """Save *refs* into one archive at *dest*. An empty list is a no-op."""
        if not refs:
            return
        start = time.monotonic()
        try:
            os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
            self.client.save(dest, list(refs))
        except Exception as exc:  # pylint: disable=broad-except
            raise SaveError("save", f"{', '.join(refs)} -> {dest}: {exc}") from exc
        log.info("saved %d image(s) to %s in %.1fs", len(refs), dest,
                 time.monotonic() - start)

    def pull_all(self, units: list[ImageUnit], workers: int = 1) -> None:
        """Pull every unit. With workers > 1 pulls run concurrently and the first
        failure is raised at once: queued pulls are cancelled and pulls already
        running are not waited for."""
        if workers <= 1 or len(units) <= 1:
            for unit in units:
                self.pull(unit)
            return
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pull")
        try:
            futures = [pool.submit(self.pull, unit) for unit in units]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            failed = next((f for f in futures if f in done and f.exception()), None)
            if failed is not None:
                raise failed.exception()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def materialize(self, targets: list[ImageTarget], workers: int = 1) -> list[str]:
        """Pull every image of every target, then save each target.

        Returns the paths of the archives written; targets without images
        produce nothing.
        """
        self.pull_all([u for t in targets for u in t.units], workers=workers)
        written = []
        for target in targets:
            if target.units:
                self.save(target.path, target.refs)
                written.append(target.path)
        return written
