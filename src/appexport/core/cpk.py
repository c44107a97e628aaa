"""Installer package (CPK) format — one compressed unit per component.

Each component gets a ``cpk.rbd.<name>_v<version>_<arch>`` directory filled
by an ordered list of steps, is compressed to ``<dir>.cpk`` and removed.
The outer bundle holds the ``.cpk`` units, ``metadata.json`` and, in
offline mode, ``plugin-images.tar``.
"""

import dataclasses
import logging
import os

import yaml

from appexport.core.archive import compress_subtree
from appexport.core.constants import (
    CPK_PREFIX, CPK_EXTENSION, DEFAULT_CPUS, FILELIST_NAME,
)
from appexport.core.manifest import generate_filelist, write_filelist
from appexport.io.output import write_json, write_metadata
from appexport.pacts.errors import ExportError, LayoutError
from appexport.pacts.types import (
    Component, ExportContext, ImageTarget, PackageFormat, image_units,
)

log = logging.getLogger(__name__)

DEFAULT_NOTE = "Exported by appexport"
DEFAULT_VENDOR = {
    "description": "",
    "email": "",
    "homepage": "",
    "name": "appexport",
    "telephone": "",
}


def unit_name(component: Component, version: str) -> str:
    """``cpk.rbd.<component>_v<version>_<arch>``"""
    return f"{CPK_PREFIX}.{component.name}_v{version}_{component.arch}"


def image_archive_name(component: Component, version: str) -> str:
    return f"{CPK_PREFIX}.{component.name}_{version}.tar"


def app_id(component: Component) -> str:
    return f"/{CPK_PREFIX}.{component.name}-{component.deploy_version}"


def _health_checks(component: Component) -> list[dict]:
    checks = []
    for probe in component.probes:
        checks.append({
            "gracePeriodSeconds": probe.initial_delay_seconds,
            "ignoreHttp1xx": False,
            "intervalSeconds": probe.period_seconds,
            "maxConsecutiveFailures": probe.failure_threshold,
            "path": probe.cmd if probe.scheme == "cmd" else probe.path,
            "portIndex": probe.port,
            "protocol": probe.scheme,
            "timeoutSeconds": probe.timeout_seconds,
        })
    return checks


def image_json(component: Component) -> dict:
    """The installer's app group document for one component."""
    group_id = app_id(component)
    docker = {
        "forcePullImage": False,
        "image": component.image,
        "network": "BRIDGE",
        "parameters": None,
        "portMappings": [{
            "containerPort": port.container_port,
            "hostPort": 0,
            "labels": None,
            "name": port.name,
            "protocol": port.protocol,
            "servicePort": 0,
        } for port in component.ports] or None,
        "privileged": False,
    }
    app = {
        "cmd": component.cmd,
        "constraints": None,
        "container": {
            "docker": docker,
            "type": "DOCKER",
            "volumes": [{"containerPath": v.mount_path, "hostPath": "", "mode": "RW"}
                        for v in component.volumes] or None,
        },
        "cpus": component.cpu / 1000 if component.cpu else DEFAULT_CPUS,
        "dependencies": None,
        "disk": 0,
        "healthChecks": _health_checks(component) or None,
        # app ids are nested under their group id
        "id": group_id + group_id,
        "instances": component.scaling.step_node,
        "labels": component.labels or None,
        "env": {env.name: env.value for env in component.envs},
        "mem": component.memory,
    }
    return {"apps": [app], "id": group_id}


def package_json(component: Component, options: dict) -> dict:
    note = options.get("note", DEFAULT_NOTE)
    vendor = {**DEFAULT_VENDOR, **(options.get("vendor") or {})}
    return {
        "architecture": component.arch,
        "browser": {},
        "category": "application",
        "classification": "L0",
        "count": 5,
        "description": note,
        "genericname": component.display_name or component.name,
        "glibc": "",
        "id": f"{CPK_PREFIX}.{component.name}",
        "name": component.name,
        "news": note,
        "os": "all",
        "permission": {},
        "runtime": "",
        "scripts": {},
        "search": "",
        "secret": "",
        "size": "",
        "start": "/",
        "summary": note,
        "todo": "",
        "type": "web",
        "vendor": vendor,
        "version": component.deploy_version,
        "web": {},
    }


# --- component directory steps ---


def write_application_yml(unit_dir: str, component: Component, ctx: ExportContext) -> None:
    stub = {"id": f"{CPK_PREFIX}.{component.name}", "name": component.name,
            "version": component.deploy_version}
    with open(os.path.join(unit_dir, "application.yml"), "w", encoding="utf-8") as f:
        yaml.safe_dump(stub, f, default_flow_style=False, sort_keys=False)


def write_files_dir(unit_dir: str, component: Component, ctx: ExportContext) -> None:
    """files/image.json, files/image/ (saved image lands here when embedded) and filelist."""
    files_dir = os.path.join(unit_dir, "files")
    os.makedirs(os.path.join(files_dir, "image"), exist_ok=True)
    write_json(os.path.join(files_dir, "image.json"), image_json(component))
    # after image.json is on disk so size and digest match the persisted bytes
    write_filelist(os.path.join(unit_dir, FILELIST_NAME), generate_filelist(files_dir))


def write_icons_dir(unit_dir: str, component: Component, ctx: ExportContext) -> None:
    os.makedirs(os.path.join(unit_dir, "icons"), exist_ok=True)


def write_screenshots_dir(unit_dir: str, component: Component, ctx: ExportContext) -> None:
    os.makedirs(os.path.join(unit_dir, "screenshots"), exist_ok=True)


def write_package_json(unit_dir: str, component: Component, ctx: ExportContext) -> None:
    write_json(os.path.join(unit_dir, "package.json"), package_json(component, ctx.options))


# Each step writes a disjoint part of the unit directory
DEFAULT_STEPS = (
    write_application_yml,
    write_files_dir,
    write_icons_dir,
    write_screenshots_dir,
    write_package_json,
)


class CpkFormat(PackageFormat):
    """Installer package: per-component ``.cpk`` units in a gzip-tar bundle."""
    name = "cpk"
    suffix = "cpk"

    def __init__(self, steps=None):
        self.steps = list(DEFAULT_STEPS if steps is None else steps)

    @staticmethod
    def check_unit_names(ctx: ExportContext) -> None:
        """Raise LayoutError if two components would share a unit directory."""
        desc = ctx.descriptor
        seen: set[str] = set()
        for component in desc.components:
            unit = unit_name(component, desc.version)
            if unit in seen:
                raise LayoutError("cpk:units", f"components '{component.name}' "
                                  f"({component.arch}) collide on unit {unit}")
            seen.add(unit)

    def image_targets(self, ctx: ExportContext) -> list[ImageTarget]:
        """Each component image goes into its own unit's ``files/image/``."""
        self.check_unit_names(ctx)
        desc = ctx.descriptor
        targets = []
        for component in desc.components:
            path = os.path.join(ctx.scratch_dir, unit_name(component, desc.version),
                                "files", "image", image_archive_name(component, desc.version))
            targets.append(ImageTarget(path, image_units([component])))
        targets.append(ImageTarget(os.path.join(ctx.scratch_dir, "plugin-images.tar"),
                                   image_units(desc.plugins)))
        return targets

    def build(self, ctx: ExportContext) -> None:
        self.check_unit_names(ctx)
        desc = ctx.descriptor
        write_metadata(ctx.scratch_dir, desc)
        for component in desc.components:
            component = dataclasses.replace(component, deploy_version=desc.version)
            unit_dir = os.path.join(ctx.scratch_dir, unit_name(component, desc.version))
            os.makedirs(unit_dir, exist_ok=True)
            for step in self.steps:
                try:
                    step(unit_dir, component, ctx)
                except ExportError:
                    raise
                except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
                    step_name = getattr(step, "__name__", repr(step))
                    log.error("cpk step %s failed for %s: %s", step_name, component.name, exc)
                    raise LayoutError(f"cpk:{step_name}", f"{component.name}: {exc}") from exc
            compress_subtree(unit_dir, unit_dir + CPK_EXTENSION)
            log.info("packed component %s", component.name)
