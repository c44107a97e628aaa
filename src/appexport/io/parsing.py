"""Descriptor loading — YAML/JSON descriptor files and raw manifest directories."""

import os
from pathlib import Path

import yaml

from appexport.pacts.errors import ConfigError
from appexport.pacts.types import ApplicationDescriptor, K8sResource


def load_resource_dir(resource_dir: str) -> list[K8sResource]:
    """Load every YAML document under *resource_dir* as a raw resource.

    Files are read in sorted path order and documents in file order, so the
    resulting list order is stable. Empty documents are skipped.
    """
    resources: list[K8sResource] = []
    for yaml_file in sorted(Path(resource_dir).rglob("*.yaml")):
        try:
            with open(yaml_file, encoding="utf-8") as f:
                docs = list(yaml.safe_load_all(f))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read manifest {yaml_file}: "
                              f"{exc.__class__.__name__}") from exc
        for doc in docs:
            if not doc:
                continue
            kind = doc.get("kind", "") if isinstance(doc, dict) else ""
            name = (doc.get("metadata") or {}).get("name", "") if isinstance(doc, dict) else ""
            resources.append(K8sResource(
                content=yaml.safe_dump(doc, default_flow_style=False, sort_keys=False),
                kind=kind, name=name))
    return resources


def load_descriptor(path: str) -> ApplicationDescriptor:
    """Load an application descriptor from a YAML or JSON file.

    A ``resources_dir`` key (relative to the descriptor file) appends the
    manifests found there to ``resources``.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read descriptor {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"descriptor {path} must be a mapping")

    resource_dir = data.pop("resources_dir", None)
    if resource_dir:
        base = os.path.dirname(os.path.abspath(path))
        data["resources"] = [
            *(data.get("resources") or []),
            *({"content": r.content, "kind": r.kind, "name": r.name}
              for r in load_resource_dir(os.path.join(base, resource_dir))),
        ]
    try:
        return ApplicationDescriptor.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid descriptor {path}: {exc}") from exc
