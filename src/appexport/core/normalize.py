"""Resource normalization — strip cluster-assigned identity from raw manifests."""

import yaml

from appexport.core.constants import CLUSTER_IDENTITY_FIELDS
from appexport.pacts.errors import NormalizationError
from appexport.pacts.types import K8sResource


def _drop_path(tree, path: tuple):
    """Copy of a map/list/scalar tree with the key at *path* removed.

    Only mappings along the path are copied; missing segments leave the tree as is.
    """
    if not path or not isinstance(tree, dict) or path[0] not in tree:
        return tree
    head, rest = path[0], path[1:]
    copy = dict(tree)
    if rest:
        copy[head] = _drop_path(tree[head], rest)
    else:
        del copy[head]
    return copy


def normalize_manifest(doc: dict) -> dict:
    """Return a copy of *doc* with cluster identity removed from ``metadata``.

    Any kind is accepted; nothing else in the tree is touched.
    """
    for field in CLUSTER_IDENTITY_FIELDS:
        doc = _drop_path(doc, ("metadata", field))
    return doc


def parse_resource(resource: K8sResource) -> dict:
    """Parse raw manifest text into a generic tree. Raises NormalizationError."""
    label = resource.name or resource.kind or "<unnamed>"
    try:
        doc = yaml.safe_load(resource.content)
    except yaml.YAMLError as exc:
        raise NormalizationError(
            "normalize", f"resource {label} is not valid YAML ({exc.__class__.__name__})"
        ) from exc
    if not isinstance(doc, dict):
        raise NormalizationError(
            "normalize", f"resource {label} is not a mapping (got {type(doc).__name__})")
    kind = doc.get("kind") or resource.kind
    if not kind or not isinstance(kind, str):
        raise NormalizationError("normalize", f"resource {label} has no kind")
    if "/" in kind or kind.startswith("."):
        raise NormalizationError("normalize", f"resource {label} has invalid kind '{kind}'")
    doc.setdefault("kind", kind)
    return doc


def normalize_resource(resource: K8sResource) -> tuple[str, str]:
    """Parse, normalize and re-serialize one resource. Returns (kind, yaml_text)."""
    doc = normalize_manifest(parse_resource(resource))
    text = yaml.safe_dump(doc, default_flow_style=False, sort_keys=False)
    return doc["kind"], text
