"""Output writing — JSON documents, package metadata, warnings."""

import json
import os
import sys

from appexport.core.constants import METADATA_NAME
from appexport.pacts.helpers import metadata_view
from appexport.pacts.types import ApplicationDescriptor


def write_json(path: str, data) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def write_metadata(scratch_dir: str, descriptor: ApplicationDescriptor) -> str:
    """Write ``metadata.json`` at the package root (credentials zeroed when offline)."""
    path = os.path.join(scratch_dir, METADATA_NAME)
    write_json(path, metadata_view(descriptor))
    return path


def emit_warnings(warnings: list[str]) -> None:
    """Print all warnings to stderr."""
    for w in warnings:
        print(f"⚠ {w}", file=sys.stderr)
