"""Helpers shared by format builders."""

import dataclasses

from appexport.pacts.types import ApplicationDescriptor, RegistryCredentials


def redact_credentials(descriptor: ApplicationDescriptor) -> ApplicationDescriptor:
    """Return a copy with every component and plugin registry credential zeroed."""
    return dataclasses.replace(
        descriptor,
        components=[dataclasses.replace(c, credentials=RegistryCredentials())
                    for c in descriptor.components],
        plugins=[dataclasses.replace(p, credentials=RegistryCredentials())
                 for p in descriptor.plugins],
    )


def metadata_view(descriptor: ApplicationDescriptor) -> dict:
    """Descriptor as persisted into a package (credentials dropped when offline)."""
    if descriptor.offline:
        descriptor = redact_credentials(descriptor)
    return descriptor.to_dict()


def merge_options(base: dict, overrides: dict) -> dict:
    """Recursively merge overrides over base into a new dict. None values delete keys."""
    merged = dict(base)
    for key, val in overrides.items():
        if val is None:
            merged.pop(key, None)
        elif isinstance(val, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_options(merged[key], val)
        else:
            merged[key] = val
    return merged
