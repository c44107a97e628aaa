"""Public contracts for format builders and extensions."""

from appexport.pacts.types import (
    ONLINE, OFFLINE,
    ApplicationDescriptor, Component, Plugin, K8sResource, RegistryCredentials,
    Port, EnvVar, Probe, Volume, ScalingRule,
    ExportContext, ExportResult, ImageUnit, ImageTarget, PackageFormat,
    image_units,
)
from appexport.pacts.errors import (
    ExportError, PreparationError, MaterializationError, PullError, SaveError,
    LayoutError, NormalizationError, PackagingError, ReadinessTimeoutError,
    ConfigError,
)
from appexport.pacts.helpers import redact_credentials, metadata_view, merge_options

__all__ = [
    "ONLINE",
    "OFFLINE",
    "ApplicationDescriptor",
    "Component",
    "Plugin",
    "K8sResource",
    "RegistryCredentials",
    "Port",
    "EnvVar",
    "Probe",
    "Volume",
    "ScalingRule",
    "ExportContext",
    "ExportResult",
    "ImageUnit",
    "ImageTarget",
    "PackageFormat",
    "image_units",
    "ExportError",
    "PreparationError",
    "MaterializationError",
    "PullError",
    "SaveError",
    "LayoutError",
    "NormalizationError",
    "PackagingError",
    "ReadinessTimeoutError",
    "ConfigError",
    "redact_credentials",
    "metadata_view",
    "merge_options",
]
