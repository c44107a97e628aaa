"""appexport — package an application descriptor as an installer package or Helm chart.

Re-exports the public API. Format extensions can import directly from here
or from appexport.pacts.
"""

from appexport.pacts.types import (
    ONLINE, OFFLINE,
    ApplicationDescriptor, Component, Plugin, K8sResource, RegistryCredentials,
    Port, EnvVar, Probe, Volume, ScalingRule,
    ExportContext, ExportResult, ImageUnit, ImageTarget, PackageFormat,
)
from appexport.pacts.errors import (
    ExportError, PreparationError, MaterializationError, PullError, SaveError,
    LayoutError, NormalizationError, PackagingError, ReadinessTimeoutError,
    ConfigError,
)
from appexport.core.images import ImageClient, DockerCLIClient, ImageMaterializer
from appexport.core.cpk import CpkFormat
from appexport.core.helm import HelmChartFormat
from appexport.core.export import Exporter, export, get_format, FORMATS

__all__ = [
    # Descriptor types
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
    # Format contract
    "ExportContext",
    "ExportResult",
    "ImageUnit",
    "ImageTarget",
    "PackageFormat",
    "CpkFormat",
    "HelmChartFormat",
    "FORMATS",
    # Errors
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
    # Pipeline
    "ImageClient",
    "DockerCLIClient",
    "ImageMaterializer",
    "Exporter",
    "export",
    "get_format",
]
