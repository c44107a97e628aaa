"""Public data types for format builders — the descriptor contract."""

import os
from dataclasses import asdict, dataclass, field

ONLINE = "online"
OFFLINE = "offline"
EXPORT_MODES = (ONLINE, OFFLINE)


@dataclass(frozen=True)
class RegistryCredentials:
    """Registry location and auth for one image."""
    hub_url: str = ""
    namespace: str = ""
    hub_user: str = ""
    hub_password: str = ""


@dataclass(frozen=True)
class Port:
    container_port: int
    protocol: str = "http"
    name: str = ""


@dataclass(frozen=True)
class EnvVar:
    name: str
    value: str = ""


@dataclass(frozen=True)
class Probe:
    """Health check. ``scheme`` is ``http``, ``tcp`` or ``cmd``."""
    scheme: str = "http"
    path: str = ""
    cmd: str = ""
    port: int = 0
    initial_delay_seconds: int = 0
    period_seconds: int = 0
    failure_threshold: int = 0
    timeout_seconds: int = 0


@dataclass(frozen=True)
class Volume:
    name: str
    mount_path: str


@dataclass(frozen=True)
class ScalingRule:
    min_node: int = 1
    max_node: int = 1
    step_node: int = 1


@dataclass(frozen=True)
class Component:
    """One deployable component of the application."""
    name: str
    display_name: str = ""
    arch: str = "amd64"
    image: str = ""
    credentials: RegistryCredentials = field(default_factory=RegistryCredentials)
    deploy_version: str = ""
    cpu: int = 0
    memory: int = 0
    cmd: str = ""
    ports: list = field(default_factory=list)
    envs: list = field(default_factory=list)
    probes: list = field(default_factory=list)
    volumes: list = field(default_factory=list)
    scaling: ScalingRule = field(default_factory=ScalingRule)
    labels: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Component":
        data = dict(data)
        data["credentials"] = RegistryCredentials(**(data.get("credentials") or {}))
        data["scaling"] = ScalingRule(**(data.get("scaling") or {}))
        data["ports"] = [Port(**p) for p in data.get("ports") or []]
        data["envs"] = [EnvVar(**e) for e in data.get("envs") or []]
        data["probes"] = [Probe(**p) for p in data.get("probes") or []]
        data["volumes"] = [Volume(**v) for v in data.get("volumes") or []]
        return cls(**data)


@dataclass(frozen=True)
class Plugin:
    name: str
    image: str = ""
    credentials: RegistryCredentials = field(default_factory=RegistryCredentials)

    @classmethod
    def from_dict(cls, data: dict) -> "Plugin":
        data = dict(data)
        data["credentials"] = RegistryCredentials(**(data.get("credentials") or {}))
        return cls(**data)


@dataclass(frozen=True)
class K8sResource:
    """Raw cluster resource manifest. ``kind`` is advisory; the manifest wins."""
    content: str
    kind: str = ""
    name: str = ""


@dataclass(frozen=True)
class ApplicationDescriptor:
    """Full application definition, immutable for the duration of one export."""
    name: str
    version: str
    mode: str = ONLINE
    components: list = field(default_factory=list)
    plugins: list = field(default_factory=list)
    resources: list = field(default_factory=list)
    annotations: dict = field(default_factory=dict)
    options: dict = field(default_factory=dict)

    def __post_init__(self):
        # an unquoted YAML "1.10" arrives as the float 1.1
        for key in ("name", "version"):
            value = getattr(self, key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"application {key} must be a string, got "
                                 f"{type(value).__name__} {value!r} (quote it in YAML)")
        if not self.name:
            raise ValueError("application name must not be empty")
        if not self.version:
            raise ValueError("application version must not be empty")
        if self.mode not in EXPORT_MODES:
            raise ValueError(f"unknown export mode '{self.mode}' "
                             f"(expected one of {', '.join(EXPORT_MODES)})")

    @property
    def offline(self) -> bool:
        return self.mode == OFFLINE

    @classmethod
    def from_dict(cls, data: dict) -> "ApplicationDescriptor":
        """Build a descriptor from a plain mapping (parsed YAML or JSON)."""
        data = dict(data)
        data["components"] = [Component.from_dict(c) for c in data.get("components") or []]
        data["plugins"] = [Plugin.from_dict(p) for p in data.get("plugins") or []]
        data["resources"] = [K8sResource(**r) for r in data.get("resources") or []]
        data["annotations"] = dict(data.get("annotations") or {})
        data["options"] = dict(data.get("options") or {})
        return cls(**data)

    def to_dict(self) -> dict:
        """Serialize in field declaration order."""
        return asdict(self)


@dataclass(frozen=True)
class ExportResult:
    package_path: str
    package_name: str


@dataclass(frozen=True)
class ImageUnit:
    """One image to pull, on behalf of a component or plugin."""
    name: str
    ref: str
    credentials: RegistryCredentials = field(default_factory=RegistryCredentials)


@dataclass(frozen=True)
class ImageTarget:
    """One saved image archive and the images that go into it."""
    path: str
    units: tuple = ()

    @property
    def refs(self) -> list[str]:
        return [u.ref for u in self.units]


def image_units(items) -> tuple:
    """ImageUnits for components or plugins that reference an image (others are skipped)."""
    return tuple(ImageUnit(i.name, i.image, i.credentials) for i in items if i.image)


@dataclass
class ExportContext:
    """Shared state passed to format builders during one export."""
    descriptor: ApplicationDescriptor
    scratch_dir: str
    options: dict = field(default_factory=dict)
    warnings: list = field(default_factory=list)


class PackageFormat:
    """Base class for all package formats — built-ins and extensions.

    A format decides where embedded images land (``image_targets``) and
    populates the scratch directory (``build``). Archival of the scratch
    directory into ``package_name()`` under the output root is done by the
    exporter.
    """
    name: str = ""
    suffix: str = ""

    def embeds_images(self, ctx: ExportContext) -> bool:
        return ctx.descriptor.offline

    def image_targets(self, ctx: ExportContext) -> list[ImageTarget]:
        """Default plan: one archive for all component images, one for plugins."""
        return [
            ImageTarget(os.path.join(ctx.scratch_dir, "component-images.tar"),
                        image_units(ctx.descriptor.components)),
            ImageTarget(os.path.join(ctx.scratch_dir, "plugin-images.tar"),
                        image_units(ctx.descriptor.plugins)),
        ]

    def build(self, ctx: ExportContext) -> None:
        """Populate ctx.scratch_dir. Override in subclasses."""
        raise NotImplementedError

    def package_name(self, descriptor: ApplicationDescriptor) -> str:
        return f"{descriptor.name}-{descriptor.version}-{self.suffix}.tar.gz"
