"""Export orchestration — prepare, materialize images, build layout, archive."""

import logging
import os
import shutil

from appexport.core.archive import bundle
from appexport.core.cpk import CpkFormat
from appexport.core.helm import HelmChartFormat
from appexport.core.images import DockerCLIClient, ImageMaterializer
from appexport.pacts.errors import (
    ConfigError, ExportError, LayoutError, MaterializationError, PreparationError,
)
from appexport.pacts.helpers import merge_options
from appexport.pacts.types import (
    ApplicationDescriptor, ExportContext, ExportResult, PackageFormat,
)

log = logging.getLogger(__name__)

# Built-in formats; extensions are added with core.extensions.register_formats
FORMATS: dict[str, type] = {
    CpkFormat.name: CpkFormat,
    HelmChartFormat.name: HelmChartFormat,
}


def get_format(name: str, formats: dict | None = None) -> PackageFormat:
    """Instantiate the format registered under *name*."""
    registry = FORMATS if formats is None else formats
    if name not in registry:
        raise ConfigError(f"unknown format '{name}' "
                          f"(available: {', '.join(sorted(registry))})")
    return registry[name]()


def prepare_scratch_dir(scratch_dir: str, output_dir: str) -> None:
    """Clear and recreate *scratch_dir*. Raises PreparationError."""
    scratch = os.path.realpath(scratch_dir)
    output = os.path.realpath(output_dir)
    if output == scratch or output.startswith(scratch + os.sep):
        raise PreparationError(
            "prepare", f"output dir {output_dir} lies inside scratch dir {scratch_dir}")
    try:
        if os.path.lexists(scratch_dir):
            if os.path.isdir(scratch_dir) and not os.path.islink(scratch_dir):
                shutil.rmtree(scratch_dir)
            else:
                os.remove(scratch_dir)
        os.makedirs(scratch_dir)
    except OSError as exc:
        raise PreparationError("prepare", f"{scratch_dir}: {exc}") from exc


class Exporter:
    """Run one export of *descriptor* in *package_format*.

    The exporter owns *scratch_dir* for the duration of ``export()``: it is
    cleared first and removed once the bundle is written. On failure it is
    left in place for inspection and nothing is written to *output_dir*.
    Concurrent exporters must not share a scratch dir.
    """

    def __init__(self, descriptor: ApplicationDescriptor, package_format: PackageFormat,
                 scratch_dir: str, output_dir: str, image_client=None,
                 pull_workers: int = 1, options: dict | None = None):
        self.descriptor = descriptor
        self.format = package_format
        self.scratch_dir = scratch_dir
        self.output_dir = output_dir
        self.image_client = image_client
        self.pull_workers = pull_workers
        self.ctx = ExportContext(
            descriptor=descriptor, scratch_dir=scratch_dir,
            options=merge_options(options or {}, descriptor.options),
        )

    def export(self) -> ExportResult:
        desc = self.descriptor
        log.info("start export of %s %s as %s", desc.name, desc.version, self.format.name)

        # Step 1: scratch dir
        prepare_scratch_dir(self.scratch_dir, self.output_dir)
        log.info("prepared scratch dir %s", self.scratch_dir)

        # Step 2: embedded images
        if self.format.embeds_images(self.ctx) and (desc.components or desc.plugins):
            self._materialize()

        # Step 3: layout
        try:
            self.format.build(self.ctx)
        except ExportError:
            log.error("%s layout failed for %s", self.format.name, desc.name)
            raise
        except OSError as exc:
            log.error("%s layout failed for %s: %s", self.format.name, desc.name, exc)
            raise LayoutError(f"{self.format.name}:build", str(exc)) from exc

        # Step 4: bundle
        package_name = self.format.package_name(desc)
        package_path = bundle(self.scratch_dir, self.output_dir, package_name)
        try:
            shutil.rmtree(self.scratch_dir)
        except OSError as exc:
            log.warning("could not remove scratch dir %s: %s", self.scratch_dir, exc)
        log.info("exported %s to %s", desc.name, package_path)
        return ExportResult(package_path=package_path, package_name=package_name)

    def _materialize(self) -> None:
        targets = self.format.image_targets(self.ctx)
        for item in (*self.descriptor.components, *self.descriptor.plugins):
            if not item.image:
                self.ctx.warnings.append(f"{item.name} has no image reference — nothing embedded")
        if self.image_client is None:
            self.image_client = DockerCLIClient()
        materializer = ImageMaterializer(self.image_client)
        try:
            materializer.materialize(targets, workers=self.pull_workers)
        except MaterializationError as exc:
            log.error("image materialization failed: %s", exc)
            raise
        missing = [t.path for t in targets if t.units and not os.path.isfile(t.path)]
        if missing:
            raise MaterializationError(
                "save", f"image archive(s) not written: {', '.join(missing)}")
        log.info("saved images for %d target(s)", sum(1 for t in targets if t.units))


def export(descriptor: ApplicationDescriptor, format_name: str = "cpk",
           scratch_dir: str = "./.appexport-work", output_dir: str = ".",
           image_client=None, pull_workers: int = 1, options: dict | None = None,
           formats: dict | None = None) -> ExportResult:
    """Export *descriptor* as *format_name* and return the bundle location."""
    exporter = Exporter(descriptor, get_format(format_name, formats),
                        scratch_dir=scratch_dir, output_dir=output_dir,
                        image_client=image_client, pull_workers=pull_workers,
                        options=options)
    return exporter.export()
