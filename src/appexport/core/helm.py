"""Helm chart format — Chart.yaml, scaffolded values.yaml, templates per kind."""

import logging
import os
import time

import yaml

from appexport.core.constants import (
    IMAGE_HANDLE_SAVE, READINESS_ATTEMPTS, READINESS_INTERVAL_SECONDS,
    YAML_DOCUMENT_SEPARATOR,
)
from appexport.core.normalize import normalize_resource
from appexport.io.output import write_metadata
from appexport.pacts.errors import LayoutError, ReadinessTimeoutError
from appexport.pacts.types import ApplicationDescriptor, ExportContext, PackageFormat

log = logging.getLogger(__name__)


def chart_yaml(descriptor: ApplicationDescriptor) -> dict:
    return {
        "apiVersion": "v2",
        "name": descriptor.name,
        "version": descriptor.version,
        "appVersion": descriptor.version,
        "description": descriptor.annotations.get("version_info", ""),
        "type": "application",
    }


def scaffold_values(chart_dir: str, ctx: ExportContext) -> None:
    """Default scaffolding: ``values.yaml`` from the ``values`` format option."""
    with open(os.path.join(chart_dir, "values.yaml"), "w", encoding="utf-8") as f:
        yaml.safe_dump(ctx.options.get("values") or {}, f,
                       default_flow_style=False, sort_keys=False)


def wait_until_ready(path: str, check=os.path.exists,
                     interval: float = READINESS_INTERVAL_SECONDS,
                     attempts: int = READINESS_ATTEMPTS, sleep=time.sleep) -> None:
    """Poll ``check(path)`` up to *attempts* times, *interval* seconds apart.

    Raises ReadinessTimeoutError when the cap is reached.
    """
    for attempt in range(attempts):
        if check(path):
            log.debug("%s ready after %d attempt(s)", path, attempt + 1)
            return
        sleep(interval)
    raise ReadinessTimeoutError(
        "wait-values", f"{path} did not appear after {attempts} attempts "
                       f"({attempts * interval:g}s)")


def append_document(path: str, text: str) -> None:
    """Append one YAML document to *path*, separating it from any earlier one."""
    with open(path, "a", encoding="utf-8") as f:
        if f.tell() > 0:
            f.write(YAML_DOCUMENT_SEPARATOR)
        f.write(text)


class HelmChartFormat(PackageFormat):
    """Helm chart directory ``<app>/`` plus metadata, bundled as ``-helm.tar.gz``.

    *scaffold* produces ``values.yaml`` (it may be an external process that
    finishes later); *check*, *interval*, *attempts* and *sleep* bound the
    wait for it.
    """
    name = "helm"
    suffix = "helm"

    def __init__(self, scaffold=scaffold_values, check=os.path.exists,
                 interval: float = READINESS_INTERVAL_SECONDS,
                 attempts: int = READINESS_ATTEMPTS, sleep=time.sleep):
        self.scaffold = scaffold
        self.check = check
        self.interval = interval
        self.attempts = attempts
        self.sleep = sleep

    def embeds_images(self, ctx: ExportContext) -> bool:
        return (ctx.descriptor.offline
                or ctx.options.get("image_handle") == IMAGE_HANDLE_SAVE)

    def build(self, ctx: ExportContext) -> None:
        desc = ctx.descriptor
        write_metadata(ctx.scratch_dir, desc)
        chart_dir = os.path.join(ctx.scratch_dir, desc.name)
        os.makedirs(chart_dir, exist_ok=True)
        with open(os.path.join(chart_dir, "Chart.yaml"), "w", encoding="utf-8") as f:
            yaml.safe_dump(chart_yaml(desc), f, default_flow_style=False, sort_keys=False)
        log.info("wrote Chart.yaml for %s", desc.name)

        if self.scaffold is not None:
            self.scaffold(chart_dir, ctx)
        wait_until_ready(os.path.join(chart_dir, "values.yaml"), check=self.check,
                         interval=self.interval, attempts=self.attempts, sleep=self.sleep)

        if not desc.resources:
            ctx.warnings.append(f"{desc.name} has no cluster resources — chart has no templates")
        # normalize everything first so a malformed manifest leaves no templates
        rendered = [normalize_resource(r) for r in desc.resources]
        templates_dir = os.path.join(chart_dir, "templates")
        os.makedirs(templates_dir, exist_ok=True)
        for kind, text in rendered:
            try:
                append_document(os.path.join(templates_dir, f"{kind}.yaml"), text)
            except OSError as exc:
                raise LayoutError("helm:templates", f"{kind}: {exc}") from exc
        log.info("wrote %d template document(s) for %s", len(rendered), desc.name)
