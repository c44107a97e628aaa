"""CLI entry point — argument parsing, orchestration."""

import argparse
import dataclasses
import logging
import os
import sys

from appexport.core.export import FORMATS, Exporter, get_format
from appexport.core.extensions import load_extensions, register_formats
from appexport.io.config import load_config
from appexport.io.output import emit_warnings
from appexport.io.parsing import load_descriptor
from appexport.pacts.errors import ConfigError, ExportError
from appexport.pacts.types import OFFLINE


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Export an application descriptor as an installer package or Helm chart"
    )
    parser.add_argument(
        "descriptor",
        help="Application descriptor file (YAML or JSON)",
    )
    parser.add_argument(
        "-f", "--format",
        help="Package format (built-in: cpk, helm; default from config, else cpk)",
    )
    parser.add_argument(
        "--offline", action="store_true",
        help="Embed container images in the package (overrides the descriptor mode)",
    )
    parser.add_argument(
        "--output-dir",
        help="Where to write the package (default from config, else .)",
    )
    parser.add_argument(
        "--scratch-dir",
        help="Working directory, cleared on every run (default ./.appexport-work)",
    )
    parser.add_argument(
        "--config", default="appexport.yaml",
        help="Config file (default: appexport.yaml, optional)",
    )
    parser.add_argument(
        "--extensions-dir",
        help="Directory containing extra package format modules",
    )
    parser.add_argument(
        "--pull-workers", type=int,
        help="Concurrent image pulls in offline mode (default 1)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    """CLI entry point."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        # Step 1: config, CLI flags win
        config = load_config(args.config)
        format_name = args.format or config["format"]
        output_dir = args.output_dir or config["output_dir"]
        scratch_dir = args.scratch_dir or config["scratch_dir"]
        pull_workers = (args.pull_workers if args.pull_workers is not None
                        else config["pull_workers"])
        extensions_dir = args.extensions_dir or config["extensions_dir"]

        # Step 2: formats
        formats = dict(FORMATS)
        if extensions_dir:
            register_formats(load_extensions(extensions_dir), formats)

        # Step 3: descriptor
        descriptor = load_descriptor(args.descriptor)
        if args.offline and not descriptor.offline:
            descriptor = dataclasses.replace(descriptor, mode=OFFLINE)
        print(f"Loaded {descriptor.name} {descriptor.version}: "
              f"{len(descriptor.components)} component(s), "
              f"{len(descriptor.plugins)} plugin(s), "
              f"{len(descriptor.resources)} resource(s)", file=sys.stderr)

        # Step 4: export
        exporter = Exporter(
            descriptor, get_format(format_name, formats),
            scratch_dir=scratch_dir, output_dir=output_dir,
            pull_workers=pull_workers,
            options=(config.get("formats") or {}).get(format_name),
        )
        result = exporter.export()
    except (ConfigError, ExportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    emit_warnings(exporter.ctx.warnings)
    print(f"Wrote {os.path.abspath(result.package_path)}", file=sys.stderr)
    print(result.package_path)


if __name__ == "__main__":
    main()
