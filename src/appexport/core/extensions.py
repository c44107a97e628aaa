"""Extension discovery and loading — additional package formats."""

import importlib.util
import logging
import os
import sys
from pathlib import Path

from appexport.pacts.errors import ConfigError
from appexport.pacts.types import PackageFormat

log = logging.getLogger(__name__)


def _discover_extension_files(extensions_dir):
    """Find .py files in extensions dir + one level into subdirectories."""
    py_files = []
    for entry in sorted(os.listdir(extensions_dir)):
        full = os.path.join(extensions_dir, entry)
        if entry.startswith(('_', '.')):
            continue
        if entry.endswith('.py') and os.path.isfile(full):
            py_files.append(full)
        elif os.path.isdir(full):
            for sub in sorted(os.listdir(full)):
                sub_full = os.path.join(full, sub)
                if (sub.endswith('.py') and not sub.startswith(('_', '.'))
                        and os.path.isfile(sub_full)):
                    py_files.append(sub_full)
    return py_files


def _is_format_class(obj, mod_name):
    """Check if obj is a named PackageFormat subclass defined in the given module."""
    return (isinstance(obj, type)
            and issubclass(obj, PackageFormat) and obj is not PackageFormat
            and bool(getattr(obj, 'name', ''))
            and obj.__module__ == mod_name)


def _load_module(filepath):
    """Load a single extension module. Raises ConfigError on failure."""
    parent = str(Path(filepath).parent)
    if parent not in sys.path:
        sys.path.insert(0, parent)
    mod_name = f"appexport_ext_{Path(filepath).stem}"
    spec = importlib.util.spec_from_file_location(mod_name, filepath)
    if spec is None or spec.loader is None:
        raise ConfigError(f"cannot load extension {filepath}")
    try:
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except Exception as exc:  # pylint: disable=broad-except
        raise ConfigError(f"failed to load extension {filepath}: {exc}") from exc
    return module


def load_extensions(extensions_dir):
    """Load PackageFormat subclasses from an extensions directory, in file order."""
    if not os.path.isdir(extensions_dir):
        raise ConfigError(f"extensions directory not found: {extensions_dir}")
    formats = []
    for filepath in _discover_extension_files(extensions_dir):
        module = _load_module(filepath)
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if _is_format_class(obj, module.__name__):
                formats.append(obj)
    if formats:
        loaded = ", ".join(f"{f.__name__} ({f.name})" for f in formats)
        log.info("loaded format extensions: %s", loaded)
    return formats


def register_formats(extra_formats, registry):
    """Register extension formats into *registry* (name -> class).

    Two extensions claiming the same name is an error; an extension sharing a
    built-in's name replaces it.
    """
    owners: dict[str, str] = {}
    for fmt in extra_formats:
        if fmt.name in owners:
            raise ConfigError(f"format '{fmt.name}' claimed by both "
                              f"{owners[fmt.name]} and {fmt.__name__} (extensions)")
        owners[fmt.name] = fmt.__name__
    for fmt in extra_formats:
        if fmt.name in registry:
            log.info("extension %s overrides built-in format %s",
                     fmt.__name__, fmt.name)
        registry[fmt.name] = fmt
