"""Export error taxonomy. Every stage failure is fatal to the export."""


class ExportError(Exception):
    """Base class for export failures.

    ``operation`` names the pipeline step that failed; the underlying
    exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class PreparationError(ExportError):
    """Scratch directory could not be cleared or recreated."""


class MaterializationError(ExportError):
    """An image could not be pulled or saved."""


class PullError(MaterializationError):
    pass


class SaveError(MaterializationError):
    pass


class LayoutError(ExportError):
    """A format builder step failed."""


class NormalizationError(ExportError):
    """A raw resource manifest is malformed."""


class PackagingError(ExportError):
    """Archival or compression failed."""


class ReadinessTimeoutError(ExportError):
    """A bounded readiness wait ran out of attempts."""


class ConfigError(Exception):
    """Config or descriptor file could not be loaded."""
