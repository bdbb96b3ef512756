"""recipe-dumper: streaming recipe export for craftable item catalogs.

This package queries every registered production source for each item in a
catalog, extracts recipe fields through pluggable extractors and streams the
result to a single JSON file, with a companion file holding the deduplicated
item catalog.

Main Components:
- DumpOrchestrator: Single-flight background dump runner
- QueryEngine: Per-item handler/recipe traversal
- DumpContext: Per-run item interning store
- StreamEmitter: Incremental JSON writer
- ConfigManager: Configuration management
"""

__version__ = "1.0.0"
__author__ = "recipe-dumper contributors"


class RecipeDumperError(Exception):
    """Base exception for recipe-dumper."""


class ConfigurationError(RecipeDumperError):
    """Raised when configuration cannot be loaded or is invalid."""


class CatalogLoadError(RecipeDumperError):
    """Raised when an item catalog or plugin module cannot be loaded."""


class DuplicateRunError(RecipeDumperError):
    """Raised when a dump is requested while another one is running."""


class SinkIOError(RecipeDumperError):
    """Raised when a dump file cannot be opened, written or closed."""


class EmitterStateError(RecipeDumperError):
    """Raised when the stream emitter is used out of order."""


class ContextFinalizedError(RecipeDumperError):
    """Raised when a dump context is used after its catalog was exported."""


class ExtractorError(RecipeDumperError):
    """Wraps a failure raised by a single extractor invocation."""

    def __init__(self, slug: str, handler_id: str, recipe_index: int, cause: BaseException):
        super().__init__(
            f"Extractor '{slug}' failed for handler '{handler_id}' recipe {recipe_index}: {cause}"
        )
        self.slug = slug
        self.handler_id = handler_id
        self.recipe_index = recipe_index
        self.cause = cause


__all__ = [
    "__version__",
    "__author__",
    "RecipeDumperError",
    "ConfigurationError",
    "CatalogLoadError",
    "DuplicateRunError",
    "SinkIOError",
    "EmitterStateError",
    "ContextFinalizedError",
    "ExtractorError",
]
