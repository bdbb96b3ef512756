"""Plugin registries for production sources and recipe extractors."""

from .extractors import FALLBACK_KEY, ExtractorRegistry, RecipeExtractor, create_default_registry
from .production_sources import ProductionSource, ProductionSourceRegistry

__all__ = [
    "FALLBACK_KEY",
    "ExtractorRegistry",
    "RecipeExtractor",
    "create_default_registry",
    "ProductionSource",
    "ProductionSourceRegistry",
]
