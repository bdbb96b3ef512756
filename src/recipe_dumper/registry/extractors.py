"""Extractor plugin contract, registry and the builtin fallback extractors."""
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable

import structlog

from recipe_dumper import ExtractorError
from recipe_dumper.core.dump_context import DumpContext, ItemStage
from recipe_dumper.core.item_codec import encode_compact
from recipe_dumper.registry.production_sources import ProductionSource

FALLBACK_KEY = "fallback"

ItemRefs = Union[DumpContext, ItemStage]


@runtime_checkable
class RecipeExtractor(Protocol):
    """Emits one named field of output for a single recipe."""
    slug: str

    def dump(self, source: ProductionSource, recipe_index: int, context: ItemRefs) -> Any: ...


@dataclass
class ExtractionResult:
    """Outcome of one extractor invocation."""
    slug: str
    value: Any = None
    error: Optional[ExtractorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_extractor(extractor: RecipeExtractor, source: ProductionSource,
                  recipe_index: int, context: ItemRefs) -> ExtractionResult:
    """Invoke an extractor, turning any exception into a failed result.

    Item references the extractor takes are staged and only reach ``context``
    when the call succeeds and its value encodes as JSON. A value that cannot
    be encoded fails the same way as a raising extractor.
    """
    stage = context.stage()
    try:
        value = extractor.dump(source, recipe_index, stage)
        encode_compact(value)
    except Exception as e:
        stage.discard()
        return ExtractionResult(
            extractor.slug,
            error=ExtractorError(extractor.slug, source.handler_id, recipe_index, e),
        )
    stage.commit()
    return ExtractionResult(extractor.slug, value)


class ExtractorRegistry:
    """Extractors keyed by handler id, with a fallback set for unknown handlers."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None):
        self.logger = logger or structlog.get_logger(__name__)
        self._extractors: Dict[str, List[RecipeExtractor]] = {}
        self._lock = threading.Lock()

    def register(self, handler_id: str, extractor: RecipeExtractor) -> None:
        """Append an extractor to the set used for ``handler_id``."""
        with self._lock:
            self._extractors.setdefault(handler_id, []).append(extractor)
        self.logger.debug("Extractor registered", handler_id=handler_id, slug=extractor.slug)

    def register_fallback(self, extractor: RecipeExtractor) -> None:
        self.register(FALLBACK_KEY, extractor)

    def __contains__(self, handler_id: str) -> bool:
        with self._lock:
            return handler_id in self._extractors

    def get(self, handler_id: str) -> List[RecipeExtractor]:
        with self._lock:
            return list(self._extractors.get(handler_id, []))

    def resolve(self, handler_id: str) -> List[RecipeExtractor]:
        """Return the extractors for a handler, or the fallback set if it has none."""
        with self._lock:
            extractors = self._extractors.get(handler_id)
            if extractors:
                return list(extractors)
            fallback = list(self._extractors.get(FALLBACK_KEY, []))

        self.logger.debug("No extractors registered for handler, using fallback",
                          handler_id=handler_id, fallback_count=len(fallback))
        return fallback


def _item_refs(context: ItemRefs, stacks: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
    return [context.item_ref(stack) for stack in (stacks or []) if stack is not None]


class IngredientsExtractor:
    """Input stacks of a recipe as item references."""
    slug = "ingredients"

    def dump(self, source: ProductionSource, recipe_index: int, context: ItemRefs) -> Any:
        return _item_refs(context, source.ingredients(recipe_index))


class OtherStacksExtractor:
    """Secondary stacks shown with a recipe (byproducts, catalysts, fuel)."""
    slug = "otherStacks"

    def dump(self, source: ProductionSource, recipe_index: int, context: ItemRefs) -> Any:
        return _item_refs(context, source.other_stacks(recipe_index))


class OutputExtractor:
    """Primary output stack of a recipe, or null when the source has none."""
    slug = "outItem"

    def dump(self, source: ProductionSource, recipe_index: int, context: ItemRefs) -> Any:
        result = source.result(recipe_index)
        if result is None:
            return None
        return context.item_ref(result)


def default_extractors() -> List[RecipeExtractor]:
    return [IngredientsExtractor(), OtherStacksExtractor(), OutputExtractor()]


def create_default_registry(logger: Optional[structlog.BoundLogger] = None) -> ExtractorRegistry:
    """Registry preloaded with the builtin extractors as its fallback set."""
    registry = ExtractorRegistry(logger)
    for extractor in default_extractors():
        registry.register_fallback(extractor)
    return registry
