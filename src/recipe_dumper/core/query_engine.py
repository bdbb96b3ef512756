"""Builds one query record per catalog item."""
from typing import Any, Dict, List, Optional

import structlog

from recipe_dumper.core.dump_context import DumpContext, ItemStage
from recipe_dumper.core.item_codec import ItemStack
from recipe_dumper.registry.extractors import ExtractorRegistry, run_extractor
from recipe_dumper.registry.production_sources import ProductionSource, ProductionSourceRegistry


class QueryEngine:
    """Queries every production source for an item and extracts its recipes."""

    def __init__(self, sources: ProductionSourceRegistry, extractors: ExtractorRegistry,
                 logger: Optional[structlog.BoundLogger] = None):
        """Initialize query engine.

        Args:
            sources: Registry used to find the handlers that craft an item
            extractors: Registry resolving the field extractors per handler
            logger: Structured logger instance
        """
        self.sources = sources
        self.extractors = extractors
        self.logger = logger or structlog.get_logger(__name__)

    def query(self, target: ItemStack, context: DumpContext) -> Dict[str, Any]:
        """Produce the query record for one catalog item.

        Args:
            target: Item to look up crafting recipes for
            context: Interning store for the current run

        Returns:
            ``{"queryItem": ..., "handlers": [...]}`` ready for serialization
        """
        query_item = context.item_ref(target)

        handlers: List[Dict[str, Any]] = []
        for source in self.sources.lookup(target):
            stage = context.stage()
            try:
                handler = self._dump_handler(source, stage)
            except Exception as e:
                # Only reached when the source itself misbehaves, extractor
                # failures are contained per field
                stage.discard()
                self.logger.error("Handler dump failed, skipping handler",
                                  handler_id=getattr(source, "handler_id", None),
                                  item=target.item,
                                  damage=target.damage,
                                  error=str(e))
                continue
            stage.commit()
            handlers.append(handler)
        return {"queryItem": query_item, "handlers": handlers}

    def _dump_handler(self, source: ProductionSource, stage: ItemStage) -> Dict[str, Any]:
        extractors = self.extractors.resolve(source.handler_id)

        recipes: List[Dict[str, Any]] = []
        for recipe_index in range(source.recipe_count):
            recipe: Dict[str, Any] = {}
            for extractor in extractors:
                result = run_extractor(extractor, source, recipe_index, stage)
                if result.ok:
                    recipe[result.slug] = result.value
                else:
                    self.logger.error("Extractor failed, omitting field",
                                      handler_id=source.handler_id,
                                      recipe_index=recipe_index,
                                      slug=result.slug,
                                      error=str(result.error.cause))
            recipes.append(recipe)

        return {
            "id": source.handler_id,
            "name": source.recipe_name,
            "tabName": source.tab_name,
            "recipes": recipes,
        }
