"""Production source plugin contract and lookup registry."""
import threading
from typing import Any, Callable, List, Optional, Protocol, Sequence, runtime_checkable

import structlog

from recipe_dumper.core.item_codec import ItemStack


@runtime_checkable
class ProductionSource(Protocol):
    """A crafting handler bound to one query item.

    ``recipe_count`` recipes are addressable by index. The item accessors
    back the builtin fallback extractors; sources that do not expose a
    slot may return an empty list or ``None``.
    """
    handler_id: str
    recipe_name: str
    tab_name: str

    @property
    def recipe_count(self) -> int: ...

    def ingredients(self, recipe_index: int) -> Sequence[ItemStack]: ...

    def other_stacks(self, recipe_index: int) -> Sequence[ItemStack]: ...

    def result(self, recipe_index: int) -> Optional[ItemStack]: ...


# Given a query item, returns a source bound to it or None when it cannot craft it
SourceFactory = Callable[[ItemStack], Optional[ProductionSource]]


class ProductionSourceRegistry:
    """Ordered collection of production source factories."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None):
        self.logger = logger or structlog.get_logger(__name__)
        self._factories: List[SourceFactory] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._factories)

    def register(self, factory: SourceFactory) -> None:
        """Register a factory; lookup order follows registration order."""
        with self._lock:
            self._factories.append(factory)
        self.logger.debug("Production source registered",
                          factory=getattr(factory, "__name__", type(factory).__name__))

    def lookup(self, target: ItemStack) -> List[ProductionSource]:
        """Return the sources able to craft ``target``, in registration order.

        Sources reporting zero recipes are dropped, as are factories that
        raise; an empty result is valid.
        """
        with self._lock:
            factories = list(self._factories)

        sources: List[Any] = []
        for factory in factories:
            try:
                source = factory(target)
                if source is None or source.recipe_count <= 0:
                    continue
            except Exception as e:
                self.logger.error("Production source lookup failed",
                                  factory=getattr(factory, "__name__", type(factory).__name__),
                                  item=target.item,
                                  damage=target.damage,
                                  error=str(e))
                continue
            sources.append(source)
        return sources
