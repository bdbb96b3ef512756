"""Per-run interning store for item identity payloads."""
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog

from recipe_dumper import ContextFinalizedError
from recipe_dumper.core.item_codec import ItemStack, canonical_key, full_dump, minimal_dump


class DumpContext:
    """Assigns stable numeric IDs to structurally-equal item payloads.

    IDs start at 0 and follow first-seen order within one run. A context is
    created per dump and finalized by :meth:`export`; after that, interning
    raises :class:`ContextFinalizedError`.
    """

    def __init__(self, logger: Optional[structlog.BoundLogger] = None):
        self.logger = logger or structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._ids: Dict[str, int] = {}
        self._dumps: List[Dict[str, Any]] = []
        self._finalized = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._dumps)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def intern_item(self, stack: ItemStack) -> int:
        """Return the stable ID for a stack, assigning the next one if unseen.

        Args:
            stack: Item identity payload

        Returns:
            Stable ID shared by every stack with the same canonical key

        Raises:
            ContextFinalizedError: If the context was already exported
        """
        key = canonical_key(stack)
        with self._lock:
            if self._finalized:
                raise ContextFinalizedError("Cannot intern items after the context was exported")
            stable_id = self._ids.get(key)
            if stable_id is None:
                stable_id = len(self._dumps)
                self._ids[key] = stable_id
                self._dumps.append(full_dump(stack))
            return stable_id

    def item_ref(self, stack: ItemStack) -> Dict[str, Any]:
        """Intern a stack and return the minimal dump that references it."""
        return minimal_dump(self.intern_item(stack), stack)

    def stage(self) -> "ItemStage":
        """Open a staging area whose references are interned only on commit."""
        return ItemStage(self)

    def export(self) -> List[Tuple[int, Dict[str, Any]]]:
        """Finalize the context and return every interned record sorted by ID.

        Raises:
            ContextFinalizedError: If called more than once
        """
        with self._lock:
            if self._finalized:
                raise ContextFinalizedError("Dump context was already exported")
            self._finalized = True
            records = list(enumerate(self._dumps))
            # Free the key index, only the dumps are needed from here on
            self._ids.clear()

        self.logger.debug("Dump context exported", items=len(records))
        return records

    def export_mapping(self) -> Dict[str, Dict[str, Any]]:
        """Export as a JSON object keyed by stringified stable ID."""
        return {str(stable_id): dump for stable_id, dump in self.export()}


class ItemStage:
    """Item references held back until the output using them is kept.

    :meth:`item_ref` hands out the reference dict straight away with
    ``itemSlug`` unset. :meth:`commit` fills the IDs in (interning into the
    context, or passing the references up to a parent stage). A stage that
    is discarded leaves nothing in the context, so every exported ID stays
    referenced by written output.
    """

    def __init__(self, parent: Union[DumpContext, "ItemStage"]):
        self.parent = parent
        self._pending: List[Tuple[ItemStack, Dict[str, Any]]] = []

    def __len__(self) -> int:
        return len(self._pending)

    def item_ref(self, stack: ItemStack) -> Dict[str, Any]:
        """Return a reference dict for ``stack``, filled in on commit.

        Raises:
            AttributeError: If ``stack`` is not an item stack
            TypeError: If the stack's tag data cannot be encoded
        """
        # Fail now, inside the caller, for payloads that could never be interned
        canonical_key(stack)
        ref = minimal_dump(None, stack)
        self._pending.append((stack, ref))
        return ref

    def stage(self) -> "ItemStage":
        return ItemStage(self)

    def commit(self) -> None:
        """Hand pending references to the parent stage, or intern them."""
        pending, self._pending = self._pending, []
        if isinstance(self.parent, ItemStage):
            self.parent._pending.extend(pending)
            return
        for stack, ref in pending:
            ref["itemSlug"] = self.parent.intern_item(stack)

    def discard(self) -> None:
        self._pending.clear()
