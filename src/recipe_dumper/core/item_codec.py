"""Item identity payloads and their canonical/minimal serialized forms."""
import json
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ItemStack:
    """A single item variant plus stack size.

    Identity is ``item`` + ``damage`` + ``nbt``; ``count`` is carried along
    for recipe output but never takes part in equality of the interned form.
    """
    item: str
    damage: int = 0
    nbt: Optional[Mapping[str, Any]] = field(default=None, hash=False)
    count: int = 1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ItemStack":
        """Build a stack from its JSON form.

        Args:
            data: Mapping with ``item`` and optional ``damage``, ``nbt``, ``count``

        Returns:
            Parsed item stack

        Raises:
            ValueError: If the mapping has no usable ``item`` name
        """
        item = data.get("item")
        if not isinstance(item, str) or not item:
            raise ValueError(f"Item entry is missing an 'item' name: {data!r}")
        return cls(
            item=item,
            damage=int(data.get("damage", 0) or 0),
            nbt=data.get("nbt") or None,
            count=int(data.get("count", 1)),
        )


def full_dump(stack: ItemStack) -> Dict[str, Any]:
    """Return the identifying fields of a stack as a JSON-ready dict."""
    dump: Dict[str, Any] = {"item": stack.item, "damage": stack.damage}
    if stack.nbt:
        dump["nbt"] = stack.nbt
    return dump


def canonical_key(stack: ItemStack) -> str:
    """Deterministic serialization used as the interning key.

    Keys are sorted at every nesting level so that two tag mappings with the
    same content always produce the same string.
    """
    return json.dumps(full_dump(stack), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def minimal_dump(stable_id: Optional[int], stack: ItemStack) -> Dict[str, Any]:
    """Reference form written into recipe output in place of the full payload."""
    dump: Dict[str, Any] = {"itemSlug": stable_id}
    if stack.count != 1:
        dump["count"] = stack.count
    return dump


def json_default(value: Any) -> Any:
    """Coerce extractor output the json module cannot encode natively."""
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def encode_compact(value: Any) -> str:
    """Compact JSON used for every record written to a dump.

    Raises:
        TypeError: For mappings with keys json cannot encode
        ValueError: For circular references
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=json_default)
