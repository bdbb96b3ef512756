"""Pytest configuration and shared fixtures for recipe-dumper tests."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from recipe_dumper.core.item_codec import ItemStack
from recipe_dumper.registry.extractors import create_default_registry
from recipe_dumper.registry.production_sources import ProductionSourceRegistry


class FakeSource:
    """Production source backed by a list of recipe dicts."""

    def __init__(self, handler_id: str, recipes: List[Dict[str, Any]],
                 recipe_name: Optional[str] = None, tab_name: Optional[str] = None):
        self.handler_id = handler_id
        self.recipe_name = recipe_name or handler_id.title()
        self.tab_name = tab_name or f"{handler_id}.tab"
        self._recipes = recipes

    @property
    def recipe_count(self) -> int:
        return len(self._recipes)

    def ingredients(self, recipe_index: int):
        return self._recipes[recipe_index].get("ingredients", [])

    def other_stacks(self, recipe_index: int):
        return self._recipes[recipe_index].get("others", [])

    def result(self, recipe_index: int):
        return self._recipes[recipe_index].get("result")


def make_factory(handler_id: str, recipes_by_item: Dict[str, List[Dict[str, Any]]]):
    """Factory returning a FakeSource for items listed in ``recipes_by_item``."""
    def factory(target: ItemStack):
        recipes = recipes_by_item.get(target.item)
        if recipes is None:
            return None
        return FakeSource(handler_id, recipes)
    factory.__name__ = f"{handler_id}_factory"
    return factory


PLANK = ItemStack("mod:plank", count=2)
INGOT = ItemStack("mod:ingot", nbt={"purity": 1, "origin": {"dim": 0}})
ORE = ItemStack("mod:ore", damage=3)
COAL = ItemStack("mod:coal")


@pytest.fixture
def mock_logger():
    """Create a mock logger for unit tests."""
    return Mock()


@pytest.fixture
def scenario_items():
    """Catalog A, B, C: one crafting recipe, nothing, two handlers."""
    return [ItemStack("mod:a"), ItemStack("mod:b"), ItemStack("mod:c")]


@pytest.fixture
def scenario_sources(mock_logger):
    """Crafting and smelting handlers for the A/B/C catalog."""
    registry = ProductionSourceRegistry(mock_logger)
    registry.register(make_factory("crafting", {
        "mod:a": [
            {"ingredients": [PLANK], "result": ItemStack("mod:a")},
        ],
        "mod:c": [
            {"ingredients": [INGOT], "result": ItemStack("mod:c", count=2)},
            {"ingredients": [INGOT, PLANK], "result": ItemStack("mod:c")},
        ],
    }))
    registry.register(make_factory("smelting", {
        "mod:c": [
            {"ingredients": [ORE], "others": [COAL], "result": ItemStack("mod:c")},
        ],
    }))
    return registry


@pytest.fixture
def extractors(mock_logger):
    """Extractor registry holding only the builtin fallback set."""
    return create_default_registry(mock_logger)


def collect_item_slugs(value: Any) -> List[int]:
    """Every ``itemSlug`` reference found anywhere in a dump value."""
    found: List[int] = []
    if isinstance(value, dict):
        for key, child in value.items():
            if key == "itemSlug":
                found.append(child)
            else:
                found.extend(collect_item_slugs(child))
    elif isinstance(value, list):
        for child in value:
            found.extend(collect_item_slugs(child))
    return found
