"""Command line entry point for recipe-dumper."""
import argparse
import importlib
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from recipe_dumper import CatalogLoadError, RecipeDumperError
from recipe_dumper.core.config_manager import VALID_LOG_LEVELS, ConfigManager
from recipe_dumper.core.item_codec import ItemStack
from recipe_dumper.export.recipe_dumper import RecipeDumper
from recipe_dumper.registry.extractors import ExtractorRegistry, create_default_registry
from recipe_dumper.registry.production_sources import ProductionSourceRegistry
from recipe_dumper.utils.logging_utils import setup_logging
from recipe_dumper.utils.notifications import ConsoleNotifier


def load_catalog(path: Path) -> List[ItemStack]:
    """Read an item catalog from a JSON array of item entries.

    Raises:
        CatalogLoadError: If the file is missing, malformed or has bad entries
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CatalogLoadError(f"Failed to read item catalog {path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogLoadError(f"Item catalog {path} must be a JSON array")

    items = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise CatalogLoadError(f"Catalog entry {index} in {path} is not an object")
        try:
            items.append(ItemStack.from_dict(entry))
        except (TypeError, ValueError) as e:
            raise CatalogLoadError(f"Catalog entry {index} in {path} is invalid: {e}") from e
    return items


def load_plugins(module_names: Sequence[str], sources: ProductionSourceRegistry,
                 extractors: ExtractorRegistry,
                 logger: Optional[structlog.BoundLogger] = None) -> int:
    """Import plugin modules and let each register its sources and extractors.

    Every module must expose ``register(sources, extractors)``.

    Returns:
        Number of plugin modules loaded

    Raises:
        CatalogLoadError: If a module cannot be imported or has no ``register``
    """
    logger = logger or structlog.get_logger(__name__)
    loaded = 0
    for name in module_names:
        try:
            module = importlib.import_module(name)
        except ImportError as e:
            raise CatalogLoadError(f"Failed to import plugin module {name}: {e}") from e

        register = getattr(module, "register", None)
        if not callable(register):
            raise CatalogLoadError(f"Plugin module {name} has no register(sources, extractors)")
        register(sources, extractors)
        loaded += 1
        logger.info("Plugin loaded", module=name)
    return loaded


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="recipe-dumper - Stream crafting recipes to JSON")
    parser.add_argument("--config", type=Path, help="Path to configuration file")
    parser.add_argument("--catalog", type=Path, required=True, help="JSON array of items to query")
    parser.add_argument("--output", type=Path, help="Dump file (defaults to <dumps_dir>/recipes.json)")
    parser.add_argument("--mode", type=int, choices=[0, 1], default=0,
                        help="Dump mode (both modes write the JSON stream)")
    parser.add_argument("--workers", type=int, help="Parallel query workers")
    parser.add_argument("--plugin", action="append", default=[],
                        help="Plugin module to load (repeatable)")
    parser.add_argument("--log-level", type=str.upper, choices=VALID_LOG_LEVELS,
                        help="Log level override")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")

    args = parser.parse_args(argv)

    try:
        logger = setup_logging(level=args.log_level or "INFO", log_file=args.log_file)
        config = ConfigManager(args.config, logger).config

        level = args.log_level or ("DEBUG" if config.debug else config.logging.level)
        logger = setup_logging(level=level, log_file=args.log_file,
                               console_output=config.logging.console_output)

        if args.workers is not None:
            config.dump.workers = max(1, args.workers)

        sources = ProductionSourceRegistry(logger)
        extractors = create_default_registry(logger)
        load_plugins(list(config.plugins) + list(args.plugin), sources, extractors, logger)

        items = load_catalog(args.catalog)
        output = args.output or Path(config.dump.dumps_dir) / f"recipes{RecipeDumper.file_extension}"

        dumper = RecipeDumper(items, sources, extractors, config.dump,
                              notifier=ConsoleNotifier(), logger=logger)
        dumper.dump_to(output, args.mode)
        dumper.join()

        result = dumper.last_result
        return 0 if result is not None and result.succeeded else 1

    except RecipeDumperError as e:
        print(f"Recipe dumper error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nStopped by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
