"""Tests for dump notifiers."""

from rich.console import Console

from recipe_dumper.utils.notifications import ConsoleNotifier, DumpEvent, LoggingNotifier


class TestLoggingNotifier:
    """Events map onto log levels."""

    def test_duplicate_is_warning(self, mock_logger):
        LoggingNotifier(mock_logger)(DumpEvent.DUPLICATE, path="dumps/recipes.json")
        mock_logger.warning.assert_called_once_with(
            "Recipe dump already running, request ignored", path="dumps/recipes.json")

    def test_progress_and_complete_are_info(self, mock_logger):
        notifier = LoggingNotifier(mock_logger)
        notifier(DumpEvent.PROGRESS, completed=1, total=2, percent=50.0)
        notifier(DumpEvent.COMPLETE, path="dumps/recipes.json")
        assert mock_logger.info.call_count == 2


class TestConsoleNotifier:
    """Events are printed to a rich console."""

    def test_messages(self):
        console = Console(record=True, width=120)
        notifier = ConsoleNotifier(console)

        notifier(DumpEvent.PROGRESS, completed=5, total=20, percent=25.0)
        notifier(DumpEvent.COMPLETE, path="dumps/recipes.json")
        notifier(DumpEvent.DUPLICATE, path="dumps/recipes.json")

        text = console.export_text()
        assert "Dumping recipes: 5/20 (25.0%)" in text
        assert "Recipes dumped to dumps/recipes.json" in text
        assert "already running" in text

    def test_default_console(self):
        assert isinstance(ConsoleNotifier().console, Console)

    def test_unknown_context_defaults(self):
        console = Console(record=True, width=120)
        ConsoleNotifier(console)(DumpEvent.PROGRESS)
        assert "0/0 (0.0%)" in console.export_text()
