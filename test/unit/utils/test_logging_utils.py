"""Tests for logging utilities."""
import logging
import tempfile
from pathlib import Path

import pytest

from recipe_dumper.utils.logging_utils import setup_logging


class TestLoggingUtils:
    """Test cases for logging utilities."""

    def test_setup_logging_default(self):
        """Test setup logging with default parameters."""
        logger = setup_logging()
        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'debug')
        assert hasattr(logger, 'error')

    def test_setup_logging_with_level(self):
        """Test setup logging with different levels."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logger = setup_logging(level=level)
            assert logger is not None

    def test_setup_logging_invalid_level(self):
        """Test setup logging with invalid level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging(level="INVALID")

    def test_setup_logging_with_file(self):
        """Test setup logging attaches a single file handler."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / "logs" / "dump.log"
            root = logging.getLogger()
            try:
                setup_logging(log_file=log_file, console_output=False)
                setup_logging(log_file=log_file, console_output=False)

                handlers = [h for h in root.handlers
                            if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve()]
                assert len(handlers) == 1
                assert log_file.exists()
            finally:
                for handler in list(root.handlers):
                    if isinstance(handler, logging.FileHandler):
                        root.removeHandler(handler)
                        handler.close()
