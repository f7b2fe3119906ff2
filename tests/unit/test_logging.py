"""
Unit tests for logging setup
"""

import logging

from core.config import settings
from core.logging import setup_logging


def test_setup_logging_reports_build_locations(caplog):
    with caplog.at_level(logging.INFO, logger="core.logging"):
        setup_logging()

    assert "Logging configured" in caplog.text
    assert str(settings.BUILD_DIR) in caplog.text
    assert str(settings.OUTPUT_DIR) in caplog.text
    assert logging.getLogger("httpx").level == logging.WARNING
