"""Tests for structured logging setup."""
from __future__ import annotations

import json

from kinship_engine.logging import configure_logging, get_logger


class TestConfigureLogging:
    """Tests for configure_logging and get_logger."""

    def test_events_render_as_json(self, caplog):
        """Test an event is one JSON line carrying logger name, level and context."""
        configure_logging("WARNING")
        try:
            logger = get_logger("kinship_engine.events")
            logger.info("relatives_matched", subject_id="S", candidates=0)
            logger.warning("store_read_retry", call="get", attempt=1)
        finally:
            configure_logging("INFO")

        lines = [json.loads(r.getMessage()) for r in caplog.records if r.name == "kinship_engine.events"]
        assert len(lines) == 1
        (line,) = lines
        assert line["event"] == "store_read_retry"
        assert line["level"] == "warning"
        assert line["logger"] == "kinship_engine.events"
        assert line["attempt"] == 1
        assert "timestamp" in line
