"""
Tests for configuration and logging setup.
"""
import json
import logging
import os

from inventory_portal.core import paths


class TestPaths:

    def test_validate_ok(self, temp_data_dir):
        result = paths.validate_paths()
        assert result["ok"] is True
        assert result["resolved"]["DATA_DIR"] == temp_data_dir

    def test_missing_chromium_is_a_warning(self, monkeypatch):
        monkeypatch.setattr(paths, "CHROMIUM_EXECUTABLE_PATH", "/nonexistent/chromium")
        result = paths.validate_paths()
        assert result["ok"] is True
        assert any("CHROMIUM_EXECUTABLE_PATH" in w for w in result["warnings"])

    def test_non_positive_timeout_is_an_error(self, monkeypatch):
        monkeypatch.setattr(paths, "PDF_STRATEGY_TIMEOUT", 0)
        assert paths.validate_paths()["ok"] is False

    def test_env_float(self, monkeypatch):
        monkeypatch.setenv("X_TIMEOUT", "12.5")
        assert paths._env_float("X_TIMEOUT", 1.0) == 12.5
        monkeypatch.setenv("X_TIMEOUT", "soon")
        assert paths._env_float("X_TIMEOUT", 1.0) == 1.0


class TestLogging:

    def test_json_formatter_keeps_whitelisted_extras(self):
        from logging_config import JSONFormatter
        record = logging.LogRecord("portal.pdf", logging.INFO, __file__, 1,
                                   "rendered %s", ("q1",), None)
        record.strategy = "canvas"
        record.secret = "hidden"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["msg"] == "rendered q1"
        assert entry["strategy"] == "canvas"
        assert "secret" not in entry

    def test_setup_writes_log_file(self, temp_data_dir):
        from logging_config import setup_logging
        setup_logging(level="INFO", json_logs=True)
        logging.getLogger("portal.test").info("hello")
        for h in logging.getLogger().handlers:
            h.flush()
        assert os.path.exists(os.path.join(temp_data_dir, "logs", "portal.log"))

    def test_console_suffix_for_render_attempt(self):
        from logging_config import HumanFormatter
        record = logging.LogRecord("portal.pdf", logging.WARNING, __file__, 1,
                                   "PDF strategy failed", (), None)
        record.quotation_id = "65a1b2c3d4e5f6a7b8ab12cd"
        record.strategy = "server-browser"
        record.duration_ms = 1234.4
        line = HumanFormatter(color=False).format(record)
        assert line.endswith("portal.pdf: PDF strategy failed [q=AB12CD server-browser 1234ms]")

    def test_console_suffix_for_request_line(self):
        from logging_config import HumanFormatter
        record = logging.LogRecord("portal.api", logging.INFO, __file__, 1,
                                   "GET /api/products → 200 (5ms)", (), None)
        record.route = "/api/products"
        record.duration_ms = 5.0
        record.user = "Raza Rider"
        line = HumanFormatter(color=False).format(record)
        assert line.endswith("(5ms) [by Raza Rider]")

    def test_console_plain_record_has_no_suffix(self):
        from logging_config import HumanFormatter
        record = logging.LogRecord("portal", logging.INFO, __file__, 1, "ready", (), None)
        assert HumanFormatter(color=False).format(record).endswith("portal: ready")

    def test_render_chain_also_logged_to_pdf_log(self, temp_data_dir):
        from logging_config import setup_logging
        setup_logging(level="INFO", json_logs=True)
        logging.getLogger("portal.pdf").info("canvas produced", extra={"strategy": "canvas"})
        logging.getLogger("portal.api").info("unrelated")
        for h in logging.getLogger().handlers + logging.getLogger("portal.pdf").handlers:
            h.flush()
        with open(os.path.join(temp_data_dir, "logs", "pdf.log")) as f:
            entries = [json.loads(line) for line in f]
        assert [e["msg"] for e in entries] == ["canvas produced"]
        assert entries[0]["strategy"] == "canvas"
