"""Tests for the structured logging helpers."""

import json
import logging

from BioPortalLookup.logging_utils import LOGGER_NAME, JSONFormatter, mask_sensitive_data, setup_logging


class TestMasking:
    def test_sensitive_keys_masked(self):
        masked = mask_sensitive_data(
            {"api_key": "abc", "headers": {"Authorization": "apikey token=abc"}, "ontology": "EFO"}
        )
        assert masked["api_key"] == "***masked***"
        assert masked["headers"]["Authorization"] == "***masked***"
        assert masked["ontology"] == "EFO"

    def test_apikey_in_free_text(self):
        masked = mask_sensitive_data({"url": "https://data.bioontology.org/ontologies?apikey=abc&x=1"})
        assert masked["url"] == "https://data.bioontology.org/ontologies?apikey=***masked***&x=1"


class TestJSONFormatter:
    def test_extra_fields_included(self):
        record = logging.LogRecord(LOGGER_NAME, logging.WARNING, __file__, 1, "probe failed", (), None)
        record.ontology = "EFO"
        record.token = "secret"
        payload = json.loads(JSONFormatter().format(record))
        assert payload["level"] == "WARNING"
        assert payload["message"] == "probe failed"
        assert payload["ontology"] == "EFO"
        assert payload["token"] == "***masked***"
        assert payload["timestamp"].endswith("Z")


class TestSetupLogging:
    def test_writes_json_lines(self, tmp_path):
        logger = setup_logging(level="DEBUG", log_dir=tmp_path)
        logging.getLogger(f"{LOGGER_NAME}.client").info("ontology fetched", extra={"ontology": "EFO"})
        for handler in logger.handlers:
            handler.flush()
        (log_file,) = tmp_path.glob("bioportal-lookup-*.jsonl")
        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["message"] == "ontology fetched"
        assert entry["ontology"] == "EFO"
        assert logger.propagate is False

    def test_repeat_calls_replace_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        logger = setup_logging(log_dir=tmp_path)
        managed = [h for h in logger.handlers if getattr(h, "_bioportal_managed", False)]
        assert len(managed) == 2

    def test_console_only(self, tmp_path):
        logger = setup_logging(level="warning", emit_json_logs=False, log_dir=tmp_path)
        assert logger.level == logging.WARNING
        assert list(tmp_path.iterdir()) == []

    def test_log_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BIOPORTAL_LOG_DIR", str(tmp_path / "logs"))
        setup_logging()
        assert list((tmp_path / "logs").glob("*.jsonl"))
