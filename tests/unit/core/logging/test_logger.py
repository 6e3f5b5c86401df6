"""Tests for RequestClientLogger."""

import json
import logging

from request_client.core.logging import (
    LoggingConfig,
    RequestClientLogger,
    get_logger,
    set_request_id,
)


def read_records(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class TestRequestClientLogger:
    """Tests for RequestClientLogger."""

    def test_defaults(self):
        logger = RequestClientLogger()
        try:
            assert logger.name == "request_client.events"
            assert logger._logger.level == logging.INFO
            assert logger._logger.propagate is False
            assert len(logger._logger.handlers) == 1
        finally:
            logger.close()

    def test_fields_written_as_json(self, logging_config_with_file):
        logger = RequestClientLogger(logging_config_with_file, name="request_client.test_fields")
        logger.info("Incoming response", status_code=200, elapsed_ms=12.5)
        logger.close()

        record = read_records(logging_config_with_file.file_path)[0]
        assert record["msg"] == "Incoming response"
        assert record["status_code"] == 200
        assert record["elapsed_ms"] == 12.5

    def test_sensitive_fields_masked(self, logging_config_with_file):
        logger = RequestClientLogger(logging_config_with_file, name="request_client.test_mask")
        logger.info(
            "Outgoing request",
            headers={"Authorization": "Bearer abc", "Accept": "*/*"},
            url="https://a.com/x?token=abc",
        )
        logger.close()

        record = read_records(logging_config_with_file.file_path)[0]
        assert record["headers"]["Authorization"] == "***REDACTED***"
        assert record["headers"]["Accept"] == "*/*"
        assert "abc" not in record["url"]

    def test_request_id_attached(self, logging_config_with_file):
        logger = RequestClientLogger(logging_config_with_file, name="request_client.test_rid")
        set_request_id("req-99")
        logger.warning("Request error (will retry)")
        logger.close()

        assert read_records(logging_config_with_file.file_path)[0]["request_id"] == "req-99"

    def test_level_filtering(self, tmp_path):
        config = LoggingConfig.create(
            level="WARNING", format="json", enable_console=False,
            enable_file=True, file_path=str(tmp_path / "w.log"),
        )
        logger = RequestClientLogger(config, name="request_client.test_level")
        logger.debug("hidden")
        logger.info("hidden")
        logger.error("HTTP request failed")
        logger.close()

        records = read_records(config.file_path)
        assert [r["msg"] for r in records] == ["HTTP request failed"]

    def test_exception_includes_traceback(self, logging_config_with_file):
        logger = RequestClientLogger(logging_config_with_file, name="request_client.test_exc")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("HTTP request failed")
        logger.close()

        record = read_records(logging_config_with_file.file_path)[0]
        assert "RuntimeError: boom" in record["exception"]

    def test_reinit_replaces_handlers(self):
        first = RequestClientLogger(name="request_client.test_reinit")
        second = RequestClientLogger(name="request_client.test_reinit")
        try:
            assert len(second._logger.handlers) == 1
        finally:
            first.close()
            # first закрывает только свои handlers
            assert len(second._logger.handlers) == 1
            second.close()

    def test_close_idempotent(self):
        logger = get_logger(name="request_client.test_close")
        logger.close()
        logger.close()
        assert logger._logger.handlers == []

    def test_close_keeps_foreign_handlers(self):
        logger = get_logger(name="request_client.test_foreign")
        foreign = logging.NullHandler()
        logger._logger.addHandler(foreign)
        try:
            logger.close()
            assert logger._logger.handlers == [foreign]
        finally:
            logger._logger.removeHandler(foreign)
