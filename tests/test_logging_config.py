"""Tests for logging setup and secret masking."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def make_record(msg, args=None):
    return logging.LogRecord("vault.test", logging.INFO, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:
    """Test masking of credentials in log output."""

    def test_masks_presigned_signature(self):
        record = make_record(
            "url=http://minio:9000/b/k?X-Amz-Credential=AKIA%2F20240101&X-Amz-Signature=deadbeef&X-Amz-Expires=600"
        )

        SensitiveDataFilter().filter(record)

        assert "deadbeef" not in record.msg
        assert "AKIA" not in record.msg
        assert "X-Amz-Expires=600" in record.msg

    def test_masks_keys_in_args(self):
        record = make_record("config: %s", ("secret_key=hunter2 bucket=vault",))

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "config: secret_key=***MASKED*** bucket=vault"

    def test_leaves_plain_messages_alone(self):
        record = make_record("File uploaded successfully [file_id=abc]")

        SensitiveDataFilter().filter(record)

        assert record.msg == "File uploaded successfully [file_id=abc]"


class TestSetupLogging:
    """Test component logger setup."""

    def test_single_handler_on_repeat_calls(self):
        logger = setup_logging("vault-logging-test", log_level="DEBUG")
        setup_logging("vault-logging-test")

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert any(isinstance(f, SensitiveDataFilter) for f in logger.handlers[0].filters)

    def test_repeat_call_keeps_configured_level(self):
        logger = setup_logging("vault-logging-level-test", log_level="DEBUG")

        again = setup_logging("vault-logging-level-test", log_level="ERROR")

        assert again is logger
        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG
