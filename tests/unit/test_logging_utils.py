import json
import logging
from io import StringIO

from game_recommender.logging_utils import JsonFormatter, configure_logger


def _capture(logger_name):
    logger = logging.getLogger(logger_name)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.handlers = []
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger, stream


def test_json_formatter_outputs_whitelisted_extras():
    logger, stream = _capture("json_formatter_test")

    logger.info("hello", extra={"event": "encode_batch_done", "batch": 2, "user_id": 55})
    payload = json.loads(stream.getvalue())

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "json_formatter_test"
    assert payload["event"] == "encode_batch_done"
    assert payload["batch"] == 2
    assert "user_id" not in payload
    assert "lineno" not in payload


def test_json_formatter_serializes_non_json_values():
    logger, stream = _capture("json_formatter_shape_test")

    logger.info("shape", extra={"shape": (3, 38), "output_path": object()})
    payload = json.loads(stream.getvalue())

    assert payload["shape"] == [3, 38]
    assert isinstance(payload["output_path"], str)


def test_json_formatter_includes_exception_text():
    logger, stream = _capture("json_formatter_exc_test")

    try:
        raise RuntimeError("write refused")
    except RuntimeError:
        logger.exception("failed", extra={"event": "encode_batch_aborted"})

    payload = json.loads(stream.getvalue())
    assert "RuntimeError: write refused" in payload["exc_info"]


def test_configure_logger_is_idempotent():
    logger_name = "config_test_logger"
    logging.getLogger(logger_name).handlers = []

    l1 = configure_logger(logger_name)
    l2 = configure_logger(logger_name)

    assert l1 is l2
    assert len(l1.handlers) == 1
    assert isinstance(l1.handlers[0].formatter, JsonFormatter)
    assert l1.propagate is False
