import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.log_config import GradingLogFormatter, record_context
from app.main import RequestLoggingMiddleware


def make_record(**extra):
    record = logging.LogRecord("app.services.grading", logging.WARNING, __file__, 1, "Grading failed", (), None)
    record.__dict__.update(extra)
    return record


def test_credentials_are_masked():
    record = make_record(email="ama@school.edu", password="secret", hashed_password="$2b$...")

    assert record_context(record) == {"email": "ama@school.edu", "password": "***", "hashed_password": "***"}


def test_json_output_carries_context():
    formatter = GradingLogFormatter(use_json=True)

    payload = json.loads(formatter.format(make_record(exam_id=7, state="rolled_back", Authorization="Bearer x")))

    assert payload["message"] == "Grading failed"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "app.services.grading"
    assert payload["exam_id"] == 7
    assert payload["state"] == "rolled_back"
    assert payload["Authorization"] == "***"


def test_text_output_appends_context():
    formatter = GradingLogFormatter(fmt="%(levelname)s %(message)s")

    assert formatter.format(make_record(exam_id=7)) == "WARNING Grading failed | exam_id=7"
    assert formatter.format(make_record()) == "WARNING Grading failed"


def test_unhandled_error_becomes_internal_error_envelope(caplog):
    broken = FastAPI()
    broken.add_middleware(RequestLoggingMiddleware)

    @broken.get("/boom")
    def boom():
        raise RuntimeError("database went away")

    with caplog.at_level("ERROR", logger="http"):
        response = TestClient(broken).get("/boom")

    assert response.status_code == 500
    assert response.json() == {"detail": {"error": "Internal server error", "code": "INTERNAL_ERROR"}}
    assert caplog.records[0].path == "/boom"
