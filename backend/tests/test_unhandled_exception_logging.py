import logging
import os
import sys
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Ensure the app package is importable
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bowling_tracker.exceptions import DomainException, FrameBoundsError
from bowling_tracker.main import domain_exception_handler, unhandled_exception_handler


def test_unhandled_exception_logs_traceback(caplog):
    app = FastAPI()
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/boom")
    def boom():
        raise ValueError("boom")

    client = TestClient(app, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR):
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["code"] == "internal_server_error"
    record = next((r for r in caplog.records if r.message == "Unhandled exception"), None)
    assert record is not None
    assert record.exc_info[0] is ValueError
    assert "ValueError: boom" in caplog.text


def test_domain_exception_becomes_problem():
    app = FastAPI()
    app.add_exception_handler(DomainException, domain_exception_handler)

    @app.get("/frames/{index}")
    def frame(index: int):
        raise FrameBoundsError(f"Invalid frame index {index}")

    response = TestClient(app).get("/frames/12")
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "out_of_bounds"
    assert body["detail"] == "Invalid frame index 12"
    assert body["instance"] == "/frames/12"
