"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from rawhttpd.http.request import HTTPRequest, Method
from rawhttpd.http.response import HTTPResponse, ResponseBuilder, not_found
from rawhttpd.http.router import HandlerError
from rawhttpd.middleware import (
    LoggingMiddleware,
    Middleware,
    MiddlewarePipeline,
    RequestLog,
)


def make_request(path: str = "/echo/abc") -> HTTPRequest:
    return HTTPRequest(method=Method.GET, path=path, headers=("User-Agent: tester",))


def echo_handler(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().text("abc").build()


class Recorder(Middleware):
    """Records the order middleware is entered and left."""

    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class ShortCircuit(Middleware):
    def __call__(self, request, next):
        return not_found()


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline class."""

    def test_empty_pipeline_is_handler(self):
        pipeline = MiddlewarePipeline()
        handler = pipeline.wrap(echo_handler)

        assert len(pipeline) == 0
        assert handler(make_request()).body == b"abc"

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().use(Recorder("a", calls), Recorder("b", calls))

        pipeline.wrap(echo_handler)(make_request())

        assert calls == ["a:in", "b:in", "b:out", "a:out"]

    def test_short_circuit(self):
        calls = []
        pipeline = MiddlewarePipeline().add(ShortCircuit()).add(Recorder("inner", calls))

        response = pipeline.wrap(echo_handler)(make_request())

        assert response == not_found()
        assert calls == []

    def test_name(self):
        assert ShortCircuit().name == "ShortCircuit"


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware class."""

    def test_text_format(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(echo_handler)

        with caplog.at_level(logging.INFO, logger="rawhttpd.access"):
            response = handler(make_request())

        assert response.body == b"abc"
        [record] = caplog.records
        assert record.name == "rawhttpd.access"
        assert record.getMessage().startswith("GET /echo/abc HTTP/1.1 200 3 ")
        assert record.getMessage().endswith("ms")

    def test_json_format(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware(log_format="json")).wrap(echo_handler)

        with caplog.at_level(logging.INFO, logger="rawhttpd.access"):
            handler(make_request())

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/echo/abc"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 3
        assert entry["user_agent"] == "tester"

    def test_skip_paths(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware(skip_paths=["/"])).wrap(echo_handler)

        with caplog.at_level(logging.INFO, logger="rawhttpd.access"):
            handler(make_request("/"))

        assert caplog.records == []

    def test_failure_logged_and_reraised(self, caplog):
        def failing(request):
            raise HandlerError("disk full")

        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(failing)

        with caplog.at_level(logging.INFO, logger="rawhttpd.access"):
            with pytest.raises(HandlerError):
                handler(make_request())

        assert caplog.records[0].levelno == logging.WARNING
        assert "HandlerError" in caplog.records[0].getMessage()

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")


class TestRequestLog:
    """Tests for RequestLog formatting."""

    def test_to_text(self):
        entry = RequestLog("POST", "/files/a", "HTTP/1.1", "-", 201, 0, 1.234)
        assert entry.to_text() == "POST /files/a HTTP/1.1 201 0 1.23ms"

    def test_to_dict_rounds_duration(self):
        entry = RequestLog("GET", "/", "HTTP/1.0", "curl", 200, 0, 0.126)
        assert entry.to_dict()["duration_ms"] == 0.13
