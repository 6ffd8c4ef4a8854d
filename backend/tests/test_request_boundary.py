import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from app.core import context
from app.core.logging import CorrelationIdMiddleware, is_security_relevant, resolve_client_ip

from conftest import RecordingLoggingService, audit_entries, entries_for

BOUNDARY_LOGGER = "app.core.logging"


class AuthenticationFailed(Exception):
    pass


def build_app(logging_service=None):
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware, logging_service=logging_service)

    @app.get("/echo")
    async def echo():
        await asyncio.sleep(0.02)
        return {"correlation_id": context.get_correlation_id(), "user_id": context.get_user_id()}

    @app.get("/secure")
    async def secure():
        raise AuthenticationFailed("token expired")

    @app.get("/broken")
    async def broken():
        raise RuntimeError("boom")

    return app


def make_request(headers=None, client=("127.0.0.1", 5000)):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/todos",
        "raw_path": b"/api/todos",
        "query_string": b"",
        "headers": raw,
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
        "root_path": "",
        "http_version": "1.1",
    }
    return Request(scope)


class TestClientIp:
    def test_forwarded_for_wins(self):
        headers = {"X-Forwarded-For": "1.2.3.4, 5.6.7.8", "X-Real-IP": "9.9.9.9"}
        assert resolve_client_ip(headers, "127.0.0.1") == "1.2.3.4"

    def test_real_ip_is_next(self):
        assert resolve_client_ip({"X-Real-IP": "5.6.7.8"}, "127.0.0.1") == "5.6.7.8"

    def test_unknown_values_are_skipped(self):
        headers = {"X-Forwarded-For": "unknown", "X-Real-IP": "unknown"}
        assert resolve_client_ip(headers, "127.0.0.1") == "127.0.0.1"

    def test_falls_back_to_peer_address(self):
        assert resolve_client_ip({}, "127.0.0.1") == "127.0.0.1"
        assert resolve_client_ip({}, None) is None


class TestSecurityRelevance:
    @pytest.mark.parametrize(
        "exc, expected",
        [
            (AuthenticationFailed(), True),
            (type("AuthorizationDenied", (Exception,), {})(), True),
            (type("ForbiddenAction", (Exception,), {})(), True),
            (RuntimeError(), False),
            (ValueError(), False),
        ],
    )
    def test_by_exception_name(self, exc, expected):
        assert is_security_relevant(exc) is expected


class TestCorrelationHeader:
    def test_generated_when_missing(self, client):
        first = client.get("/api/todos")
        second = client.get("/api/todos")

        first_id = first.headers["X-Correlation-ID"]
        second_id = second.headers["X-Correlation-ID"]
        assert first_id.strip()
        assert second_id.strip()
        assert first_id != second_id

    def test_inbound_id_is_echoed(self, client):
        response = client.get("/api/todos", headers={"X-Correlation-ID": "client-req-1"})
        assert response.headers["X-Correlation-ID"] == "client-req-1"

    def test_inbound_id_is_truncated(self, client):
        response = client.get("/api/todos", headers={"X-Correlation-ID": "a" * 80})
        assert response.headers["X-Correlation-ID"] == "a" * 64

    def test_error_responses_carry_the_header(self, client):
        response = client.get("/api/todos/999", headers={"X-Correlation-ID": "missing-1"})
        assert response.status_code == 404
        assert response.headers["X-Correlation-ID"] == "missing-1"

    def test_unhandled_errors_carry_the_header_and_json_body(self):
        with TestClient(build_app(RecordingLoggingService()), raise_server_exceptions=False) as test_client:
            response = test_client.get("/broken", headers={"X-Correlation-ID": "boom-1"})

        assert response.status_code == 500
        assert response.headers["X-Correlation-ID"] == "boom-1"
        body = response.json()
        assert body["status"] == 500
        assert body["message"] == "Internal server error"
        assert body["path"] == "/broken"

    def test_concurrent_requests_keep_their_own_context(self):
        app = build_app(RecordingLoggingService())
        with TestClient(app) as test_client:
            def call(i):
                response = test_client.get("/echo", headers={"X-Correlation-ID": f"req-{i}"})
                return response.json()["correlation_id"]

            with ThreadPoolExecutor(max_workers=4) as pool:
                seen = list(pool.map(call, range(8)))

        assert seen == [f"req-{i}" for i in range(8)]


class TestRequestLogging:
    def test_request_lines(self, client, log_output):
        client.get("/api/todos?page=1", headers={"X-Correlation-ID": "corr-7", "X-Forwarded-For": "9.9.9.9"})

        events = [e["event"] for e in entries_for(log_output, BOUNDARY_LOGGER)]
        assert "Request started: GET /api/todos?page=1 from 9.9.9.9" in events
        completed = [e for e in events if e.startswith("Request completed: GET /api/todos - Status: 200")]
        assert len(completed) == 1

        service_events = [e["event"] for e in entries_for(log_output, "app.services.logging_service")]
        assert "Business Operation: HTTP_REQUEST_START - GET /api/todos from 9.9.9.9" in service_events
        assert any(e.startswith("API Call: GET /api/todos - Status: 200") for e in service_events)

        stamped = [e for e in entries_for(log_output, BOUNDARY_LOGGER) if e.get("correlation_id") == "corr-7"]
        assert len(stamped) >= 2

    def test_user_header_reaches_audit_entries(self, client, log_output):
        client.post(
            "/api/todos",
            json={"title": "Audited"},
            headers={"X-User-ID": "alice", "X-Correlation-ID": "corr-8", "User-Agent": "pytest-agent"},
        )

        (entry,) = audit_entries(log_output)
        assert entry["user_id"] == "alice"
        assert entry["correlation_id"] == "corr-8"
        assert entry["user_agent"] == "pytest-agent"

    def test_security_errors_are_flagged(self, log_output):
        recorder = RecordingLoggingService()
        with TestClient(build_app(recorder), raise_server_exceptions=False) as test_client:
            response = test_client.get("/secure")

        assert response.status_code == 500
        service_lines = entries_for(log_output, "app.services.logging_service")
        assert any(e["event"].startswith("Security Event: REQUEST_ERROR - Error in GET /secure") for e in service_lines)
        api_calls = [e for e in service_lines if e["event"].startswith("API Call: GET /secure")]
        assert api_calls[0]["status_code"] == 500
        assert api_calls[0]["log_level"] == "error"
        errors = [e for e in entries_for(log_output, BOUNDARY_LOGGER) if e["log_level"] == "error"]
        assert errors[0]["event"].startswith("Request error: GET /secure")

    def test_plain_errors_are_not_flagged(self, log_output):
        with TestClient(build_app(RecordingLoggingService()), raise_server_exceptions=False) as test_client:
            assert test_client.get("/broken").status_code == 500

        service_lines = entries_for(log_output, "app.services.logging_service")
        assert not any(e["event"].startswith("Security Event") for e in service_lines)


class TestContextCleanup:
    def test_context_cleared_after_success(self):
        middleware = CorrelationIdMiddleware(build_app(), logging_service=RecordingLoggingService())
        seen = {}

        async def call_next(request):
            seen.update(context.get_all())
            return PlainTextResponse("ok")

        async def run():
            response = await middleware.dispatch(make_request({"X-User-ID": "bob"}), call_next)
            return response, context.get_all()

        response, remaining = asyncio.run(run())

        assert response.headers["X-Correlation-ID"] == seen["correlation_id"]
        assert seen["user_id"] == "bob"
        assert seen["remote_addr"] == "127.0.0.1"
        assert seen["request_uri"] == "/api/todos"
        assert remaining == {}

    def test_context_cleared_after_exception(self):
        middleware = CorrelationIdMiddleware(build_app(), logging_service=RecordingLoggingService())
        failure = RuntimeError("downstream failed")

        async def call_next(request):
            assert context.get_correlation_id() == "corr-x"
            raise failure

        async def run():
            response = await middleware.dispatch(make_request({"X-Correlation-ID": "corr-x"}), call_next)
            return response, context.get_all()

        response, remaining = asyncio.run(run())

        assert response.status_code == 500
        assert response.headers["X-Correlation-ID"] == "corr-x"
        assert remaining == {}
