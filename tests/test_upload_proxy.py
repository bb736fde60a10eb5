import json
import logging
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from web_app import server  # noqa: E402
from web_app.routes import upload as upload_module  # noqa: E402

app = server.app


@pytest.fixture
def backend(tmp_path, monkeypatch):
    """Подменить внешний API обработки документов."""
    calls = []
    reply = {"response": httpx.Response(201, json={"id": "doc-1"})}

    def handler(request):
        calls.append(request)
        result = reply["response"]
        if isinstance(result, Exception):
            raise result
        return result

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        upload_module,
        "_client",
        lambda proxy: httpx.AsyncClient(transport=transport, timeout=proxy.proxy_timeout),
    )
    monkeypatch.setattr(server.config, "proxy_mode", "forward")
    monkeypatch.setattr(server.config, "staging_dir", str(tmp_path))
    monkeypatch.setenv("API_BASE", "http://backend.test/")
    monkeypatch.setenv("API_KEY", "secret")
    return calls, reply


def test_forwards_body_and_headers(backend):
    calls, _ = backend
    with TestClient(app) as client:
        resp = client.post(
            "/api/upload",
            files={"files": ("report.pdf", b"%PDF-1.4 data", "application/pdf")},
            data={"meta_abc": json.dumps({"priority": "High"})},
        )

    assert resp.status_code == 201
    assert resp.json() == {"id": "doc-1"}
    assert len(calls) == 1
    sent = calls[0]
    assert str(sent.url) == "http://backend.test/process-file"
    assert sent.method == "POST"
    assert sent.headers["x-api-key"] == "secret"
    assert sent.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert int(sent.headers["content-length"]) == len(sent.content)
    assert b'filename="report.pdf"' in sent.content
    assert b"%PDF-1.4 data" in sent.content
    assert b'name="meta_abc"' in sent.content


def test_backend_errors_pass_through(backend):
    _, reply = backend
    reply["response"] = httpx.Response(422, json={"detail": "bad metadata"})
    with TestClient(app) as client:
        resp = client.post("/api/upload", files={"files": ("a.txt", b"a")})
    assert resp.status_code == 422
    assert resp.json() == {"detail": "bad metadata"}


def test_api_key_omitted_when_unset(backend, monkeypatch):
    calls, _ = backend
    monkeypatch.delenv("API_KEY")
    with TestClient(app) as client:
        client.post("/api/upload", files={"files": ("a.txt", b"a")})
    assert "x-api-key" not in calls[0].headers


def test_unreachable_backend_returns_500(backend, caplog):
    _, reply = backend
    reply["response"] = httpx.ConnectError("connection refused")
    with TestClient(app) as client, caplog.at_level(logging.ERROR):
        resp = client.post("/api/upload", files={"files": ("a.txt", b"a")})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Backend request failed", "detail": "connection refused"}
    assert "could not reach the backend" in caplog.text


def test_unexpected_error_returns_500(backend, monkeypatch):
    def boom(proxy):
        raise RuntimeError("broken client")

    monkeypatch.setattr(upload_module, "_client", boom)
    with TestClient(app) as client:
        resp = client.post("/api/upload", files={"files": ("a.txt", b"a")})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Upload proxy failed", "detail": "broken client"}


@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
def test_other_methods_not_allowed(method, tmp_path, monkeypatch):
    monkeypatch.setattr(server.config, "staging_dir", str(tmp_path))
    with TestClient(app) as client:
        resp = client.request(method, "/api/upload")
    assert resp.status_code == 405
    assert resp.content == b""


def test_stub_mode_does_not_forward(backend, monkeypatch, caplog):
    calls, _ = backend
    monkeypatch.setattr(server.config, "proxy_mode", "stub")
    with TestClient(app) as client, caplog.at_level(logging.WARNING):
        resp = client.post("/api/upload", files={"files": ("notes.txt", b"n")})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["filename"] == "notes.txt"
    assert body["file_id"]
    assert calls == []
    assert "stub mode" in caplog.text
