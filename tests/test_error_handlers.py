from __future__ import annotations

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.testclient import TestClient

from hrdesk.errors import register_error_handlers


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    api_router = APIRouter(prefix="/api/v1")

    @api_router.get("/http-403")
    def api_http_403():
        raise HTTPException(status_code=403, detail="Forbidden api")

    @api_router.get("/http-409-structured")
    def api_http_409():
        raise HTTPException(
            status_code=409,
            detail={"code": "duplicate", "message": "Already saved", "details": {"id": 7}},
        )

    @api_router.get("/needs-int")
    def api_needs_int(value: int):
        return {"value": value}

    @api_router.get("/crash")
    def api_crash():
        raise RuntimeError("boom")

    app.include_router(api_router)
    return app


def test_http_exception_returns_json_envelope() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/v1/http-403")

    assert resp.status_code == 403
    assert resp.json() == {
        "code": "http_403",
        "message": "Forbidden api",
        "details": None,
        "request_id": "unknown",
    }


def test_structured_detail_is_passed_through() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/v1/http-409-structured")

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "duplicate"
    assert body["message"] == "Already saved"
    assert body["details"] == {"id": 7}


def test_unknown_route_uses_same_envelope() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/v1/missing")

    assert resp.status_code == 404
    assert resp.json()["code"] == "http_404"


def test_validation_error_lists_fields() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    resp = client.get("/api/v1/needs-int", params={"value": "abc"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "validation_error"
    assert body["details"][0]["loc"] == ["query", "value"]
    assert "ctx" not in body["details"][0]


def test_unhandled_exception_is_hidden_and_logged(caplog) -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)
    with caplog.at_level("ERROR", logger="hrdesk.errors"):
        resp = client.get("/api/v1/crash")

    assert resp.status_code == 500
    assert resp.json()["code"] == "internal_error"
    assert "boom" not in resp.text
    assert any("Unhandled exception" in record.getMessage() for record in caplog.records)
