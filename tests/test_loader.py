"""Tests for reading and validating source documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from openapi_client_generator import loader
from openapi_client_generator.loader import (
    SpecLoadError,
    ensure_supported_version,
    is_url,
    load_openapi_document,
)
from .fixture_helpers import fixture_path

_MINIMAL_DOCUMENT: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Minimal", "version": "1"},
    "paths": {},
}


def _fake_get(status_code: int, text: str) -> Any:
    def _get(url: str, **_: Any) -> httpx.Response:
        return httpx.Response(status_code, text=text, request=httpx.Request("GET", url))

    return _get


def test_is_url() -> None:
    assert is_url("https://example.com/openapi.yaml")
    assert is_url("http://localhost:8000/openapi.json")
    assert not is_url("specs/openapi.yaml")
    assert not is_url("ftp://example.com/openapi.yaml")


def test_loads_yaml_fixture() -> None:
    document = load_openapi_document(str(fixture_path("petstore.yaml")))
    assert document["openapi"] == "3.0.3"


def test_loads_json_document(tmp_path: Path) -> None:
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps(_MINIMAL_DOCUMENT), encoding="utf-8")
    assert load_openapi_document(str(path))["info"]["title"] == "Minimal"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SpecLoadError, match="Failed to read"):
        load_openapi_document(str(tmp_path / "missing.yaml"))


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("openapi: [3.0.0\n", encoding="utf-8")
    with pytest.raises(SpecLoadError, match="Failed to parse"):
        load_openapi_document(str(path))


def test_non_mapping_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(SpecLoadError, match="mapping"):
        load_openapi_document(str(path))


def test_swagger_2_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "swagger.yaml"
    path.write_text("swagger: '2.0'\ninfo: {title: Old, version: '1'}\npaths: {}\n", encoding="utf-8")
    with pytest.raises(SpecLoadError, match="openapi"):
        load_openapi_document(str(path))


def test_invalid_openapi_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "invalid.yaml"
    path.write_text("openapi: 3.0.3\ninfo: {version: '1'}\npaths: {}\n", encoding="utf-8")
    with pytest.raises(SpecLoadError, match="validation failed"):
        load_openapi_document(str(path))


@pytest.mark.parametrize("version", ["2.0", "1.2", "x.y"])
def test_unsupported_versions(version: str) -> None:
    with pytest.raises(SpecLoadError):
        ensure_supported_version(version)


def test_supported_versions() -> None:
    ensure_supported_version("3.0.3")
    ensure_supported_version("3.1.0")


def test_fetches_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader.httpx, "get", _fake_get(200, json.dumps(_MINIMAL_DOCUMENT)))
    document = load_openapi_document("https://example.com/openapi.json")
    assert document["info"]["title"] == "Minimal"


def test_url_http_error_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader.httpx, "get", _fake_get(404, "not found"))
    with pytest.raises(SpecLoadError, match="HTTP 404"):
        load_openapi_document("https://example.com/openapi.json")


def test_url_transport_error_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def _get(url: str, **_: Any) -> httpx.Response:
        raise httpx.ConnectError("refused", request=httpx.Request("GET", url))

    monkeypatch.setattr(loader.httpx, "get", _get)
    with pytest.raises(SpecLoadError, match="Failed to fetch"):
        load_openapi_document("https://example.com/openapi.json")
