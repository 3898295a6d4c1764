"""OpenAPI document loading and basic validation."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import yaml
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .model_types import JSONObject, JSONValue

logger = logging.getLogger(__name__)

_URL_PREFIXES: tuple[str, ...] = ("http://", "https://")
_FETCH_TIMEOUT_SECONDS = 30.0


class SpecLoadError(RuntimeError):
    """Raised when a source OpenAPI document cannot be loaded."""


def is_url(source: str) -> bool:
    """Return whether ``source`` should be fetched over HTTP."""
    return source.startswith(_URL_PREFIXES)


def read_source_text(source: str) -> str:
    """Read raw document text from a local path or an ``http(s)`` URL."""
    if is_url(source):
        logger.info("Fetching OpenAPI document from %s", source)
        try:
            response = httpx.get(source, timeout=_FETCH_TIMEOUT_SECONDS, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SpecLoadError(
                f"HTTP {exc.response.status_code} fetching OpenAPI document from {source}"
            ) from exc
        except httpx.RequestError as exc:
            raise SpecLoadError(f"Failed to fetch OpenAPI document from {source}: {exc}") from exc
        return response.text

    path = Path(source)
    logger.info("Reading OpenAPI document from %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc


def load_openapi_document(source: str) -> JSONObject:
    """Load and validate an OpenAPI document from YAML or JSON text."""
    text = read_source_text(source)
    try:
        # JSON documents are valid YAML.
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecLoadError(f"Failed to parse document from {source}: {exc}") from exc

    payload_value: JSONValue = payload
    if not isinstance(payload_value, dict):
        raise SpecLoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload_value)!r}"
        )

    ensure_supported_version(get_openapi_version(payload_value))

    try:
        OpenAPI.model_validate(payload_value)
    except ValidationError as exc:
        raise SpecLoadError(f"OpenAPI schema validation failed for {source}: {exc}") from exc

    return payload_value


def get_openapi_version(document: JSONObject) -> str:
    """Return the declared OpenAPI version string."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise SpecLoadError("Missing or invalid 'openapi' version field")
    return version.strip()


def ensure_supported_version(version: str) -> None:
    """Validate that the input version is OpenAPI v3+."""
    major_text = version.split(".", maxsplit=1)[0]
    try:
        major = int(major_text)
    except ValueError as exc:
        raise SpecLoadError(f"Unable to parse OpenAPI version: {version}") from exc
    if major < 3:
        raise SpecLoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")
