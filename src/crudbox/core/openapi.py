"""OpenAPI / Swagger operation extraction.

Reads OpenAPI 3.x and Swagger 2.0 documents (YAML or JSON) into a flat,
ordered list of ``OperationRecord``. Only operation extraction is done here:
the document is not validated against the OpenAPI schema, and incomplete
operations fall back to defaults instead of failing.
"""

import json
import re
from datetime import date
from typing import Any

import yaml

from crudbox.core.paths import normalize_path
from crudbox.errors import ParseError, UnsupportedMediaTypeError
from crudbox.models import OperationRecord

# Canonical order of operations within one path item.
OPERATION_METHODS = ("get", "post", "put", "patch", "delete", "head", "options", "trace")

DEFAULT_STATUS = 200
DEFAULT_BODY = "{}"
DEFAULT_CONTENT_TYPE = "application/json"

_ACCEPTED_CONTENT_TYPES = {
    "application/json",
    "application/yaml",
    "application/x-yaml",
    "application/vnd.oai.openapi",
    "application/vnd.oai.openapi+json",
    "text/yaml",
    "text/x-yaml",
    "text/plain",
}

_GENERIC_CONTENT_TYPES = {"", "application/octet-stream"}

_DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")

_STATUS_CODE = re.compile(r"^[1-5]\d\d$")

_STRING_FORMAT_SAMPLES = {
    "date": "2024-01-01",
    "date-time": "2024-01-01T00:00:00Z",
    "email": "user@example.com",
    "uri": "https://example.com",
    "url": "https://example.com",
    "uuid": "00000000-0000-0000-0000-000000000000",
    "hostname": "example.com",
    "ipv4": "127.0.0.1",
    "ipv6": "::1",
}

_MISSING = object()


def check_content_type(content_type: str | None, filename: str | None = None) -> None:
    """Reject uploads whose declared type cannot carry an OpenAPI document."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type in _ACCEPTED_CONTENT_TYPES:
        return
    if media_type in _GENERIC_CONTENT_TYPES:
        if filename is None or filename.lower().endswith(_DOCUMENT_SUFFIXES):
            return
        raise UnsupportedMediaTypeError(
            f"Cannot tell whether '{filename}' is an OpenAPI document; expected a .yaml, .yml or .json file"
        )
    raise UnsupportedMediaTypeError(f"Unsupported content type '{content_type}' for an OpenAPI document")


def load_document(data: bytes) -> dict[str, Any]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Document is not valid UTF-8: {exc}") from exc
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParseError(f"Document is not valid YAML or JSON: {exc}") from exc
    if doc is None:
        raise ParseError("Document is empty")
    if not isinstance(doc, dict):
        raise ParseError("Document root must be a mapping")
    return doc


def extract(data: bytes) -> list[OperationRecord]:
    """Parse ``data`` and return its operations in declaration order."""
    doc = load_document(data)
    paths = doc.get("paths")
    if paths is None:
        return []
    if not isinstance(paths, dict):
        raise ParseError("'paths' must be a mapping")

    resolver = _RefResolver(doc)
    operations: list[OperationRecord] = []
    for raw_path, path_item in paths.items():
        path_item = resolver.resolve(path_item)
        if not isinstance(path_item, dict):
            continue
        path = normalize_path(str(raw_path))
        for method in OPERATION_METHODS:
            if method not in path_item:
                continue
            operation = resolver.resolve(path_item[method])
            operations.append(_build_operation(resolver, method.upper(), path, operation))
    return operations


def _build_operation(resolver: "_RefResolver", method: str, path: str, operation: Any) -> OperationRecord:
    responses = operation.get("responses") if isinstance(operation, dict) else None
    status, response = _select_response(resolver, responses)
    content_type, body = _response_body(resolver, response)
    headers = _response_headers(resolver, response, content_type)
    return OperationRecord(
        method=method,
        path=path,
        response_status=status,
        response_body=body,
        response_headers=json.dumps(headers),
    )


def _select_response(resolver: "_RefResolver", responses: Any) -> tuple[int, dict[str, Any] | None]:
    """Pick the lowest declared 2xx response; fall back to ``200`` with no response."""
    if not isinstance(responses, dict):
        return DEFAULT_STATUS, None

    success_codes = sorted(
        int(str(code)) for code in responses if _STATUS_CODE.match(str(code)) and str(code).startswith("2")
    )
    if success_codes:
        chosen = success_codes[0]
        raw = responses.get(chosen, responses.get(str(chosen)))
        response = resolver.resolve(raw)
        return chosen, response if isinstance(response, dict) else None

    for key in ("2XX", "2xx"):
        if key in responses:
            response = resolver.resolve(responses[key])
            return DEFAULT_STATUS, response if isinstance(response, dict) else None

    return DEFAULT_STATUS, None


def _response_body(resolver: "_RefResolver", response: dict[str, Any] | None) -> tuple[str, str]:
    """Return ``(content_type, body)`` synthesised from examples or schemas."""
    if response is None:
        return DEFAULT_CONTENT_TYPE, DEFAULT_BODY

    content = response.get("content")
    if isinstance(content, dict) and content:
        content_type = _preferred_content_type(content)
        media = resolver.resolve(content[content_type])
        value = _media_example(resolver, media) if isinstance(media, dict) else _MISSING
        return content_type, _serialize_body(value, content_type)

    # Swagger 2.0: examples keyed by mime type, schema directly on the response.
    examples = response.get("examples")
    if isinstance(examples, dict) and examples:
        content_type = _preferred_content_type(examples)
        return content_type, _serialize_body(examples[content_type], content_type)
    if "schema" in response:
        value = _schema_placeholder(resolver, response["schema"], set())
        return DEFAULT_CONTENT_TYPE, _serialize_body(value, DEFAULT_CONTENT_TYPE)

    return DEFAULT_CONTENT_TYPE, DEFAULT_BODY


def _preferred_content_type(content: dict[str, Any]) -> str:
    keys = [str(k) for k in content]
    for key in keys:
        if key.split(";", 1)[0].strip().lower() == DEFAULT_CONTENT_TYPE:
            return key
    for key in keys:
        if "json" in key.lower():
            return key
    return keys[0]


def _media_example(resolver: "_RefResolver", media: dict[str, Any]) -> Any:
    if "example" in media:
        return media["example"]
    examples = media.get("examples")
    if isinstance(examples, dict):
        for example in examples.values():
            example = resolver.resolve(example)
            if isinstance(example, dict) and "value" in example:
                return example["value"]
    if "schema" in media:
        return _schema_placeholder(resolver, media["schema"], set())
    return _MISSING


def _serialize_body(value: Any, content_type: str) -> str:
    if value is _MISSING or value is None:
        return DEFAULT_BODY
    if isinstance(value, str) and "json" not in content_type.lower():
        return value
    return _to_json(value) or DEFAULT_BODY


def _to_json(value: Any) -> str | None:
    """Serialise a loaded YAML value; None when it refers to itself."""
    try:
        return json.dumps(value, default=str)
    except ValueError:
        return None


def _schema_placeholder(resolver: "_RefResolver", schema: Any, seen: set[Any]) -> Any:
    """Build a representative value from a JSON schema; None when nothing can be derived."""
    if isinstance(schema, dict) and "$ref" in schema:
        ref = str(schema["$ref"])
        if ref in seen:
            return None
        return _schema_placeholder(resolver, resolver.resolve(schema), seen | {ref})
    if not isinstance(schema, dict):
        return None
    if id(schema) in seen:
        return None
    seen = seen | {id(schema)}

    for key in ("example", "default"):
        if key in schema:
            return schema[key]
    if isinstance(schema.get("examples"), list) and schema["examples"]:
        return schema["examples"][0]
    if isinstance(schema.get("enum"), list) and schema["enum"]:
        return schema["enum"][0]
    if "const" in schema:
        return schema["const"]

    if isinstance(schema.get("allOf"), list):
        merged: dict[str, Any] = {}
        for part in schema["allOf"]:
            value = _schema_placeholder(resolver, part, seen)
            if isinstance(value, dict):
                merged.update(value)
        return merged
    for key in ("oneOf", "anyOf"):
        if isinstance(schema.get(key), list) and schema[key]:
            return _schema_placeholder(resolver, schema[key][0], seen)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type is None and "properties" in schema:
        schema_type = "object"

    if schema_type == "object":
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return {}
        return {str(name): _schema_placeholder(resolver, prop, seen) for name, prop in properties.items()}
    if schema_type == "array":
        item = _schema_placeholder(resolver, schema.get("items"), seen)
        return [item] if item is not None else []
    if schema_type in ("integer", "number"):
        return 0
    if schema_type == "boolean":
        return False
    if schema_type == "string":
        return _STRING_FORMAT_SAMPLES.get(str(schema.get("format", "")), "")
    return None


def _response_headers(resolver: "_RefResolver", response: dict[str, Any] | None, content_type: str) -> dict[str, str]:
    headers = {"Content-Type": content_type}
    if response is None or not isinstance(response.get("headers"), dict):
        return headers

    for name, header in response["headers"].items():
        header = resolver.resolve(header)
        if not isinstance(header, dict):
            continue
        value = _header_value(resolver, header)
        if value is None:
            continue
        if str(name).lower() == "content-type":
            headers.pop("Content-Type")
        headers[str(name)] = value
    return headers


def _header_value(resolver: "_RefResolver", header: dict[str, Any]) -> str | None:
    value: Any = header.get("example")
    if value is None:
        schema = resolver.resolve(header.get("schema", header))
        if isinstance(schema, dict):
            value = next((schema[k] for k in ("example", "default") if k in schema), None)
            if value is None and isinstance(schema.get("enum"), list) and schema["enum"]:
                value = schema["enum"][0]
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, date):
        return value.isoformat()
    return _to_json(value)


class _RefResolver:
    """Resolves local ``#/...`` references against the loaded document."""

    def __init__(self, doc: dict[str, Any]) -> None:
        self._doc = doc

    def resolve(self, node: Any, depth: int = 0) -> Any:
        if not isinstance(node, dict) or "$ref" not in node or depth > 32:
            return node
        ref = node["$ref"]
        if not isinstance(ref, str) or not ref.startswith("#/"):
            return node
        target: Any = self._doc
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                return None
            target = target[part]
        return self.resolve(target, depth + 1)
