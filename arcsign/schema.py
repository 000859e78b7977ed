"""Payload validation against caller-supplied JSON Schemas."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.protocols import Validator
from jsonschema.validators import validator_for
from referencing import Registry
from referencing.exceptions import Unresolvable

from .errors import PayloadMalformed, SchemaMalformed, SchemaViolation
from .models import StructuredPayload

DOMAIN_FIELD = "ARC60Domain"
BODY_FIELD = "bytes"

# Closed schema for the default message-signature payload.
MESSAGE_SCHEMA = json.dumps(
    {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            DOMAIN_FIELD: {"type": "string"},
            BODY_FIELD: {"type": "string"},
        },
        "required": [DOMAIN_FIELD, BODY_FIELD],
        "additionalProperties": False,
    },
    sort_keys=True,
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _loads(text: Union[str, bytes, bytearray]) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


@lru_cache(maxsize=128)
def _compile(schema_source: str) -> Validator:
    try:
        schema = _loads(schema_source)
    except (ValueError, RecursionError) as exc:
        raise SchemaMalformed(f"schema is not valid JSON: {exc}") from exc
    if not isinstance(schema, dict):
        raise SchemaMalformed("schema must be a JSON object")
    cls = validator_for(schema, default=Draft202012Validator)
    try:
        cls.check_schema(schema)
    except SchemaError as exc:
        raise SchemaMalformed(f"invalid JSON Schema: {exc.message}") from exc
    except RecursionError as exc:
        raise SchemaMalformed("schema is nested too deeply") from exc
    # Local refs only; nothing is fetched over the network.
    return cls(schema, registry=Registry())


def compile_schema(schema_source: str) -> Validator:
    if not isinstance(schema_source, str):
        raise SchemaMalformed("schema source must be a string")
    return _compile(schema_source)


def parse_payload(raw_payload: Union[str, bytes]) -> Any:
    if not isinstance(raw_payload, (str, bytes, bytearray)):
        raise PayloadMalformed("payload must be str or bytes")
    try:
        return _loads(raw_payload)
    except (ValueError, UnicodeDecodeError) as exc:
        raise PayloadMalformed(f"payload is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise PayloadMalformed("payload is nested too deeply") from exc


def schema_errors(validator: Validator, data: Any) -> List[str]:
    try:
        errors = sorted(validator.iter_errors(data), key=lambda e: (e.json_path, e.message))
    except Unresolvable as exc:
        raise SchemaMalformed(f"schema reference cannot be resolved: {exc}") from exc
    except RecursionError as exc:
        raise PayloadMalformed("payload is nested too deeply") from exc
    return [f"{error.json_path}: {error.message}" for error in errors]


def _extract_body(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, list):
        for b in value:
            if isinstance(b, bool) or not isinstance(b, int) or not 0 <= b <= 255:
                raise SchemaViolation([f"$.{BODY_FIELD}: byte values must be integers 0-255"])
        return bytes(value)
    raise SchemaViolation([f"$.{BODY_FIELD}: must be a string or a list of byte values"])


def validate(schema_source: str, raw_payload: Union[str, bytes]) -> StructuredPayload:
    validator = compile_schema(schema_source)
    data = parse_payload(raw_payload)

    violations = schema_errors(validator, data)
    if violations:
        raise SchemaViolation(violations)

    if not isinstance(data, dict):
        raise SchemaViolation(["$: payload must be an object"])
    if DOMAIN_FIELD not in data:
        raise SchemaViolation([f"$: '{DOMAIN_FIELD}' is a required property"])
    if BODY_FIELD not in data:
        raise SchemaViolation([f"$: '{BODY_FIELD}' is a required property"])
    tag = data[DOMAIN_FIELD]
    if not isinstance(tag, str):
        raise SchemaViolation([f"$.{DOMAIN_FIELD}: must be a string"])
    body = _extract_body(data[BODY_FIELD])
    return StructuredPayload(domain_tag=tag, body=body, data=data)
