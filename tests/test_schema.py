import json

import pytest

from arcsign.errors import PayloadMalformed, SchemaMalformed, SchemaViolation
from arcsign.schema import MESSAGE_SCHEMA, compile_schema, validate

OPEN_SCHEMA = json.dumps({"type": "object"})


def test_valid_message_payload():
    payload = validate(MESSAGE_SCHEMA, '{"ARC60Domain": "arc60", "bytes": "hello"}')
    assert payload.domain_tag == "arc60"
    assert payload.body == b"hello"
    assert payload.data == {"ARC60Domain": "arc60", "bytes": "hello"}


def test_payload_accepts_utf8_bytes():
    payload = validate(MESSAGE_SCHEMA, json.dumps({"ARC60Domain": "", "bytes": "hé"}).encode("utf-8"))
    assert payload.domain_tag == ""
    assert payload.body == "hé".encode("utf-8")


def test_malformed_schema():
    for bad in ["{not json", "[]", '{"type": 12}', '{"required": "ARC60Domain"}']:
        with pytest.raises(SchemaMalformed):
            validate(bad, '{"ARC60Domain": "arc60", "bytes": "hello"}')
    with pytest.raises(SchemaMalformed):
        compile_schema(None)


def test_unresolvable_schema_reference():
    for ref in ["#/definitions/missing", "https://example.com/remote.schema.json"]:
        with pytest.raises(SchemaMalformed):
            validate(json.dumps({"$ref": ref}), '{"ARC60Domain": "arc60", "bytes": "hello"}')


def test_malformed_payload():
    for bad in ["{", "", b"\x80abc", "NaN", '{"bytes": Infinity}']:
        with pytest.raises(PayloadMalformed):
            validate(MESSAGE_SCHEMA, bad)
    with pytest.raises(PayloadMalformed):
        validate(MESSAGE_SCHEMA, 42)
    with pytest.raises(PayloadMalformed):
        validate(MESSAGE_SCHEMA, "[" * 200000 + "]" * 200000)


def test_closed_schema_rejects_extra_fields():
    with pytest.raises(SchemaViolation) as ex:
        validate(MESSAGE_SCHEMA, '{"ARC60Domain": "arc60", "bytes": "hello", "extra": 1}')
    assert len(ex.value.violations) >= 1
    assert "extra" in str(ex.value)


def test_missing_required_domain_field():
    with pytest.raises(SchemaViolation) as ex:
        validate(MESSAGE_SCHEMA, '{"bytes": "hello"}')
    assert any("'ARC60Domain' is a required property" in v for v in ex.value.violations)


def test_wrong_types_rejected_by_schema():
    with pytest.raises(SchemaViolation) as ex:
        validate(MESSAGE_SCHEMA, '{"ARC60Domain": 5, "bytes": ["x"]}')
    assert len(ex.value.violations) == 2


def test_open_schema_still_requires_typed_fields():
    with pytest.raises(SchemaViolation):
        validate(OPEN_SCHEMA, '{"bytes": "hello"}')
    with pytest.raises(SchemaViolation):
        validate(OPEN_SCHEMA, '{"ARC60Domain": "arc60"}')
    with pytest.raises(SchemaViolation):
        validate(OPEN_SCHEMA, '{"ARC60Domain": ["arc60"], "bytes": "hello"}')
    with pytest.raises(SchemaViolation):
        validate(OPEN_SCHEMA, '{"ARC60Domain": "arc60", "bytes": {"0": 1}}')
    with pytest.raises(SchemaViolation):
        validate(json.dumps({}), '["ARC60Domain", "bytes"]')


def test_byte_list_body():
    payload = validate(OPEN_SCHEMA, '{"ARC60Domain": "arc60", "bytes": [84, 88, 0, 255]}')
    assert payload.body == b"TX\x00\xff"
    for bad in ["[256]", "[-1]", "[true]", "[1.5]"]:
        with pytest.raises(SchemaViolation):
            validate(OPEN_SCHEMA, '{"ARC60Domain": "arc60", "bytes": %s}' % bad)


def test_compiled_schema_is_reused():
    assert compile_schema(MESSAGE_SCHEMA) is compile_schema(MESSAGE_SCHEMA)
