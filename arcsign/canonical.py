from __future__ import annotations

import hashlib

from .models import StructuredPayload


def build(payload: StructuredPayload) -> bytes:
    """Signing bytes: UTF-8 domain tag immediately followed by the body."""
    if not isinstance(payload, StructuredPayload):
        raise TypeError("payload must be a validated StructuredPayload")
    return payload.domain_tag.encode("utf-8") + bytes(payload.body)


def sha256_hex(data: bytes) -> str:
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError("data must be bytes")
    return hashlib.sha256(bytes(data)).hexdigest()


def payload_digest(payload: StructuredPayload) -> str:
    return sha256_hex(build(payload))
