"""Authentication challenge (ARC-31) envelope.

A challenge is ``"AX"`` followed by the base64 encoding of the msgpack map
``{"arc31:j": {...}}``. Signing a challenge goes through the regular
authorization pipeline under :attr:`Scope.AUTH` with the ``arc31`` domain.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import msgpack

from .errors import PayloadMalformed
from .schema import BODY_FIELD, DOMAIN_FIELD

ENVELOPE_PREFIX = "AX"
ENVELOPE_KEY = "arc31:j"
AUTH_DOMAIN = "arc31"

AUTH_SCHEMA = json.dumps(
    {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            DOMAIN_FIELD: {"const": AUTH_DOMAIN},
            BODY_FIELD: {"type": "string", "pattern": "^AX[A-Za-z0-9+/]+={0,2}$"},
        },
        "required": [DOMAIN_FIELD, BODY_FIELD],
        "additionalProperties": False,
    },
    sort_keys=True,
)


@dataclass(frozen=True)
class AuthMessage:
    domain: str
    auth_acc: str
    nonce: str
    desc: Optional[str] = None
    meta: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"domain": self.domain, "authAcc": self.auth_acc, "nonce": self.nonce}
        if self.desc is not None:
            out["desc"] = self.desc
        if self.meta is not None:
            out["meta"] = self.meta
        return out

    @classmethod
    def from_wire(cls, obj: Any) -> "AuthMessage":
        if not isinstance(obj, dict):
            raise PayloadMalformed("auth message must be a map")
        for key in ("domain", "authAcc", "nonce"):
            if not isinstance(obj.get(key), str) or not obj[key]:
                raise PayloadMalformed(f"auth message {key} is required")
        for key in ("desc", "meta"):
            if obj.get(key) is not None and not isinstance(obj[key], str):
                raise PayloadMalformed(f"auth message {key} must be a string")
        return cls(
            domain=obj["domain"],
            auth_acc=obj["authAcc"],
            nonce=obj["nonce"],
            desc=obj.get("desc"),
            meta=obj.get("meta"),
        )


def encode_auth_message(message: AuthMessage) -> str:
    packed = msgpack.packb({ENVELOPE_KEY: message.to_wire()}, use_bin_type=True)
    return ENVELOPE_PREFIX + base64.b64encode(packed).decode("ascii")


def decode_auth_message(encoded: str) -> AuthMessage:
    if not isinstance(encoded, str):
        raise PayloadMalformed("auth challenge must be a string")
    body = encoded[len(ENVELOPE_PREFIX):] if encoded.startswith(ENVELOPE_PREFIX) else encoded
    try:
        packed = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadMalformed("auth challenge is not valid base64") from exc
    try:
        unpacked = msgpack.unpackb(packed, raw=False)
    except (ValueError, TypeError, msgpack.exceptions.UnpackException) as exc:
        raise PayloadMalformed("auth challenge is not valid msgpack") from exc
    if not isinstance(unpacked, dict) or ENVELOPE_KEY not in unpacked:
        raise PayloadMalformed(f"auth challenge is missing {ENVELOPE_KEY}")
    return AuthMessage.from_wire(unpacked[ENVELOPE_KEY])


def auth_signing_payload(encoded: str) -> str:
    return json.dumps({DOMAIN_FIELD: AUTH_DOMAIN, BODY_FIELD: encoded}, sort_keys=True)
