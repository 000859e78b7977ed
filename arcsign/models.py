from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class Scope(str, Enum):
    MSGSIG = "msgsig"
    AUTH = "auth"


class ApprovalDecision(Enum):
    CONFIRM = "confirm"
    REJECT = "reject"


class RejectReason(str, Enum):
    USER_DECLINED = "user_declined"
    APPROVAL_TIMED_OUT = "approval_timed_out"


@dataclass(frozen=True)
class SignerIdentity:
    public_key: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.public_key, (bytes, bytearray)) or len(self.public_key) != 32:
            raise ValueError("ed25519 public key must be 32 bytes")
        object.__setattr__(self, "public_key", bytes(self.public_key))

    def display(self) -> str:
        b64 = base64.urlsafe_b64encode(self.public_key).decode("ascii").rstrip("=")
        return "ed25519:" + b64

    @classmethod
    def from_display(cls, value: str) -> "SignerIdentity":
        parts = value.split(":")
        if len(parts) != 2 or parts[0] != "ed25519":
            raise ValueError("invalid signer identity format")
        encoded = parts[1]
        if not encoded or "=" in encoded or re.fullmatch(r"[A-Za-z0-9_-]+", encoded) is None:
            raise ValueError("invalid base64url public key")
        pad_len = (4 - (len(encoded) % 4)) % 4
        try:
            pub = base64.urlsafe_b64decode(encoded + ("=" * pad_len))
        except Exception as exc:
            raise ValueError("invalid base64url public key") from exc
        return cls(pub)

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class SigningMetadata:
    scope: Scope
    schema_source: str


@dataclass(frozen=True)
class SigningRequest:
    raw_payload: Union[str, bytes]
    schema_source: str


@dataclass(frozen=True)
class StructuredPayload:
    domain_tag: str
    body: bytes
    data: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class SignatureResult:
    signature: bytes
    signing_bytes: bytes
    signer: SignerIdentity

    @property
    def ok(self) -> bool:
        return True

    def signature_b64(self) -> str:
        return base64.b64encode(self.signature).decode("ascii")


@dataclass(frozen=True)
class RejectedOutcome:
    reason: RejectReason
    signing_bytes: bytes = b""
    message: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def signature(self) -> Optional[bytes]:
        return None
