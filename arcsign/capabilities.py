from __future__ import annotations

import logging
from typing import Callable, Protocol

from nacl.signing import SigningKey

from .errors import SigningCapabilityFailure
from .models import ApprovalDecision, SignerIdentity

logger = logging.getLogger(__name__)


class ApprovalAuthority(Protocol):
    def request_approval(self, prompt: str, signing_bytes: bytes) -> ApprovalDecision:
        ...


class SigningCapability(Protocol):
    def sign(self, data: bytes, signer: SignerIdentity) -> bytes:
        ...


class StaticApproval:
    """Answers every request with the same decision."""

    def __init__(self, decision: ApprovalDecision):
        self.decision = ApprovalDecision(decision)

    def request_approval(self, prompt: str, signing_bytes: bytes) -> ApprovalDecision:
        return self.decision


class CallbackApproval:
    def __init__(self, callback: Callable[[str, bytes], ApprovalDecision]):
        self.callback = callback

    def request_approval(self, prompt: str, signing_bytes: bytes) -> ApprovalDecision:
        return ApprovalDecision(self.callback(prompt, signing_bytes))


class LocalEd25519Signer:
    def __init__(self, seed32: bytes):
        if not isinstance(seed32, (bytes, bytearray)) or len(seed32) != 32:
            raise ValueError("ed25519 signing key seed must be 32 bytes")
        self._signing_key = SigningKey(bytes(seed32))
        self.identity = SignerIdentity(bytes(self._signing_key.verify_key))

    def sign(self, data: bytes, signer: SignerIdentity) -> bytes:
        if signer != self.identity:
            logger.error(f"Refusing to sign for {signer}: key held is {self.identity}")
            raise SigningCapabilityFailure("signer identity does not match the held key")
        return self._signing_key.sign(bytes(data)).signature
