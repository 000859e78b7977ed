from __future__ import annotations

from typing import Union

from nacl.exceptions import CryptoError
from nacl.signing import VerifyKey

from .canonical import build
from .domains import DEFAULT_POLICY, DomainPolicy
from .errors import InvalidInput
from .models import SignerIdentity
from .schema import validate

PublicKeyLike = Union[bytes, bytearray, SignerIdentity]


def verify(signature: bytes, signing_bytes: bytes, public_key: PublicKeyLike) -> bool:
    pub = public_key.public_key if isinstance(public_key, SignerIdentity) else public_key
    if not isinstance(pub, (bytes, bytearray)) or len(pub) != 32:
        return False
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != 64:
        return False
    if not isinstance(signing_bytes, (bytes, bytearray)):
        return False
    try:
        VerifyKey(bytes(pub)).verify(bytes(signing_bytes), bytes(signature))
    except (CryptoError, ValueError, TypeError):
        return False
    return True


def verify_payload(
    signature: bytes,
    raw_payload: Union[str, bytes],
    schema_source: str,
    public_key: PublicKeyLike,
    policy: DomainPolicy = DEFAULT_POLICY,
) -> bool:
    """Check a signature against the original structured payload.

    The payload is validated again and its signing bytes rebuilt, so a relying
    party never has to trust bytes supplied alongside the signature. Payloads
    that are invalid or carry a forbidden domain never verify.
    """
    try:
        payload = validate(schema_source, raw_payload)
    except InvalidInput:
        return False
    signing_bytes = build(payload)
    if policy.is_forbidden(payload.domain_tag) or policy.is_forbidden_bytes(payload.body) or policy.is_forbidden_bytes(signing_bytes):
        return False
    return verify(signature, signing_bytes, public_key)
