import json

from arcsign.canonical import build, payload_digest
from arcsign.capabilities import LocalEd25519Signer
from arcsign.models import SignerIdentity, StructuredPayload
from arcsign.schema import MESSAGE_SCHEMA
from arcsign.verify import verify, verify_payload


def test_sign_verify_roundtrip():
    messages = [b"", b"hello", b"arc60hello", bytes(range(256)), "ünïcødé".encode("utf-8")]
    for n in (1, 7, 200):
        signer = LocalEd25519Signer(bytes([n] * 32))
        for msg in messages:
            sig = signer.sign(msg, signer.identity)
            assert verify(sig, msg, signer.identity.public_key) is True
            assert verify(sig, msg, signer.identity) is True


def test_verify_rejects_tampering_and_wrong_key():
    signer = LocalEd25519Signer(bytes([7] * 32))
    other = LocalEd25519Signer(bytes([8] * 32))
    sig = signer.sign(b"arc60hello", signer.identity)

    assert verify(sig, b"arc60hellO", signer.identity) is False
    assert verify(sig, b"arc60hello", other.identity) is False
    flipped = bytes([sig[0] ^ 1]) + sig[1:]
    assert verify(flipped, b"arc60hello", signer.identity) is False


def test_verify_bad_input_returns_false():
    signer = LocalEd25519Signer(bytes([7] * 32))
    sig = signer.sign(b"x", signer.identity)
    assert verify(sig[:63], b"x", signer.identity) is False
    assert verify(sig, b"x", bytes(31)) is False
    assert verify(sig, "x", signer.identity) is False
    assert verify(None, b"x", signer.identity) is False


def test_build_is_deterministic():
    payload = StructuredPayload(domain_tag="arc60", body=b"hello")
    assert build(payload) == build(payload) == b"arc60hello"
    assert build(StructuredPayload(domain_tag="arc60", body=b"hello")) == build(payload)
    assert payload_digest(payload) == payload_digest(StructuredPayload("arc60", b"hello"))


def test_verify_payload_for_relying_party():
    signer = LocalEd25519Signer(bytes([7] * 32))
    raw = json.dumps({"ARC60Domain": "arc60", "bytes": "hello"})
    sig = signer.sign(b"arc60hello", signer.identity)

    assert verify_payload(sig, raw, MESSAGE_SCHEMA, signer.identity) is True
    assert verify_payload(sig, json.dumps({"ARC60Domain": "arc60", "bytes": "hellO"}), MESSAGE_SCHEMA, signer.identity) is False
    assert verify_payload(sig, "{bad", MESSAGE_SCHEMA, signer.identity) is False


def test_verify_payload_refuses_forbidden_domain():
    signer = LocalEd25519Signer(bytes([7] * 32))
    raw = json.dumps({"ARC60Domain": "arc60", "bytes": "TXabc"})
    sig = signer.sign(b"arc60TXabc", signer.identity)
    assert verify(sig, b"arc60TXabc", signer.identity) is True
    assert verify_payload(sig, raw, MESSAGE_SCHEMA, signer.identity) is False


def test_signer_identity_display_roundtrip():
    identity = SignerIdentity(bytes(range(32)))
    assert identity.display() == "ed25519:AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8"
    assert SignerIdentity.from_display(identity.display()) == identity
    for bad in [
        "ed25519:AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8=",
        "rsa:AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8",
        "ed25519:AAECAwQF$gcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8",
        "ed25519:AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHg",
    ]:
        try:
            SignerIdentity.from_display(bad)
        except ValueError:
            continue
        raise AssertionError(f"accepted {bad}")
