from arcsign.models import Scope, SignerIdentity
from arcsign.prompt import render

SIGNER = SignerIdentity(bytes(range(32)))


def test_message_prompt_names_signer_and_full_bytes():
    out = render(Scope.MSGSIG, SIGNER, b"arc60hello")
    assert out.splitlines() == [
        "You are about to sign a message with account ed25519:AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8.",
        "Scope: msgsig",
        "Length: 10 bytes",
        'Text: "arc60hello"',
        "Hex: " + b"arc60hello".hex(),
    ]


def test_prompt_wording_depends_on_scope():
    msg = render(Scope.MSGSIG, SIGNER, b"arc31AXabc")
    auth = render(Scope.AUTH, SIGNER, b"arc31AXabc")
    assert msg != auth
    assert "authenticate" in auth
    assert "sign a message" in msg


def test_prompt_never_truncates():
    data = b"arc60" + b"x" * 5000
    out = render(Scope.MSGSIG, SIGNER, data)
    assert data.hex() in out
    assert "x" * 5000 in out
    assert "Length: 5005 bytes" in out


def test_prompt_escapes_control_characters():
    out = render(Scope.MSGSIG, SIGNER, b'arc60\nTX"q"\\')
    assert 'Text: "arc60\\x0aTX\\"q\\"\\\\"' in out
    assert len(out.splitlines()) == 5


def test_binary_bytes_shown_as_hex_only():
    out = render(Scope.MSGSIG, SIGNER, b"arc60\xff\xfe")
    assert "Text:" not in out
    assert "Hex: 6172633630fffe" in out


def test_prompt_is_deterministic():
    assert render(Scope.MSGSIG, SIGNER, b"arc60hello") == render(Scope.MSGSIG, SIGNER, b"arc60hello")
