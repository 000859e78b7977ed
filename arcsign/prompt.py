from __future__ import annotations

from typing import Optional

from .models import Scope, SignerIdentity

_HEADINGS = {
    Scope.MSGSIG: "You are about to sign a message with account {signer}.",
    Scope.AUTH: (
        "You are about to authenticate with account {signer}. "
        "Please confirm that you are the owner of this wallet by signing this challenge."
    ),
}


def _escape(text: str) -> str:
    out = []
    for ch in text:
        if ch in ("\\", '"'):
            out.append("\\" + ch)
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) <= 0xFF:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(f"\\u{ord(ch):04x}")
    return "".join(out)


def _as_text(data: bytes) -> Optional[str]:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def render(scope: Scope, signer: SignerIdentity, signing_bytes: bytes) -> str:
    data = bytes(signing_bytes)
    heading = _HEADINGS.get(Scope(scope), "You are about to sign data with account {signer}.")
    lines = [
        heading.format(signer=signer.display()),
        f"Scope: {Scope(scope).value}",
        f"Length: {len(data)} bytes",
    ]
    text = _as_text(data)
    if text is not None:
        lines.append(f'Text: "{_escape(text)}"')
    lines.append(f"Hex: {data.hex()}")
    return "\n".join(lines)
