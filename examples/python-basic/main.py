import base64
import json
import logging
import os
import sys

from arcsign import (
    ApprovalDecision,
    Authorizer,
    CallbackApproval,
    LocalEd25519Signer,
    MESSAGE_SCHEMA,
    RejectedOutcome,
    Scope,
    Settings,
    verify,
)


def ask(prompt: str, signing_bytes: bytes) -> ApprovalDecision:
    print(prompt)
    answer = input("Sign? [y/N] ").strip().lower()
    return ApprovalDecision.CONFIRM if answer == "y" else ApprovalDecision.REJECT


logging.basicConfig(level=os.getenv("ARCSIGN_LOG_LEVEL", "INFO"))
settings = Settings.from_env()
signer = LocalEd25519Signer(bytes.fromhex(os.getenv("ARCSIGN_SEED_HEX", "07" * 32)))
authorizer = Authorizer(
    approval_authority=CallbackApproval(ask),
    signing_capability=signer,
    policy=settings.policy(),
    approval_timeout=settings.approval_timeout_seconds,
)

payload = json.dumps({"ARC60Domain": "arc60", "bytes": sys.argv[1] if len(sys.argv) > 1 else "ARC-60 is awesome"})
outcome = authorizer.authorize_and_sign(payload, MESSAGE_SCHEMA, Scope.MSGSIG, signer.identity)
if isinstance(outcome, RejectedOutcome):
    print("not signed:", outcome.reason.value)
else:
    print("signature:", base64.b64encode(outcome.signature).decode("ascii"))
    print("verified:", verify(outcome.signature, outcome.signing_bytes, signer.identity))
