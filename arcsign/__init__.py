from .canonical import build, payload_digest
from .capabilities import (
    ApprovalAuthority,
    CallbackApproval,
    LocalEd25519Signer,
    SigningCapability,
    StaticApproval,
)
from .challenge import AUTH_SCHEMA, AuthMessage, decode_auth_message, encode_auth_message
from .client import ChallengeClient, Session, sign_in
from .config import RetryConfig, Settings
from .domains import DEFAULT_POLICY, DomainPolicy
from .engine import Authorization, AuthorizationState, Authorizer, authorize_and_sign
from .errors import (
    ApprovalTimedOut,
    ArcSignError,
    ChallengeAPIError,
    ErrorCode,
    ForbiddenDomain,
    InvalidInput,
    PayloadMalformed,
    SchemaMalformed,
    SchemaViolation,
    ScopeDomainMismatch,
    SigningCapabilityFailure,
)
from .models import (
    ApprovalDecision,
    RejectedOutcome,
    RejectReason,
    Scope,
    SignatureResult,
    SignerIdentity,
    SigningMetadata,
    SigningRequest,
    StructuredPayload,
)
from .prompt import render
from .schema import MESSAGE_SCHEMA, validate
from .verify import verify, verify_payload

__all__ = [
    "build",
    "payload_digest",
    "ApprovalAuthority",
    "CallbackApproval",
    "LocalEd25519Signer",
    "SigningCapability",
    "StaticApproval",
    "AUTH_SCHEMA",
    "AuthMessage",
    "decode_auth_message",
    "encode_auth_message",
    "ChallengeClient",
    "Session",
    "sign_in",
    "RetryConfig",
    "Settings",
    "DEFAULT_POLICY",
    "DomainPolicy",
    "Authorization",
    "AuthorizationState",
    "Authorizer",
    "authorize_and_sign",
    "ApprovalTimedOut",
    "ArcSignError",
    "ChallengeAPIError",
    "ErrorCode",
    "ForbiddenDomain",
    "InvalidInput",
    "PayloadMalformed",
    "SchemaMalformed",
    "SchemaViolation",
    "ScopeDomainMismatch",
    "SigningCapabilityFailure",
    "ApprovalDecision",
    "RejectedOutcome",
    "RejectReason",
    "Scope",
    "SignatureResult",
    "SignerIdentity",
    "SigningMetadata",
    "SigningRequest",
    "StructuredPayload",
    "render",
    "MESSAGE_SCHEMA",
    "validate",
    "verify",
    "verify_payload",
]
