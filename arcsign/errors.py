from __future__ import annotations

from typing import Any, List, Optional


class ErrorCode:
    SCHEMA_MALFORMED = "SCHEMA_MALFORMED"
    PAYLOAD_MALFORMED = "PAYLOAD_MALFORMED"
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    FORBIDDEN_DOMAIN = "FORBIDDEN_DOMAIN"
    SCOPE_DOMAIN_MISMATCH = "SCOPE_DOMAIN_MISMATCH"
    APPROVAL_TIMED_OUT = "APPROVAL_TIMED_OUT"
    SIGNING_CAPABILITY_FAILURE = "SIGNING_CAPABILITY_FAILURE"
    CHALLENGE_API_ERROR = "CHALLENGE_API_ERROR"


class ArcSignError(Exception):
    code = "ARCSIGN_ERROR"


class InvalidInput(ArcSignError, ValueError):
    """Request rejected before approval; the caller may resubmit a corrected one."""


class SchemaMalformed(InvalidInput):
    code = ErrorCode.SCHEMA_MALFORMED


class PayloadMalformed(InvalidInput):
    code = ErrorCode.PAYLOAD_MALFORMED


class SchemaViolation(InvalidInput):
    code = ErrorCode.SCHEMA_VIOLATION

    def __init__(self, violations: List[str]):
        self.violations = list(violations) or ["payload does not match schema"]
        super().__init__("schema violation: " + "; ".join(self.violations))


class ForbiddenDomain(InvalidInput):
    code = ErrorCode.FORBIDDEN_DOMAIN

    def __init__(self, tag: str, where: str):
        self.tag = tag
        self.where = where
        super().__init__(f"forbidden domain separator {tag!r} in {where}")


class ScopeDomainMismatch(InvalidInput):
    code = ErrorCode.SCOPE_DOMAIN_MISMATCH

    def __init__(self, tag: str, scope: Any):
        self.tag = tag
        self.scope = scope
        super().__init__(f"domain separator {tag!r} is not allowed for scope {getattr(scope, 'value', scope)}")


class ApprovalTimedOut(ArcSignError):
    code = ErrorCode.APPROVAL_TIMED_OUT


class SigningCapabilityFailure(ArcSignError):
    code = ErrorCode.SIGNING_CAPABILITY_FAILURE


class ChallengeAPIError(ArcSignError):
    code = ErrorCode.CHALLENGE_API_ERROR

    def __init__(self, status_code: int, error_code: Optional[str], message: str, request_id: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.details = details
