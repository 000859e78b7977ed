"""Authorization decision engine.

One :class:`Authorization` is created per signing request and walks it through
validation, domain-separation checks, human approval and signing. Nothing is
shown to the approval authority until the payload is well formed and
domain-safe, and nothing is signed without exactly one confirming decision.
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum
from typing import Callable, List, Optional, Union

from .canonical import build, sha256_hex
from .capabilities import ApprovalAuthority, SigningCapability
from .domains import DEFAULT_POLICY, DomainPolicy
from .errors import (
    ApprovalTimedOut,
    ForbiddenDomain,
    InvalidInput,
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
from .schema import validate

logger = logging.getLogger(__name__)

Outcome = Union[SignatureResult, RejectedOutcome]
PromptRenderer = Callable[[Scope, SignerIdentity, bytes], str]
PayloadValidator = Callable[[str, Union[str, bytes]], StructuredPayload]


class AuthorizationState(str, Enum):
    RECEIVED = "received"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    DOMAIN_REJECTED = "domain_rejected"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVAL_FAILED = "approval_failed"
    APPROVED = "approved"
    SIGNING = "signing"
    SIGNED = "signed"
    SIGNING_FAILED = "signing_failed"
    REJECTED = "rejected"


TERMINAL_STATES = frozenset(
    [
        AuthorizationState.VALIDATION_FAILED,
        AuthorizationState.DOMAIN_REJECTED,
        AuthorizationState.APPROVAL_FAILED,
        AuthorizationState.SIGNED,
        AuthorizationState.SIGNING_FAILED,
        AuthorizationState.REJECTED,
    ]
)


class Authorizer:
    """Shared, read-only wiring for authorizations.

    Holds the domain policy and the injected capabilities. It keeps no
    per-request state, so one instance may serve concurrent requests.
    """

    def __init__(
        self,
        approval_authority: ApprovalAuthority,
        signing_capability: SigningCapability,
        policy: DomainPolicy = DEFAULT_POLICY,
        approval_timeout: Optional[float] = None,
        prompt_renderer: PromptRenderer = render,
        validator: PayloadValidator = validate,
    ):
        if approval_timeout is not None and approval_timeout <= 0:
            raise ValueError("approval_timeout must be positive")
        self.approval_authority = approval_authority
        self.signing_capability = signing_capability
        self.policy = policy
        self.approval_timeout = approval_timeout
        self.prompt_renderer = prompt_renderer
        self.validator = validator

    def authorization(self, request: SigningRequest, scope: Scope, signer: SignerIdentity) -> "Authorization":
        return Authorization(self, request, scope, signer)

    def authorize_and_sign(
        self,
        raw_payload: Union[str, bytes],
        schema_source: str,
        scope: Scope,
        signer: SignerIdentity,
    ) -> Outcome:
        request = SigningRequest(raw_payload=raw_payload, schema_source=schema_source)
        return self.authorization(request, scope, signer).run()


class Authorization:
    def __init__(self, authorizer: Authorizer, request: SigningRequest, scope: Scope, signer: SignerIdentity):
        if not isinstance(signer, SignerIdentity):
            raise TypeError("signer must be a SignerIdentity")
        self.authorizer = authorizer
        self.request = request
        self.metadata = SigningMetadata(scope=Scope(scope), schema_source=request.schema_source)
        self.signer = signer
        self.state = AuthorizationState.RECEIVED
        self.history: List[AuthorizationState] = [AuthorizationState.RECEIVED]
        self.payload: Optional[StructuredPayload] = None
        self.signing_bytes: Optional[bytes] = None
        self.outcome: Optional[Outcome] = None
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def _transition(self, state: AuthorizationState) -> None:
        logger.debug(f"Authorization {id(self):x}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def run(self) -> Outcome:
        with self._lock:
            if self.state is not AuthorizationState.RECEIVED:
                raise RuntimeError(f"authorization already ran (state={self.state.value})")
            payload = self._validate()
            signing_bytes = self._check_domain(payload)
            decision = self._await_approval(signing_bytes)
            if decision is not ApprovalDecision.CONFIRM:
                return self.outcome
            self.outcome = self._sign(signing_bytes)
            return self.outcome

    def _validate(self) -> StructuredPayload:
        self._transition(AuthorizationState.VALIDATING)
        try:
            payload = self.authorizer.validator(self.metadata.schema_source, self.request.raw_payload)
        except InvalidInput as exc:
            logger.warning(f"Signing request failed validation: {exc.code}")
            self._transition(AuthorizationState.VALIDATION_FAILED)
            raise
        self.payload = payload
        return payload

    def _check_domain(self, payload: StructuredPayload) -> bytes:
        policy = self.authorizer.policy
        tag = payload.domain_tag
        scope = self.metadata.scope
        try:
            if policy.is_forbidden(tag):
                raise ForbiddenDomain(tag, "tag")
            # A benign tag does not make the body safe.
            if policy.is_forbidden_bytes(payload.body):
                raise ForbiddenDomain(policy.forbidden_prefix(payload.body), "body")
            if policy.requires_allow_list(scope) and not policy.is_allowed_for_scope(tag, scope):
                raise ScopeDomainMismatch(tag, scope)
            signing_bytes = build(payload)
            if policy.is_forbidden_bytes(signing_bytes):
                raise ForbiddenDomain(policy.forbidden_prefix(signing_bytes), "signing_bytes")
        except InvalidInput as exc:
            logger.warning(f"Signing request rejected by domain policy: {exc.code} ({exc})")
            self._transition(AuthorizationState.DOMAIN_REJECTED)
            raise
        self.signing_bytes = signing_bytes
        return signing_bytes

    def _await_approval(self, signing_bytes: bytes) -> ApprovalDecision:
        self._transition(AuthorizationState.AWAITING_APPROVAL)
        prompt = self.authorizer.prompt_renderer(self.metadata.scope, self.signer, signing_bytes)
        digest = sha256_hex(signing_bytes)
        try:
            decision = self._request_approval(prompt, signing_bytes)
        except ApprovalTimedOut as exc:
            logger.info(f"Approval timed out for signing bytes {digest}")
            self._transition(AuthorizationState.REJECTED)
            self.outcome = RejectedOutcome(RejectReason.APPROVAL_TIMED_OUT, signing_bytes, str(exc))
            return ApprovalDecision.REJECT
        except Exception as exc:
            logger.error(f"Approval authority failed: {exc}")
            self._transition(AuthorizationState.APPROVAL_FAILED)
            raise

        if decision is ApprovalDecision.CONFIRM:
            self._transition(AuthorizationState.APPROVED)
            return decision
        if decision is not ApprovalDecision.REJECT:
            logger.warning(f"Approval authority returned {decision!r}; treating it as a rejection")
        logger.info(f"Signing declined for signing bytes {digest}")
        self._transition(AuthorizationState.REJECTED)
        self.outcome = RejectedOutcome(RejectReason.USER_DECLINED, signing_bytes, "declined by approval authority")
        return ApprovalDecision.REJECT

    def _request_approval(self, prompt: str, signing_bytes: bytes) -> ApprovalDecision:
        authority = self.authorizer.approval_authority
        timeout = self.authorizer.approval_timeout
        if timeout is None:
            return authority.request_approval(prompt, signing_bytes)
        # The worker is a daemon so a still-blocked authority never keeps the
        # process alive. A decision arriving after the deadline is discarded.
        answers = queue.Queue(maxsize=1)

        def ask() -> None:
            try:
                answers.put((authority.request_approval(prompt, signing_bytes), None))
            except Exception as exc:
                answers.put((None, exc))

        threading.Thread(target=ask, name="arcsign-approval", daemon=True).start()
        try:
            decision, error = answers.get(timeout=timeout)
        except queue.Empty:
            raise ApprovalTimedOut(f"no approval decision within {timeout}s") from None
        if error is not None:
            raise error
        return decision

    def _sign(self, signing_bytes: bytes) -> SignatureResult:
        self._transition(AuthorizationState.SIGNING)
        try:
            signature = self.authorizer.signing_capability.sign(signing_bytes, self.signer)
        except SigningCapabilityFailure:
            self._transition(AuthorizationState.SIGNING_FAILED)
            raise
        except Exception as exc:
            logger.error(f"Signing capability failed: {exc}")
            self._transition(AuthorizationState.SIGNING_FAILED)
            raise SigningCapabilityFailure(f"signing capability failed: {exc}") from exc
        if not isinstance(signature, (bytes, bytearray)) or len(signature) != 64:
            logger.error("Signing capability returned a malformed signature")
            self._transition(AuthorizationState.SIGNING_FAILED)
            raise SigningCapabilityFailure("signing capability returned a malformed signature")
        self._transition(AuthorizationState.SIGNED)
        return SignatureResult(signature=bytes(signature), signing_bytes=signing_bytes, signer=self.signer)


def authorize_and_sign(
    raw_payload: Union[str, bytes],
    schema_source: str,
    scope: Scope,
    signer: SignerIdentity,
    *,
    approval_authority: ApprovalAuthority,
    signing_capability: SigningCapability,
    policy: DomainPolicy = DEFAULT_POLICY,
    approval_timeout: Optional[float] = None,
) -> Outcome:
    authorizer = Authorizer(
        approval_authority=approval_authority,
        signing_capability=signing_capability,
        policy=policy,
        approval_timeout=approval_timeout,
    )
    return authorizer.authorize_and_sign(raw_payload, schema_source, scope, signer)
