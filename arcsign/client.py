from __future__ import annotations

import base64
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

from .challenge import AUTH_SCHEMA, auth_signing_payload, decode_auth_message
from .config import RetryConfig, Settings
from .engine import Authorizer
from .errors import ChallengeAPIError, PayloadMalformed
from .models import RejectedOutcome, Scope, SignerIdentity

logger = logging.getLogger(__name__)

USER_AGENT = "arcsign-python/0.1.0"


@dataclass(frozen=True)
class Session:
    auth_acc: str
    access_token: str


def stable_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class ChallengeClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        retry: Optional[RetryConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retry = retry or RetryConfig()
        self.headers = headers or {}
        self.http = httpx.Client(timeout=self.timeout_seconds)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChallengeClient":
        return cls(settings.challenge_base_url, timeout_seconds=settings.http_timeout_seconds, retry=settings.retry)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "ChallengeClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request_challenge(self, auth_acc: str) -> str:
        if not auth_acc:
            raise ValueError("auth_acc is required")
        out = self._request("POST", "/arc31/request", {"authAcc": auth_acc})
        message = out.get("authMessage")
        if not isinstance(message, str) or not message:
            raise ChallengeAPIError(200, None, "challenge response is missing authMessage")
        return message

    def verify_challenge(self, signature_b64: str, auth_acc: str) -> Session:
        if not signature_b64:
            raise ValueError("signature is required")
        out = self._request("POST", "/arc31/verify", {"signature": signature_b64, "authAcc": auth_acc})
        token = out.get("accessToken")
        if not isinstance(token, str) or not token:
            raise ChallengeAPIError(200, None, "verify response is missing accessToken")
        return Session(auth_acc=str(out.get("authAcc") or auth_acc), access_token=token)

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        body_text = stable_json(body) if body is not None else ""
        attempts = max(1, self.retry.max_attempts)
        for attempt in range(1, attempts + 1):
            headers: Dict[str, str] = {
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
                **self.headers,
            }
            if body_text:
                headers["Content-Type"] = "application/json"
            try:
                resp = self.http.request(method, self.base_url + path, content=body_text.encode("utf-8") if body_text else None, headers=headers)
            except httpx.TransportError as exc:
                if attempt < attempts:
                    logger.warning(f"{method} {path} failed ({exc}); retrying ({attempt}/{attempts})")
                    self._sleep(attempt, None)
                    continue
                raise
            if 200 <= resp.status_code < 300:
                return resp.json() if resp.content else {}
            if attempt < attempts and resp.status_code in (429, 502, 503, 504):
                logger.warning(f"{method} {path} returned {resp.status_code}; retrying ({attempt}/{attempts})")
                self._sleep(attempt, resp.headers.get("Retry-After"))
                continue
            raise self._to_error(resp)
        raise RuntimeError("unreachable")

    def _sleep(self, attempt: int, retry_after: Optional[str]) -> None:
        if retry_after:
            try:
                sec = int(retry_after.strip())
                ms = min(sec * 1000, self.retry.max_delay_ms)
                time.sleep(ms / 1000)
                return
            except ValueError:
                pass
        max_ms = min(self.retry.base_delay_ms * (2 ** (attempt - 1)), self.retry.max_delay_ms)
        time.sleep((random.randint(0, max(1, max_ms))) / 1000)

    def _to_error(self, resp: httpx.Response) -> ChallengeAPIError:
        try:
            parsed = resp.json()
        except ValueError:
            return ChallengeAPIError(resp.status_code, None, resp.text or f"HTTP {resp.status_code}")
        if not isinstance(parsed, dict):
            return ChallengeAPIError(resp.status_code, None, f"HTTP {resp.status_code}")
        inner = parsed.get("error") if isinstance(parsed.get("error"), dict) else parsed
        return ChallengeAPIError(
            status_code=resp.status_code,
            error_code=inner.get("error_code") or inner.get("code"),
            message=inner.get("message") or f"HTTP {resp.status_code}",
            request_id=inner.get("request_id") or parsed.get("request_id"),
            details=inner.get("details"),
        )


def sign_in(client: ChallengeClient, authorizer: Authorizer, signer: SignerIdentity) -> Union[Session, RejectedOutcome]:
    """Run the challenge sign-in flow for ``signer``.

    The server's challenge is decoded and checked to name this signer before it
    is submitted for approval. A declined or timed-out approval is returned
    as-is and the verify endpoint is never contacted.
    """
    auth_acc = signer.display()
    encoded = client.request_challenge(auth_acc)
    message = decode_auth_message(encoded)
    if message.auth_acc != auth_acc:
        raise PayloadMalformed("challenge was issued for a different account")
    logger.info(f"Signing in to {message.domain} as {auth_acc}")
    outcome = authorizer.authorize_and_sign(auth_signing_payload(encoded), AUTH_SCHEMA, Scope.AUTH, signer)
    if isinstance(outcome, RejectedOutcome):
        logger.info(f"Sign in to {message.domain} aborted: {outcome.reason.value}")
        return outcome
    return client.verify_challenge(base64.b64encode(outcome.signature).decode("ascii"), auth_acc)
