from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .domains import DEFAULT_POLICY, DomainPolicy


@dataclass
class RetryConfig:
    max_attempts: int = 3
    base_delay_ms: int = 200
    max_delay_ms: int = 5000


def _parse_float(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


@dataclass
class Settings:
    approval_timeout_seconds: Optional[float] = None
    extra_forbidden_domains: Tuple[str, ...] = ()
    challenge_base_url: str = "http://localhost:8080"
    http_timeout_seconds: float = 10.0
    retry: RetryConfig = field(default_factory=RetryConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        forbidden = tuple(
            tag.strip() for tag in env.get("ARCSIGN_FORBIDDEN_DOMAINS", "").split(",") if tag.strip()
        )
        http_timeout = _parse_float(env, "ARCSIGN_HTTP_TIMEOUT")
        return cls(
            approval_timeout_seconds=_parse_float(env, "ARCSIGN_APPROVAL_TIMEOUT"),
            extra_forbidden_domains=forbidden,
            challenge_base_url=env.get("ARCSIGN_CHALLENGE_URL", "http://localhost:8080"),
            http_timeout_seconds=http_timeout if http_timeout is not None else 10.0,
        )

    def policy(self, base: DomainPolicy = DEFAULT_POLICY) -> DomainPolicy:
        # Configuration may only add forbidden domains, never allow new ones.
        if not self.extra_forbidden_domains:
            return base
        return base.extend(forbidden=self.extra_forbidden_domains)
