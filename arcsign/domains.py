"""Domain separator policy.

The forbidden set lists prefixes that other signed artifacts begin with
(transactions and transaction groups). Signing bytes that start with one of
them could be replayed as that artifact, so they are refused before any
cryptographic step. Allow-lists restrict which tags a given scope accepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from .models import Scope

FORBIDDEN_DOMAINS = ("TX", "TG")

SCOPE_ALLOWED_DOMAINS: Dict[Scope, FrozenSet[str]] = {
    # "" is the empty-tag sentinel.
    Scope.MSGSIG: frozenset(["", "arc60"]),
    Scope.AUTH: frozenset(["arc31"]),
}


@dataclass(frozen=True)
class DomainPolicy:
    forbidden: FrozenSet[str] = frozenset(FORBIDDEN_DOMAINS)
    allowed: Mapping[Scope, FrozenSet[str]] = field(default_factory=lambda: dict(SCOPE_ALLOWED_DOMAINS))

    def __post_init__(self) -> None:
        forbidden = frozenset(self.forbidden)
        if "" in forbidden:
            raise ValueError("empty string cannot be a forbidden domain")
        object.__setattr__(self, "forbidden", forbidden)
        object.__setattr__(
            self,
            "allowed",
            MappingProxyType({Scope(k): frozenset(v) for k, v in dict(self.allowed).items()}),
        )

    def is_forbidden(self, tag: str) -> bool:
        if not isinstance(tag, str):
            raise TypeError("domain tag must be str")
        return any(tag.startswith(prefix) for prefix in self.forbidden)

    def forbidden_prefix(self, data: bytes) -> Optional[str]:
        data = bytes(data)
        for prefix in sorted(self.forbidden):
            if data.startswith(prefix.encode("utf-8")):
                return prefix
        return None

    def is_forbidden_bytes(self, data: bytes) -> bool:
        return self.forbidden_prefix(data) is not None

    def requires_allow_list(self, scope: Scope) -> bool:
        return Scope(scope) in self.allowed

    def is_allowed_for_scope(self, tag: str, scope: Scope) -> bool:
        if self.is_forbidden(tag):
            return False
        allowed = self.allowed.get(Scope(scope))
        if allowed is None:
            return True
        return tag in allowed

    def extend(
        self,
        scope: Optional[Scope] = None,
        allowed: Iterable[str] = (),
        forbidden: Iterable[str] = (),
    ) -> "DomainPolicy":
        allowed_map = dict(self.allowed)
        allowed = frozenset(allowed)
        if allowed:
            if scope is None:
                raise ValueError("scope is required when extending allowed domains")
            allowed_map[Scope(scope)] = allowed_map.get(Scope(scope), frozenset()) | allowed
        return DomainPolicy(forbidden=self.forbidden | frozenset(forbidden), allowed=allowed_map)

    def describe(self) -> Dict[str, Any]:
        return {
            "forbidden": sorted(self.forbidden),
            "allowed": {scope.value: sorted(tags) for scope, tags in sorted(self.allowed.items(), key=lambda kv: kv[0].value)},
        }


DEFAULT_POLICY = DomainPolicy()
