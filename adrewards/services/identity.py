"""Identity resolution at the service boundary.

Callers may authenticate with the canonical account id or with an external
identity-provider id; ledger records written over the system's lifetime hold
either. Everything downstream works with a ``ResolvedIdentity``: the canonical
id plus every alias a record for that account may carry.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Protocol

from adrewards.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Account:
    id: str
    email: str | None = None
    external_id: str | None = None
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    canonical_id: str
    aliases: frozenset[str]
    raw_id: str

    def matches(self, user_id: str | None) -> bool:
        return user_id is not None and str(user_id).strip() in self.aliases


class IdentityResolver(Protocol):
    def resolve(self, user_id: str, email: str | None = None) -> ResolvedIdentity: ...
    def lookup(self, user_id: str) -> Account | None: ...


class PassthroughIdentityResolver:
    """Every caller id is already canonical (single identity namespace)."""

    def resolve(self, user_id: str, email: str | None = None) -> ResolvedIdentity:
        uid = str(user_id).strip()
        return ResolvedIdentity(canonical_id=uid, aliases=frozenset({uid}), raw_id=uid)

    def lookup(self, user_id: str) -> Account | None:
        return None


class DirectoryIdentityResolver:
    """Resolve against an account directory: direct id, external id, then email."""

    def __init__(self, accounts: Iterable[Account] = ()):
        self._lock = threading.RLock()
        self._accounts: list[Account] = list(accounts)

    def register(self, account: Account) -> None:
        with self._lock:
            self._accounts = [a for a in self._accounts if a.id != account.id]
            self._accounts.append(account)

    def _find(self, user_id: str, email: str | None) -> Account | None:
        email_norm = email.strip().lower() if email else None
        with self._lock:
            accounts = list(self._accounts)
        for account in accounts:
            if account.id == user_id or (account.external_id and account.external_id == user_id):
                return account
        if email_norm:
            for account in accounts:
                if account.email and account.email.lower() == email_norm:
                    return account
        return None

    def resolve(self, user_id: str, email: str | None = None) -> ResolvedIdentity:
        raw = str(user_id).strip()
        account = self._find(raw, email)
        if account is None:
            return ResolvedIdentity(canonical_id=raw, aliases=frozenset({raw}), raw_id=raw)
        aliases = {account.id, raw}
        if account.external_id:
            aliases.add(account.external_id)
        if account.id != raw:
            logger.debug("Caller id resolved to canonical account", raw_id=raw, canonical_id=account.id)
        return ResolvedIdentity(canonical_id=account.id, aliases=frozenset(aliases), raw_id=raw)

    def lookup(self, user_id: str) -> Account | None:
        return self._find(str(user_id).strip(), None)


__all__ = [
    "Account",
    "ResolvedIdentity",
    "IdentityResolver",
    "PassthroughIdentityResolver",
    "DirectoryIdentityResolver",
]
