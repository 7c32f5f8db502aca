"""
Client-side session persistence.

A ClientSession holds what a cashier/admin client needs between requests
(bearer token, tenant, user). Where it lives is up to the SessionStore the
client is given: in memory for scripts and tests, a JSON file for
long-running tools.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class ClientSession:
    token: Optional[str] = None
    tenant: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def tenant_id(self) -> Optional[str]:
        return self.tenant.get("id") if self.tenant else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def clear_auth(self) -> None:
        """Drop credentials but keep the resolved tenant."""
        self.token = None
        self.user = None


class SessionStore:
    """Interface: load() returns the stored session, save() persists it."""

    def load(self) -> ClientSession:
        raise NotImplementedError

    def save(self, session: ClientSession) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self, session: Optional[ClientSession] = None):
        self._session = session or ClientSession()

    def load(self) -> ClientSession:
        return self._session

    def save(self, session: ClientSession) -> None:
        self._session = session


@dataclass
class JsonFileSessionStore(SessionStore):
    path: Path
    _cache: Optional[ClientSession] = field(default=None, repr=False)

    def __post_init__(self):
        self.path = Path(self.path)

    def load(self) -> ClientSession:
        if self._cache is None:
            if self.path.exists():
                data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
                self._cache = ClientSession(
                    token=data.get("token"),
                    tenant=data.get("tenant"),
                    user=data.get("user"),
                )
            else:
                self._cache = ClientSession()
        return self._cache

    def save(self, session: ClientSession) -> None:
        self._cache = session
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(session), indent=2), encoding="utf-8")
