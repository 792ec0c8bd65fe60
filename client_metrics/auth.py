"""Credential providers used by the metrics transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from .config import AuthConfig


class Authenticator(Protocol):
    def access_token(self) -> Optional[str]:
        ...


@dataclass
class StaticTokenAuthenticator:
    token: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_config(cls, config: AuthConfig) -> "StaticTokenAuthenticator":
        return cls(token=config.access_token)

    def access_token(self) -> Optional[str]:
        return self.token


def auth_headers(authenticator: Optional[Authenticator]) -> Dict[str, str]:
    if authenticator is None:
        return {}
    token = authenticator.access_token()
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}
