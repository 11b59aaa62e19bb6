from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass

from supabase import Client, create_client


@dataclass(slots=True)
class UserInfo:
    id: str
    email: str | None


class SupabaseAuthAdapter:
    """Small wrapper to validate Supabase access tokens.

    When SUPABASE_DISABLED=1, this returns a fake user for any token.
    """

    def __init__(self) -> None:
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.url = os.getenv("SUPABASE_URL")
        self.key = os.getenv("SUPABASE_ANON_KEY")
        self._client: Client | None = None
        if not self.disabled and self.url and self.key:
            self._client = create_client(self.url, self.key)

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        if self.disabled or not self._client:
            # stable across processes, unlike hash()
            digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:10]
            return UserInfo(id=f"fake-{digest}", email=None)
        try:
            res = self._client.auth.get_user(token)
            user = res.user if res else None
        except Exception as exc:  # pragma: no cover - network path
            raise ValueError(f"Invalid access token: {exc}") from exc
        if not user:
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)
