"""
PostgREST (Supabase) remote settings repository.

Talks to the `user_settings` table through the REST API of a Supabase
project. Row-level security on the server restricts every call to the row of
the user the access token belongs to.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from settings_sync.config import RemoteConfig
from settings_sync.exceptions import RepositoryError
from settings_sync.remote.base import RemoteSettingsRepository
from settings_sync.schemas import RemoteRecord, SettingsBundle

# PostgREST error code for "single object requested, zero rows returned".
NOT_FOUND_CODE = "PGRST116"


class RestSettingsRepository(RemoteSettingsRepository):
    """
    Remote repository over the PostgREST API.

    Args:
        config: Remote configuration (URL, API key, access token, table, timeout)
        http: Optional requests.Session, injected by tests
    """

    def __init__(self, config: RemoteConfig, http: requests.Session | None = None) -> None:
        if not config.rest_url:
            raise ValueError("SUPABASE_URL is required for the REST backend.")
        if not config.api_key:
            raise ValueError("SUPABASE_KEY is required for the REST backend.")

        self.config = config
        self.endpoint = f"{config.rest_url.rstrip('/')}/rest/v1/{config.table}"
        self.http = http or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _build_headers(self) -> Dict[str, str]:
        token = self.config.access_token or self.config.api_key
        return {
            "apikey": self.config.api_key or "",
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_from_response(response: requests.Response) -> RepositoryError:
        """Build a RepositoryError from a PostgREST error body."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            message = body.get("message") or response.reason or f"HTTP {response.status_code}"
            return RepositoryError(str(message), code=body.get("code"))
        return RepositoryError(response.reason or f"HTTP {response.status_code}")

    def _fetch(self, user_id: str) -> Optional[RemoteRecord]:
        headers = self._build_headers()
        headers["Accept"] = "application/vnd.pgrst.object+json"

        try:
            response = self.http.get(
                self.endpoint,
                params={"select": "*", "user_id": f"eq.{user_id}"},
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise RepositoryError(f"Network error fetching settings: {e}") from e

        if not response.ok:
            error = self._error_from_response(response)
            if error.code == NOT_FOUND_CODE:
                return None
            raise error

        try:
            return RemoteRecord.from_row(response.json())
        except (ValueError, ValidationError) as e:
            raise RepositoryError(f"Malformed settings row: {e}") from e

    def _upsert(self, user_id: str, bundle: SettingsBundle) -> Optional[RemoteRecord]:
        headers = self._build_headers()
        headers["Prefer"] = "resolution=merge-duplicates,return=representation"
        payload: Dict[str, Any] = {
            "user_id": user_id,
            **bundle.slots(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            response = self.http.post(
                self.endpoint,
                params={"on_conflict": "user_id"},
                json=payload,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise RepositoryError(f"Network error saving settings: {e}") from e

        if not response.ok:
            raise self._error_from_response(response)

        try:
            rows = response.json()
        except ValueError:
            return None
        if not isinstance(rows, list) or not rows:
            return None

        try:
            return RemoteRecord.from_row(rows[0])
        except (ValueError, ValidationError) as e:
            raise RepositoryError(f"Malformed settings row: {e}") from e

    async def fetch_by_user(self, user_id: str) -> Optional[RemoteRecord]:
        self.logger.debug(f"GET settings | user_id={user_id}, endpoint={self.endpoint}")
        return await asyncio.to_thread(self._fetch, user_id)

    async def upsert_by_user(self, user_id: str, bundle: SettingsBundle) -> Optional[RemoteRecord]:
        self.logger.debug(f"POST settings | user_id={user_id}, endpoint={self.endpoint}")
        return await asyncio.to_thread(self._upsert, user_id, bundle)
