"""SignAge REST API client with bearer token authentication."""

from typing import Any

import httpx

from signage.core.logging import get_logger

logger = get_logger(__name__)


class SignAgeAPIError(Exception):
    """A request failed; carries the HTTP status and the server's error message."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class SignAgeClient:
    """HTTP client for the SignAge progress API.

    The identity token comes from the external auth provider and is sent as
    a bearer token on every call.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "SignAgeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def set_token(self, token: str) -> None:
        """Replace the identity token after the auth provider refreshes it."""
        self._token = token

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise SignAgeAPIError(0, f"Request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error or payload.get("success") is False:
            message = payload.get("error") or response.reason_phrase or "Request failed"
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise SignAgeAPIError(response.status_code, message)
        return payload

    # --- Auth endpoints ---

    async def register(self, display_name: str | None = None) -> dict:
        """Create the user's record, or refresh its login time."""
        body = {"displayName": display_name} if display_name else {}
        return await self._request("POST", "/auth/register", json=body)

    async def get_profile(self) -> dict:
        """Get the full user record."""
        return await self._request("GET", "/auth/profile")

    async def update_profile(self, display_name: str | None = None, photo_url: str | None = None) -> dict:
        body: dict[str, str] = {}
        if display_name:
            body["displayName"] = display_name
        if photo_url:
            body["photoURL"] = photo_url
        return await self._request("PUT", "/auth/profile", json=body)

    async def update_settings(self, **settings: Any) -> dict:
        """Patch settings using their camelCase names, e.g. ``dailyGoal=30``."""
        return await self._request("PUT", "/auth/settings", json=settings)

    # --- Progress endpoints ---

    async def get_progress(self) -> dict:
        return await self._request("GET", "/progress")

    async def get_completed_lessons(self) -> dict:
        return await self._request("GET", "/progress/completed-lessons")

    async def complete_lesson(
        self,
        lesson_id: str,
        score: int = 0,
        stars: int = 0,
        signs_learned: int = 0,
    ) -> dict:
        return await self._request(
            "POST",
            "/progress/lesson",
            json={
                "lessonId": lesson_id,
                "score": score,
                "stars": stars,
                "signsLearned": signs_learned,
            },
        )

    async def update_today_progress(self, progress: float) -> dict:
        return await self._request("PUT", "/progress/today", json={"progress": progress})

    async def add_practice_time(self, minutes: float) -> dict:
        return await self._request("POST", "/progress/practice-time", json={"minutes": minutes})

    # --- Streak endpoints ---

    async def get_streak(self) -> dict:
        return await self._request("GET", "/streak")

    async def update_streak(self) -> dict:
        return await self._request("POST", "/streak/update")
