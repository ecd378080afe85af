"""
OpsFinder API client

Thin httpx wrapper over the REST API. Retries a request once after
refreshing the access token when the server answers 401.
"""

from typing import Any, Dict, List, Optional

import httpx

from cli.config import CLIConfig


class APIError(Exception):
    """Non-2xx response from the OpsFinder API"""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "APIError":
        try:
            body = response.json()
        except ValueError:
            return cls(response.status_code, response.text or response.reason_phrase)

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return cls(response.status_code, error.get("message", ""), error.get("code"))

        detail = body.get("detail") if isinstance(body, dict) else None
        return cls(response.status_code, str(detail or body))


class OpsFinderClient:

    def __init__(self, config: CLIConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.timeout,
            transport=self._transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        if self.config.access_token:
            return {"Authorization": f"Bearer {self.config.access_token}"}
        return {}

    async def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> Any:
        async with self._client() as client:
            headers = self._auth_headers() if auth else {}
            response = await client.request(method, path, headers=headers, **kwargs)

            if response.status_code == 401 and auth and await self._refresh(client):
                response = await client.request(method, path, headers=self._auth_headers(), **kwargs)

        if response.status_code >= 400:
            raise APIError.from_response(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _refresh(self, client: httpx.AsyncClient) -> bool:
        """Swap the refresh token for a new access token"""
        if not self.config.refresh_token:
            return False

        response = await client.post(
            "/auth/refresh",
            json={"refreshToken": self.config.refresh_token},
        )
        if response.status_code != 200:
            return False

        self.config.access_token = response.json().get("accessToken")
        self.config.save_to_file()
        return bool(self.config.access_token)

    # ==================== Auth ====================

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        data = await self._request(
            "POST", "/auth/login", auth=False,
            json={"username": username, "password": password},
        )
        user = data.get("user", {})
        self.config.access_token = data.get("accessToken")
        self.config.refresh_token = data.get("refreshToken")
        self.config.username = user.get("username", username)
        self.config.role = user.get("role")
        self.config.save_to_file()
        return data

    async def logout(self) -> None:
        try:
            if self.config.is_authenticated:
                await self._request("POST", "/auth/logout")
        finally:
            self.config.clear_credentials()
            self.config.save_to_file()

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    # ==================== Tech messages ====================

    async def search(self, text: str, occurrence_count: Optional[int] = None,
                     match_mode: str = "BOTH") -> Dict[str, Any]:
        payload: Dict[str, Any] = {"searchText": text, "matchMode": match_mode}
        if occurrence_count is not None:
            payload["occurrenceCount"] = occurrence_count
        return await self._request("POST", "/tech-messages/search", json=payload)

    async def categories(self) -> List[str]:
        return await self._request("GET", "/tech-messages/filters/categories")
