"""
Loops contact directory client.

Only the handful of endpoints the waitlist needs: contact create / find /
list / update and transactional sends.

API Documentation: https://loops.so/docs/api-reference
"""

from typing import Any, Dict, List, Optional

import httpx
from fastapi import status

from app.features.waitlist.exceptions import DirectoryError, UpstreamConflict
from app.platform.logger import get_logger

logger = get_logger(__name__)


class LoopsDirectoryClient:
    """Async client for the Loops API. One instance per request; close it when done."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: Optional[float] = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "LoopsDirectoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        url = f"{self.api_url}{path}"
        try:
            return await self._client.request(
                method, url, json=json, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Loops {method} {path} request failed: {e}")
            raise DirectoryError(f"Loops request failed: {e}") from e

    @staticmethod
    def _payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def _check(self, response: httpx.Response, path: str) -> Any:
        payload = self._payload(response)
        if response.is_success:
            return payload
        logger.error(f"Loops {path} returned {response.status_code}: {payload}")
        message = payload.get("message") if isinstance(payload, dict) else None
        raise DirectoryError(
            message or f"Loops {path} returned {response.status_code}",
            status_code=response.status_code,
            payload=payload,
        )

    async def create_contact(self, email: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a contact.

        Raises:
            UpstreamConflict: the email is already in the directory
            DirectoryError: any other failure
        """
        response = await self._request(
            "POST", "/contacts/create", json={"email": email, **properties}
        )
        if response.status_code == status.HTTP_409_CONFLICT:
            raise UpstreamConflict(payload=self._payload(response))
        return self._check(response, "/contacts/create")

    async def find_contacts(
        self, *, email: Optional[str] = None, user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params = {}
        if email is not None:
            params["email"] = email
        if user_id is not None:
            params["userId"] = user_id
        response = await self._request("GET", "/contacts/find", params=params)
        contacts = self._check(response, "/contacts/find")
        return contacts if isinstance(contacts, list) else []

    async def list_contacts(self, page: int = 1, per_page: int = 50) -> List[Dict[str, Any]]:
        response = await self._request(
            "GET", "/contacts", params={"page": page, "perPage": per_page}
        )
        contacts = self._check(response, "/contacts")
        if isinstance(contacts, dict):
            contacts = contacts.get("data", [])
        return contacts if isinstance(contacts, list) else []

    async def update_contact(self, email: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request(
            "PUT", "/contacts/update", json={"email": email, **properties}
        )
        return self._check(response, "/contacts/update")

    async def send_transactional(
        self, transactional_id: str, email: str, data_variables: Dict[str, Any]
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            "/transactional",
            json={
                "transactionalId": transactional_id,
                "email": email,
                "dataVariables": data_variables,
            },
        )
        return self._check(response, "/transactional")
