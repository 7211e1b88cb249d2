"""API client for the message history endpoints."""

import logging

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """The server answered with an error envelope or a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class MessagesAPIClient:
    """Thin async wrapper over the ``/api/messages`` endpoints.

    Every method returns the ``data`` member of the response envelope.
    """

    def __init__(
        self,
        config: CLIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.messages_url,
            timeout=config.timeout,
            transport=transport,
        )

    async def history(self, username: str, limit: int | None = None) -> dict:
        return await self._request(
            "GET", f"/history/{username}", params=self._limit(limit)
        )

    async def conversation(
        self, user1: str, user2: str, limit: int | None = None
    ) -> dict:
        return await self._request(
            "GET", f"/conversation/{user1}/{user2}", params=self._limit(limit)
        )

    async def conversations(self, username: str) -> dict:
        return await self._request("GET", f"/conversations/{username}")

    async def send(
        self, sender: str, recipient: str, content: str, message_type: str = "text"
    ) -> dict:
        payload = {
            "sender": sender,
            "recipient": recipient,
            "content": content,
            "message_type": message_type,
        }
        return await self._request("POST", "/send", json=payload)

    async def close(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _limit(limit: int | None) -> dict:
        return {"limit": limit} if limit is not None else {}

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        logger.debug("%s %s%s %s", method, self.config.messages_url, path, kwargs)
        response = await self.client.request(method, path, **kwargs)
        logger.debug("Response status: %s", response.status_code)

        try:
            body = response.json()
        except ValueError:
            raise APIError(response.status_code, response.text) from None

        if response.status_code >= 400 or not body.get("success", False):
            raise APIError(
                response.status_code, body.get("error") or "Unknown error"
            )
        return body["data"]
