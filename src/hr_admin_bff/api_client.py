# src/hr_admin_bff/api_client.py

import logging
import typing

import httpx

from .config import settings
from .errors import UpstreamHTTPError

logger = logging.getLogger(__name__)


async def get_upstream_client() -> typing.AsyncIterator[httpx.AsyncClient]:
    """One client per request; nothing is pooled across requests."""
    async with httpx.AsyncClient(
            base_url=settings.API_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    ) as client:
        yield client


def _clean_params(params: typing.Optional[typing.Mapping[str, typing.Any]]) -> typing.List[typing.Tuple[str, str]]:
    if not params:
        return []
    cleaned = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            cleaned.extend((key, str(v)) for v in value if v is not None)
        elif isinstance(value, bool):
            cleaned.append((key, "true" if value else "false"))
        else:
            cleaned.append((key, str(value)))
    return cleaned


def _unwrap(payload: typing.Any) -> typing.Any:
    # Standardized gateway envelope: {"statusCode": ..., "data": ...}
    if isinstance(payload, dict) and "data" in payload and "statusCode" in payload:
        return payload["data"]
    return payload


class UpstreamApiClient:
    """
    Authenticated calls to the upstream API gateway on behalf of the current session.
    The bearer token comes from the `auth_token` cookie; the gateway decides whether it is valid.
    """

    def __init__(self, client: httpx.AsyncClient, token: typing.Optional[str]):
        self.client = client
        self.token = token

    def _headers(self) -> typing.Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, endpoint: str, **kwargs) -> typing.Any:
        response = await self.client.request(method, endpoint, headers=self._headers(), **kwargs)
        if not response.is_success:
            message = response.reason_phrase
            try:
                error_json = response.json()
                if isinstance(error_json, dict) and error_json.get("message"):
                    message = str(error_json["message"])
            except ValueError:
                pass
            logger.info("API_CLIENT: %s %s -> %s", method, endpoint, response.status_code)
            raise UpstreamHTTPError(response.status_code, message)
        return _unwrap(response.json())

    async def get(self, endpoint: str, params: typing.Optional[typing.Mapping[str, typing.Any]] = None) -> typing.Any:
        return await self._request("GET", endpoint, params=_clean_params(params))

    async def post(self, endpoint: str, body: typing.Any = None) -> typing.Any:
        if body is None:
            return await self._request("POST", endpoint)
        return await self._request("POST", endpoint, json=body)
