"""
Vishwakarma partner API connector.

API structure:
  - POST /api/IITKnpArtisanData/AuthenticateUser?UserId=&Password=  -> {Token, Success}
  - GET  /api/IITKnpArtisanData/GetArtisansIITKanpur?Date=&PageNo=   -> {data: [artisan, ...]}
  - POST /api/IITKnpArtisanData/SaveIITKanpurArtisanCallDetail        <- [{ArtisanId, ReceiveCalls, date}]

The last two require "Authorization: Bearer <token>". An empty data list
means there are no more pages for that date.
"""
from typing import Any, Dict, List, Optional
from artisan_sync.connectors.base_connector import BaseConnector
from artisan_sync.config import get_settings
from artisan_sync.exceptions import AuthError, FetchError, PushError
from artisan_sync.utils.logger import log

settings = get_settings()

API_PREFIX = "/api/IITKnpArtisanData"


class VishwakarmaConnector(BaseConnector):
    """Connector for the Vishwakarma artisan registry"""

    AUTH_PATH = f"{API_PREFIX}/AuthenticateUser"
    ARTISANS_PATH = f"{API_PREFIX}/GetArtisansIITKanpur"
    CALL_DETAIL_PATH = f"{API_PREFIX}/SaveIITKanpurArtisanCallDetail"

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_id: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(
            "Vishwakarma",
            base_url or settings.vishwakarma_base_url,
            timeout_seconds or settings.vishwakarma_timeout_seconds,
        )
        self.user_id = user_id if user_id is not None else settings.vishwakarma_user_id
        self.password = password if password is not None else settings.vishwakarma_password

    async def authenticate(self) -> str:
        """
        Exchange the integration credentials for a bearer token.

        Raises:
            AuthError: if the partner reports failure or sends no token
        """
        body = await self._request(
            "POST",
            self.AUTH_PATH,
            error_cls=AuthError,
            params={"UserId": self.user_id, "Password": self.password},
        )
        if not isinstance(body, dict):
            raise AuthError("Authentication failed: unexpected response shape", payload=body)

        token = body.get("Token") or body.get("token")
        success = body.get("Success", body.get("success"))

        if success and token:
            log.info("Authenticated with Vishwakarma API")
            return token

        message = body.get("Message") or body.get("message") or "Unknown error"
        raise AuthError(f"Authentication failed: {message}", payload=body)

    async def fetch_artisans(self, token: str, date: str, page: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of artisan records registered/updated on a date.

        Returns:
            The page's records; an empty list when the date is exhausted
        """
        params = {}
        if date:
            params["Date"] = date
        if page:
            params["PageNo"] = str(page)

        body = await self._request(
            "GET",
            self.ARTISANS_PATH,
            error_cls=FetchError,
            headers=self._bearer_headers(token),
            params=params,
        )
        if not isinstance(body, dict):
            raise FetchError(
                f"Unexpected artisan page shape for {date} page {page}",
                payload=body,
            )
        return body.get("data") or []

    async def push_call_details(self, token: str, payload: List[Dict[str, Any]]) -> Any:
        """
        Submit per-artisan received-call counts in a single request.

        Raises:
            PushError: carrying the partner's error body when one was returned
        """
        return await self._request(
            "POST",
            self.CALL_DETAIL_PATH,
            error_cls=PushError,
            headers=self._bearer_headers(token),
            json=payload,
        )
