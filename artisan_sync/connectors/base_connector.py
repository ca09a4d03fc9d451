"""
Base connector class for partner HTTP APIs
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Type
from datetime import datetime
import asyncio
import aiohttp
from artisan_sync.exceptions import PartnerAPIError
from artisan_sync.utils.logger import log


class BaseConnector(ABC):
    """
    Base class for partner API connectors.

    Requests are never retried here: a failed call surfaces to the caller,
    which decides whether the surrounding run fails.
    """

    def __init__(self, name: str, base_url: str, timeout_seconds: float = 60.0):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.last_request_at = None
        self.request_count = 0
        self.error_count = 0

    @abstractmethod
    async def authenticate(self) -> str:
        """Obtain a bearer token from the partner"""
        pass

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _bearer_headers(token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[PartnerAPIError] = PartnerAPIError,
        **kwargs,
    ) -> Any:
        """
        Send one request and return the decoded body (JSON when possible).

        Args:
            method: HTTP method
            path: Path relative to base_url
            error_cls: PartnerAPIError subclass raised on any failure
            **kwargs: Passed through to aiohttp (params, json, headers)

        Raises:
            error_cls: on transport failure or a non-2xx status
        """
        url = self._url(path)
        self.request_count += 1
        self.last_request_at = datetime.utcnow()

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, **kwargs) as response:
                    body = await self._read_body(response)
                    if response.status >= 400:
                        self.error_count += 1
                        raise error_cls(
                            f"{self.name} {method} {path} returned {response.status}",
                            status=response.status,
                            payload=body,
                        )
                    return body
        except PartnerAPIError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.error_count += 1
            log.error(f"{self.name} {method} {path} failed: {e}")
            raise error_cls(f"{self.name} {method} {path} failed: {e}") from e

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        text = await response.text()
        if not text:
            return None
        try:
            return await response.json(content_type=None)
        except ValueError:
            return text

    def get_status(self) -> Dict[str, Any]:
        """Get connector status"""
        return {
            "name": self.name,
            "base_url": self.base_url,
            "last_request_at": self.last_request_at.isoformat() if self.last_request_at else None,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "error_rate": self.error_count / max(self.request_count, 1),
        }
