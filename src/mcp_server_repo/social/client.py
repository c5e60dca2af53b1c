"""Twitter API client with OAuth 1.0a request signing"""

import asyncio
import logging
from dataclasses import dataclass, field

import aiohttp
from oauthlib.oauth1 import Client as OAuth1Client

from ..config import TwitterCredentials
from ..github.client import USER_AGENT, UpstreamResponse, connection_error, read_response

logger = logging.getLogger(__name__)


@dataclass
class TwitterClient:
    """Posts to the Twitter v2 API on behalf of a single user."""

    credentials: TwitterCredentials
    session: aiohttp.ClientSession
    base_url: str = "https://api.twitter.com"
    _signer: OAuth1Client = field(init=False, repr=False)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self._signer = OAuth1Client(
            self.credentials.api_key,
            client_secret=self.credentials.api_secret,
            resource_owner_key=self.credentials.access_token,
            resource_owner_secret=self.credentials.access_secret,
        )

    def sign(self, method: str, url: str) -> dict:
        """
        Build the OAuth 1.0a Authorization header for a request.

        JSON bodies are not part of the OAuth signature base string, so only
        the method and url are signed.
        """
        _, headers, _ = self._signer.sign(url, http_method=method)
        return {"Authorization": headers["Authorization"]}

    async def post_json(self, endpoint: str, payload: dict) -> UpstreamResponse:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = self.sign("POST", url)
        headers["User-Agent"] = USER_AGENT
        logger.debug(f"Twitter POST {url}")
        try:
            async with self.session.post(url, json=payload, headers=headers) as response:
                return await read_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise connection_error(f"Twitter POST {endpoint}", e) from e
