"""Xactus tri-merge credit API client.

Authenticates with OAuth 2.0 client credentials and orders or reissues
reports, soft pulls included, over the Xactus REST API.  Every transport failure,
timeout, error status or unparseable body surfaces as ``ProviderError`` so
the orchestrator can treat them uniformly.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from mortgage_credit.config import settings
from mortgage_credit.services.credit_bureau.adapter import (
    BorrowerIdentity,
    TriMergeClient,
    TriMergeResponse,
)
from mortgage_credit.services.credit_bureau.transform import transform_report
from mortgage_credit.services.credit_reporting.errors import ProviderError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"
REPORTS_PATH = "/v1/credit/reports"
# Refresh this many seconds before the token actually expires
TOKEN_EXPIRY_MARGIN = 300


class XactusClient(TriMergeClient):
    """HTTP client for the Xactus credit API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.xactus_api_url).rstrip("/")
        self.client_id = client_id if client_id is not None else settings.xactus_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.xactus_client_secret
        )
        self.timeout = timeout or settings.xactus_timeout_seconds
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0

    @property
    def provider_name(self) -> str:
        return "xactus"

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._access_token and time.monotonic() < self._token_expiry:
            return self._access_token

        logger.info("Requesting new Xactus access token")
        body = await self._send(
            client,
            "POST",
            TOKEN_PATH,
            json={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        token = body.get("access_token")
        if not token:
            raise ProviderError("Xactus token response missing access_token")
        expires_in = int(body.get("expires_in") or 0)
        self._access_token = token
        self._token_expiry = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        return token

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = await client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Xactus request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Xactus request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ProviderError(
                f"Xactus API error {response.status_code} on {method} {path}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError(f"Xactus returned a non-JSON body on {method} {path}") from exc
        if not isinstance(body, dict):
            raise ProviderError(f"Xactus returned an unexpected body on {method} {path}")
        return body

    async def _authorized(
        self, method: str, path: str, json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        async with self._http() as client:
            token = await self._get_access_token(client)
            return await self._send(client, method, path, json=json, token=token)

    async def request_tri_merge(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        payload = {
            "borrower": {
                "first_name": borrower.first_name,
                "last_name": borrower.last_name,
                "ssn": borrower.ssn,
                "date_of_birth": borrower.date_of_birth,
                "current_address": {
                    "street": borrower.address.get("street"),
                    "city": borrower.address.get("city"),
                    "state": borrower.address.get("state"),
                    "zip": borrower.address.get("zip"),
                },
            },
            "report_type": "tri_merge",
            "purpose": borrower.purpose or "mortgage",
            "include_scores": True,
            "include_tradelines": True,
            "include_inquiries": True,
            "include_public_records": True,
        }
        logger.info("Requesting tri-merge credit report from Xactus")
        body = await self._authorized("POST", REPORTS_PATH, json=payload)
        return transform_report(body)

    async def request_soft_pull(self, borrower: BorrowerIdentity) -> TriMergeResponse:
        payload = {
            "borrower": {
                "first_name": borrower.first_name,
                "last_name": borrower.last_name,
                "ssn": borrower.ssn,
                "date_of_birth": borrower.date_of_birth,
            },
            "report_type": "soft_pull",
            "purpose": "prequalification",
        }
        logger.info("Requesting soft pull from Xactus")
        body = await self._authorized("POST", REPORTS_PATH, json=payload)
        return transform_report(body)

    async def reissue_report(self, report_id: str) -> TriMergeResponse:
        logger.info("Requesting reissue of Xactus report %s", report_id)
        body = await self._authorized("POST", f"{REPORTS_PATH}/{report_id}/reissue")
        return transform_report(body)
