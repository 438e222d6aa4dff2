"""Zoho CRM adapter -- OAuth token lifecycle and Deals module REST calls.

Implements CRMAdapter against the Zoho CRM v5 REST API.

Key implementation details:
- Access token cached with its expiry; refreshed via the refresh_token grant
  at https://accounts.zoho.<domain>/oauth/v2/token when missing or expired.
  No single-flight: concurrent callers may each trigger a refresh.
- Every API request carries ``Authorization: Zoho-oauthtoken <token>``.
- Connect errors and timeouts are retried with tenacity (3 attempts,
  exponential backoff 1-10s), matching the other HTTP clients. HTTP status
  errors and token rejections are never retried.
- Listing follows ``info.more_records`` up to ``max_pages`` pages; the
  default of 1 fetches only the first page (200 records).
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import pydantic
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.performancy.core.monitoring import record_crm_request
from src.performancy.deals.crm.adapter import CRMAdapter
from src.performancy.deals.crm.exceptions import (
    AuthenticationError,
    ConfigurationError,
    RemoteFetchError,
    RemoteWriteError,
)
from src.performancy.deals.crm.field_mapping import (
    ZOHO_DEAL_FIELDS,
    from_zoho_record,
    to_zoho_fields,
)
from src.performancy.deals.schemas import (
    Deal,
    DealPatch,
    ZohoConfig,
    ZohoDealsResponse,
    ZohoTokenResponse,
)

logger = structlog.get_logger(__name__)

_zoho_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class ZohoAdapter(CRMAdapter):
    """Zoho CRM Deals adapter.

    Holds no lifecycle of its own: the PipelineStore passes the connection
    config through initialize(), which may be called again at any time with
    a new config.

    Args:
        page_size: Records requested per GET /Deals page (Zoho maximum: 200).
        max_pages: Default page limit for get_deals().
        timeout: httpx timeout in seconds; None keeps httpx's default.
        transport: Optional httpx transport (tests inject httpx.MockTransport).
    """

    TOKEN_PATH = "/oauth/v2/token"

    def __init__(
        self,
        page_size: int = 200,
        max_pages: int = 1,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._page_size = page_size
        self._max_pages = max_pages
        self._timeout = timeout
        self._transport = transport

        self._config: ZohoConfig | None = None
        self._access_token: str | None = None
        self._token_expiry: float | None = None
        self._api_base_url: str | None = None
        self._accounts_url: str | None = None

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def initialize(self, config: ZohoConfig) -> None:
        """Store config, reset token state and rebuild the regional URLs."""
        self._config = config
        # A token carried on the config has unknown expiry; it is treated as
        # expired and replaced on first use.
        self._access_token = config.access_token or None
        self._token_expiry = None
        domain = config.domain.value
        self._api_base_url = f"https://www.zohoapis.{domain}/crm/v5"
        self._accounts_url = f"https://accounts.zoho.{domain}"

        logger.info("zoho.initialized", domain=domain)

    def is_initialized(self) -> bool:
        return self._config is not None

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client honoring the configured timeout/transport."""
        kwargs: dict[str, Any] = {"transport": self._transport}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        return httpx.AsyncClient(**kwargs)

    def _require_config(self) -> ZohoConfig:
        if self._config is None:
            raise ConfigurationError("Zoho adapter not initialized")
        return self._config

    # ── Token ──────────────────────────────────────────────────────────────

    def _token_valid(self) -> bool:
        return (
            self._access_token is not None
            and self._token_expiry is not None
            and time.time() < self._token_expiry
        )

    async def get_access_token(self) -> str:
        """Return the cached token, or exchange the refresh token for a new one.

        Raises:
            ConfigurationError: Adapter was never initialized.
            AuthenticationError: Token endpoint rejected the exchange or was
                unreachable.
        """
        if self._token_valid():
            return self._access_token  # type: ignore[return-value]

        config = self._require_config()

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self._accounts_url}{self.TOKEN_PATH}",
                    params={
                        "grant_type": "refresh_token",
                        "client_id": config.client_id,
                        "client_secret": config.client_secret,
                        "refresh_token": config.refresh_token,
                    },
                )
        except httpx.HTTPError as exc:
            record_crm_request("token", "error")
            logger.error("zoho.token_request_failed", error=str(exc))
            raise AuthenticationError(f"Token endpoint unreachable: {exc}") from exc

        if response.is_error:
            record_crm_request("token", "error")
            logger.error("zoho.token_rejected", status_code=response.status_code)
            raise AuthenticationError(
                f"Token exchange rejected with HTTP {response.status_code}"
            )

        try:
            token = ZohoTokenResponse.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as exc:
            # Zoho answers bad grants with 200 {"error": "invalid_code"}
            record_crm_request("token", "error")
            logger.error("zoho.token_rejected", body=response.text[:200])
            raise AuthenticationError("Token exchange rejected by Zoho") from exc

        self._access_token = token.access_token
        self._token_expiry = time.time() + token.expires_in
        record_crm_request("token", "success")
        logger.info("zoho.token_refreshed", expires_in=token.expires_in)

        return self._access_token

    # ── HTTP ───────────────────────────────────────────────────────────────

    @_zoho_retry
    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue an authorized API request and raise for non-2xx status."""
        token = await self.get_access_token()
        async with self._client() as client:
            response = await client.request(
                method,
                f"{self._api_base_url}{path}",
                params=params,
                json=json,
                headers={
                    "Authorization": f"Zoho-oauthtoken {token}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
            return response

    # ── Deals ──────────────────────────────────────────────────────────────

    async def get_deals(self, max_pages: int | None = None) -> list[Deal]:
        """Fetch deals, following more_records up to max_pages pages.

        Raises:
            ConfigurationError: Adapter was never initialized.
            RemoteFetchError: Transport, API or authentication failure, or a
                malformed record.
        """
        self._require_config()
        page_limit = max_pages if max_pages is not None else self._max_pages

        deals: list[Deal] = []
        page = 1
        while True:
            body = await self._fetch_page(page)
            try:
                deals.extend(from_zoho_record(record) for record in body.data)
            except pydantic.ValidationError as exc:
                record_crm_request("list_deals", "error")
                raise RemoteFetchError(f"Malformed deal record from Zoho: {exc}") from exc

            if not body.info.more_records or page >= page_limit:
                break
            page += 1

        record_crm_request("list_deals", "success")
        logger.info("zoho.deals_fetched", count=len(deals), pages=page)
        return deals

    async def _fetch_page(self, page: int) -> ZohoDealsResponse:
        try:
            response = await self._send(
                "GET",
                "/Deals",
                params={
                    "fields": ",".join(ZOHO_DEAL_FIELDS),
                    "per_page": self._page_size,
                    "page": page,
                },
            )
        except AuthenticationError as exc:
            record_crm_request("list_deals", "error")
            raise RemoteFetchError(f"Authentication failed: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            record_crm_request("list_deals", "error")
            logger.error(
                "zoho.deals_fetch_failed",
                status_code=exc.response.status_code,
                page=page,
            )
            raise RemoteFetchError(
                f"Zoho returned HTTP {exc.response.status_code} listing deals",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            record_crm_request("list_deals", "error")
            logger.error("zoho.deals_fetch_failed", error=str(exc), page=page)
            raise RemoteFetchError(f"Error fetching deals from Zoho: {exc}") from exc

        # 204 No Content: the module has no records
        if response.status_code == 204 or not response.content:
            return ZohoDealsResponse()

        try:
            return ZohoDealsResponse.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as exc:
            record_crm_request("list_deals", "error")
            raise RemoteFetchError(f"Malformed Zoho deals response: {exc}") from exc

    async def create_deal(self, patch: DealPatch) -> Deal:
        """POST /Deals with the fields present on the patch."""
        self._require_config()
        body = {"data": [to_zoho_fields(patch)]}
        response = await self._write("create_deal", "POST", "/Deals", body)
        deal = await self._map_write_result("create_deal", response)
        logger.info("zoho.deal_created", deal_id=deal.id)
        return deal

    async def update_deal(self, deal_id: str, patch: DealPatch) -> Deal:
        """PUT /Deals/{id} with only the fields present on the patch."""
        self._require_config()
        fields = to_zoho_fields(patch)
        body = {"data": [fields]}
        response = await self._write("update_deal", "PUT", f"/Deals/{deal_id}", body)
        deal = await self._map_write_result("update_deal", response, deal_id=deal_id)
        logger.info("zoho.deal_updated", deal_id=deal_id, fields=list(fields.keys()))
        return deal

    async def _write(
        self, operation: str, method: str, path: str, body: dict[str, Any]
    ) -> httpx.Response:
        try:
            return await self._send(method, path, json=body)
        except AuthenticationError as exc:
            record_crm_request(operation, "error")
            raise RemoteWriteError(f"Authentication failed: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            record_crm_request(operation, "error")
            logger.error(
                "zoho.write_failed",
                operation=operation,
                status_code=exc.response.status_code,
            )
            raise RemoteWriteError(
                f"Zoho returned HTTP {exc.response.status_code} on {operation}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            record_crm_request(operation, "error")
            logger.error("zoho.write_failed", operation=operation, error=str(exc))
            raise RemoteWriteError(f"Error writing deal to Zoho: {exc}") from exc

    async def _map_write_result(
        self, operation: str, response: httpx.Response, deal_id: str | None = None
    ) -> Deal:
        """Map a write response back to a Deal.

        Zoho normally acknowledges writes with ``{"code": "SUCCESS",
        "details": {"id": ...}}`` rather than the full record; in that case
        the record is re-read by id.
        """
        try:
            item = _first_record(response)
        except ValueError as exc:
            record_crm_request(operation, "error")
            raise RemoteWriteError(f"Malformed Zoho response on {operation}: {exc}") from exc

        if item.get("status") == "error":
            record_crm_request(operation, "error")
            raise RemoteWriteError(
                f"Zoho rejected {operation}: {item.get('code')} {item.get('message', '')}".strip()
            )

        try:
            if "Deal_Name" in item:
                deal = from_zoho_record(item)
            else:
                details = item.get("details")
                record_id = (details.get("id") if isinstance(details, dict) else None) or deal_id
                if record_id is None:
                    record_crm_request(operation, "error")
                    raise RemoteWriteError(f"Zoho response on {operation} carried no record id")
                deal = await self._get_deal(record_id)
        except (RemoteFetchError, pydantic.ValidationError) as exc:
            record_crm_request(operation, "error")
            raise RemoteWriteError(f"Could not read back deal after {operation}: {exc}") from exc

        record_crm_request(operation, "success")
        return deal

    async def _get_deal(self, deal_id: str) -> Deal:
        try:
            response = await self._send("GET", f"/Deals/{deal_id}")
            record = _first_record(response)
        except (AuthenticationError, httpx.HTTPError, ValueError) as exc:
            raise RemoteFetchError(f"Error reading deal {deal_id}: {exc}") from exc
        return from_zoho_record(record)


def _first_record(response: httpx.Response) -> dict[str, Any]:
    """Return ``data[0]`` of a Zoho response body.

    Raises:
        ValueError: Body is not JSON, or not shaped ``{"data": [{...}, ...]}``.
    """
    body = response.json()
    items = body.get("data") if isinstance(body, dict) else None
    if not isinstance(items, list) or not items:
        raise ValueError("response carries no data records")
    if not isinstance(items[0], dict):
        raise ValueError("data record is not an object")
    return items[0]
