"""
Storefront REST Client

Async HTTP implementation of the order and catalog collaborators against
the storefront back-end. Responses use the JSend envelope
``{"status": "success", "data": {...}}``; list endpoints are paginated with
``page``/``limit`` query parameters and report ``metadata.lastPage``.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from shop_analytics.config.settings import StorefrontSettings

logger = structlog.get_logger(__name__)


class StorefrontAPIError(Exception):
    """A storefront request failed after retries, or returned a non-success envelope"""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


def _is_transient(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx responses are retried"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class StorefrontClient:
    """
    Storefront API client implementing ``OrderSource`` and ``CatalogSource``.

    Example:
        async with StorefrontClient(settings.storefront) as client:
            orders = await client.list_orders()
    """

    def __init__(
        self,
        settings: Optional[StorefrontSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        wait: Optional[wait_base] = None,
    ):
        self.settings = settings or StorefrontSettings()
        self.wait = wait or wait_exponential(multiplier=0.5, min=0.5, max=8)

        headers = {"Accept": "application/json"}
        if self.settings.api_token is not None:
            headers["Authorization"] = f"Bearer {self.settings.api_token.get_secret_value()}"

        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "StorefrontClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` with retries and return the unwrapped ``data`` payload"""
        url = f"{self.settings.base_url.rstrip('/')}{path}"
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.retry_attempts),
                wait=self.wait,
                retry=retry_if_exception(_is_transient),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.get(path, params=params)
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorefrontAPIError(
                f"Storefront request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
                url=url,
            ) from e
        except httpx.HTTPError as e:
            raise StorefrontAPIError(f"Storefront request failed: {e}", url=url) from e

        try:
            body = response.json()
        except ValueError as e:
            raise StorefrontAPIError("Storefront returned invalid JSON", response.status_code, url) from e

        if not isinstance(body, dict) or body.get("status") != "success":
            message = body.get("message") if isinstance(body, dict) else None
            raise StorefrontAPIError(
                f"Storefront returned an unsuccessful envelope: {message or body!r}",
                status_code=response.status_code,
                url=url,
            )
        return body.get("data")

    async def _paginate(self, path: str, key: str, page_size: int) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for page in range(1, self.settings.max_pages + 1):
            data = await self._get(path, params={"page": page, "limit": page_size}) or {}
            if isinstance(data, dict):
                batch = data.get(key) or []
            else:
                batch = data or []
            records.extend(batch)

            metadata = data.get("metadata") if isinstance(data, dict) else None
            last_page = (metadata or {}).get("lastPage")
            if not batch:
                break
            if last_page is not None:
                if page >= int(last_page):
                    break
            elif len(batch) < page_size:
                break
        else:
            logger.warning("Page cap reached, list truncated", path=path, max_pages=self.settings.max_pages)

        logger.debug("Fetched storefront list", path=path, records=len(records))
        return records

    async def list_orders(self) -> List[Dict[str, Any]]:
        return await self._paginate("/orders", "orders", self.settings.orders_page_size)

    async def get_order_detail(self, order_id: str) -> Dict[str, Any]:
        data = await self._get(f"/orders/{order_id}") or {}
        return data.get("order", data)

    async def list_products(self) -> List[Dict[str, Any]]:
        return await self._paginate("/products", "products", self.settings.products_page_size)

    async def get_product_detail(self, product_id: str) -> Dict[str, Any]:
        data = await self._get(f"/products/{product_id}") or {}
        return data.get("product", data)

    async def list_categories(self) -> List[Dict[str, Any]]:
        data = await self._get("/categories")
        if isinstance(data, dict):
            return data.get("categories") or []
        return data or []
