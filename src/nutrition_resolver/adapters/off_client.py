"""Open Food Facts API client."""

from dataclasses import dataclass

import httpx

from nutrition_resolver.services.external_resolver import FoodDatabaseClient

PRODUCT_FIELDS = (
    "code,product_name,brands,serving_size,serving_quantity,nutriments"
)


@dataclass
class HttpxOpenFoodFactsClient(FoodDatabaseClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, user_agent: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            user_agent=user_agent,
            http_client=httpx.AsyncClient(headers={"User-Agent": user_agent}),
        )

    async def get_product(self, code: str, *, timeout: float) -> dict[str, object]:
        """Fetch a product by barcode."""
        url = f"{self.base_url}/api/v2/product/{code}.json"
        try:
            response = await self.http_client.get(
                url,
                params={"fields": PRODUCT_FIELDS},
                headers={"User-Agent": self.user_agent},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"Open Food Facts product {code} timed out") from exc
        if response.status_code == httpx.codes.NOT_FOUND:
            return {"status": 0, "code": code}
        response.raise_for_status()
        return response.json()

    async def search_products(
        self, query: str, *, page_size: int, timeout: float
    ) -> dict[str, object]:
        """Search products by free text."""
        url = f"{self.base_url}/cgi/search.pl"
        try:
            response = await self.http_client.get(
                url,
                params={
                    "search_terms": query,
                    "search_simple": 1,
                    "action": "process",
                    "json": 1,
                    "page_size": page_size,
                    "fields": PRODUCT_FIELDS,
                },
                headers={"User-Agent": self.user_agent},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"Open Food Facts search {query!r} timed out") from exc
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
