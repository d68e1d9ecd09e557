"""HTTP backend for the car-wash back-office REST API."""

import json
import logging
from datetime import date
from decimal import Decimal

import httpx
from django.core.serializers.json import DjangoJSONEncoder

from ..conf import get_setting
from ..exceptions import BackendError
from ..records import Addon, Customer, ExistingSubscription, Package
from .base import BaseSubscriptionBackend, SubmitResult

logger = logging.getLogger(__name__)


class HttpSubscriptionBackend(BaseSubscriptionBackend):
    """Talks to the back-office API with bearer-token auth.

    Settings (overridable per instance):
        WASHPLAN_API_BASE_URL, WASHPLAN_API_TOKEN, WASHPLAN_API_TIMEOUT
    """

    backend_name = "http"

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or get_setting("API_BASE_URL")).rstrip("/")
        self.token = token if token is not None else get_setting("API_TOKEN")
        self.timeout = timeout if timeout is not None else float(get_setting("API_TIMEOUT"))
        headers = self._headers()
        self.client = httpx.Client(
            base_url=self.base_url, headers=headers, timeout=self.timeout, transport=transport
        )
        self.async_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=async_transport or transport,
        )

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _handle(self, response: httpx.Response) -> dict:
        if response.is_error:
            try:
                message = response.json().get("message")
            except (ValueError, AttributeError):
                message = None
            raise BackendError(
                message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise BackendError(
                "Unexpected response from API",
                status_code=response.status_code,
            )
        return data

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise BackendError(f"API endpoint is not reachable: {e}")
        return self._handle(response)

    def _post_json(self, path: str, payload: dict) -> dict:
        body = json.dumps(payload, cls=DjangoJSONEncoder)
        return self._request("POST", path, content=body)

    def fetch_packages(self) -> list[Package]:
        data = self._request("GET", "/packages", params={"subscription_enabled": "true"})
        return [Package.from_api(item) for item in data.get("packages") or []]

    def fetch_addons(self) -> list[Addon]:
        data = self._request("GET", "/addons")
        return [Addon.from_api(item) for item in data.get("addons") or []]

    def fetch_customer(self, customer_id: str) -> Customer:
        return Customer.from_api(self._request("GET", f"/customers/{customer_id}"))

    def search_customers(self, query: str, limit: int = 20) -> list[Customer]:
        data = self._request("GET", "/customers", params={"search": query, "limit": limit})
        return [Customer.from_api(item) for item in data.get("customers") or []]

    async def asearch_customers(self, query: str, limit: int = 20) -> list[Customer]:
        try:
            response = await self.async_client.get(
                "/customers", params={"search": query, "limit": limit}
            )
        except httpx.HTTPError as e:
            logger.warning(f"Customer search for '{query}' failed: {e}")
            raise BackendError(f"API endpoint is not reachable: {e}")
        data = self._handle(response)
        return [Customer.from_api(item) for item in data.get("customers") or []]

    def fetch_subscription(self, subscription_id: str) -> ExistingSubscription:
        data = self._request("GET", f"/subscriptions/{subscription_id}")
        return ExistingSubscription.from_api(data.get("subscription") or data)

    def submit_subscription(self, payload: dict) -> SubmitResult:
        try:
            data = self._post_json("/subscriptions", payload)
        except BackendError as e:
            logger.error(f"Subscription submission failed: {e}")
            return SubmitResult.fail(str(e))

        subscription = data.get("subscription") or data
        return SubmitResult.ok(str(subscription.get("id") or ""), raw_response=data)

    def record_payment(
        self,
        subscription_id: str,
        amount: Decimal,
        payment_date: date,
        method: str,
    ) -> dict:
        return self._post_json(
            f"/subscriptions/{subscription_id}/update_payment",
            {
                "payment_amount": amount,
                "payment_date": payment_date,
                "payment_method": method,
            },
        )

    def close(self):
        self.client.close()

    async def aclose(self):
        await self.async_client.aclose()
