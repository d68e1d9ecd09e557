"""In-memory backend for development and tests."""

import asyncio
import uuid
from datetime import date
from decimal import Decimal

from ..exceptions import BackendError
from ..records import Addon, Customer, ExistingSubscription, Package
from .base import BaseSubscriptionBackend, SubmitResult


class InMemorySubscriptionBackend(BaseSubscriptionBackend):
    """Keeps catalog, customers and submissions in process memory.

    Set fail_submissions to make submit_subscription report failure, or
    fail_lookups to make every lookup raise BackendError.
    """

    backend_name = "memory"

    def __init__(
        self,
        packages=None,
        addons=None,
        customers=None,
        subscriptions=None,
        search_delay: float = 0,
    ):
        self.packages = list(packages or [])
        self.addons = list(addons or [])
        self.customers = {c.id: c for c in customers or []}
        self.subscriptions = {s.id: s for s in subscriptions or []}
        self.search_delay = search_delay
        self.submissions = []
        self.payments = []
        self.search_calls = []
        self.fail_submissions = False
        self.fail_lookups = False

    def _check(self):
        if self.fail_lookups:
            raise BackendError("Backend unavailable", status_code=503)

    def fetch_packages(self) -> list[Package]:
        self._check()
        return list(self.packages)

    def fetch_addons(self) -> list[Addon]:
        self._check()
        return list(self.addons)

    def fetch_customer(self, customer_id: str) -> Customer:
        self._check()
        try:
            return self.customers[str(customer_id)]
        except KeyError:
            raise BackendError(f"Customer {customer_id} not found", status_code=404)

    def search_customers(self, query: str, limit: int = 20) -> list[Customer]:
        self._check()
        self.search_calls.append(query)
        needle = query.lower()
        matches = [
            c for c in self.customers.values()
            if needle in c.name.lower() or needle in c.phone
        ]
        return matches[:limit]

    async def asearch_customers(self, query: str, limit: int = 20) -> list[Customer]:
        if self.search_delay:
            await asyncio.sleep(self.search_delay)
        return self.search_customers(query, limit)

    def fetch_subscription(self, subscription_id: str) -> ExistingSubscription:
        self._check()
        try:
            return self.subscriptions[str(subscription_id)]
        except KeyError:
            raise BackendError(f"Subscription {subscription_id} not found", status_code=404)

    def submit_subscription(self, payload: dict) -> SubmitResult:
        if self.fail_submissions:
            return SubmitResult.fail("Failed to create subscription")
        subscription_id = uuid.uuid4().hex
        self.submissions.append(payload)
        return SubmitResult.ok(subscription_id, raw_response={"id": subscription_id})

    def record_payment(
        self,
        subscription_id: str,
        amount: Decimal,
        payment_date: date,
        method: str,
    ) -> dict:
        self._check()
        record = {
            "subscription_id": str(subscription_id),
            "payment_amount": amount,
            "payment_date": payment_date,
            "payment_method": method,
        }
        self.payments.append(record)
        return record
