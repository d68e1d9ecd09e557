"""Base interface for the back-office collaborators the wizard talks to."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..records import Addon, Customer, ExistingSubscription, Package


@dataclass
class SubmitResult:
    """Result of handing a subscription to the acceptor."""

    success: bool
    subscription_id: Optional[str] = None
    error: Optional[str] = None
    raw_response: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, subscription_id: str = "", raw_response: dict = None) -> "SubmitResult":
        return cls(success=True, subscription_id=subscription_id, raw_response=raw_response or {})

    @classmethod
    def fail(cls, error: str) -> "SubmitResult":
        return cls(success=False, error=error)


class BaseSubscriptionBackend(ABC):
    """Abstract base class for subscription backends.

    Catalog, customer and subscription lookups plus the submission acceptor.
    Lookups raise BackendError on transport or server failure; submit
    returns a SubmitResult so the wizard can keep the draft for retry.
    """

    backend_name: str = "base"

    @abstractmethod
    def fetch_packages(self) -> list[Package]:
        """Subscription-enabled packages."""
        raise NotImplementedError

    @abstractmethod
    def fetch_addons(self) -> list[Addon]:
        raise NotImplementedError

    @abstractmethod
    def fetch_customer(self, customer_id: str) -> Customer:
        raise NotImplementedError

    @abstractmethod
    def search_customers(self, query: str, limit: int = 20) -> list[Customer]:
        raise NotImplementedError

    @abstractmethod
    async def asearch_customers(self, query: str, limit: int = 20) -> list[Customer]:
        """Search customers (async), used by the debounced search."""
        raise NotImplementedError

    @abstractmethod
    def fetch_subscription(self, subscription_id: str) -> ExistingSubscription:
        raise NotImplementedError

    @abstractmethod
    def submit_subscription(self, payload: dict) -> SubmitResult:
        """Hand a finalized subscription request to the acceptor.

        Args:
            payload: Output of build_submission_payload()

        Returns:
            SubmitResult with success/failure status
        """
        raise NotImplementedError

    @abstractmethod
    def record_payment(
        self,
        subscription_id: str,
        amount: Decimal,
        payment_date: date,
        method: str,
    ) -> dict:
        """Record a payment against an existing subscription."""
        raise NotImplementedError
