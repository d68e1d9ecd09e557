"""Read-only records supplied by the back-office catalog and customer APIs."""

from dataclasses import dataclass, field, asdict
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional


def to_decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce API/JSON numbers (int, float, str, None) to Decimal."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount '{value}'")


def to_date(value) -> Optional[date]:
    """Coerce an ISO string (or date) to a date; empty values become None."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class Package:
    """A subscription-enabled wash package from the catalog."""

    id: str
    name: str
    vehicle_type: str
    max_washes_per_month: int
    subscription_price: Decimal

    @classmethod
    def from_api(cls, data: dict) -> "Package":
        price = data.get("subscription_price")
        if price in (None, ""):
            price = data.get("unit_price")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            vehicle_type=(data.get("vehicle_type") or "").lower(),
            max_washes_per_month=int(data.get("max_washes_per_month") or 0),
            subscription_price=to_decimal(price),
        )


@dataclass(frozen=True)
class Addon:
    """An optional extra service priced per wash."""

    id: str
    name: str
    unit_price: Decimal

    @classmethod
    def from_api(cls, data: dict) -> "Addon":
        price = data.get("unit_price")
        if price in (None, ""):
            price = data.get("price")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            unit_price=to_decimal(price),
        )


@dataclass(frozen=True)
class Customer:
    id: str
    name: str = ""
    phone: str = ""
    area: str = ""
    map_url: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Customer":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            phone=data.get("phone") or "",
            area=data.get("area") or "",
            map_url=data.get("map_url") or "",
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ExistingSubscription:
    """
    A persisted subscription fetched for editing.

    Line items and schedules are kept in their API shape; the wizard
    converts them into draft items on hydration.
    """

    id: str
    customer: Customer
    vehicle_type: str
    months_duration: int
    start_date: Optional[date]
    area: str = ""
    map_url: str = ""
    packages: list = field(default_factory=list)
    addons: list = field(default_factory=list)
    washing_schedules: list = field(default_factory=list)
    payment_amount: Optional[Decimal] = None
    payment_date: Optional[date] = None
    payment_method: str = ""
    payment_status: str = "pending"
    subscription_amount: Decimal = Decimal("0")
    notes: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "ExistingSubscription":
        amount = data.get("payment_amount")
        return cls(
            id=str(data["id"]),
            customer=Customer.from_api(data.get("customer") or {"id": data.get("customer_id", "")}),
            vehicle_type=data.get("vehicle_type") or "",
            months_duration=int(data.get("months_duration") or 1),
            start_date=to_date(data.get("start_date")),
            area=data.get("area") or "",
            map_url=data.get("map_url") or "",
            packages=list(data.get("packages") or []),
            addons=list(data.get("addons") or []),
            washing_schedules=list(data.get("washing_schedules") or []),
            payment_amount=to_decimal(amount) if amount not in (None, "") else None,
            payment_date=to_date(data.get("payment_date")),
            payment_method=data.get("payment_method") or "",
            payment_status=data.get("payment_status") or "pending",
            subscription_amount=to_decimal(data.get("subscription_amount")),
            notes=data.get("notes") or "",
        )
