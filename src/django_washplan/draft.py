"""
Subscription draft aggregate.

The draft is the in-progress subscription assembled by the wizard. It is a
plain value: the wizard reducer copies and rewrites it, the draft store
serializes it, and submission turns it into the acceptor payload.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .choices import ApplicationType, DiscountType, PaymentStatus
from .exceptions import DraftCorrupted
from .records import Customer, ExistingSubscription, Package, to_date, to_decimal


@dataclass
class PackageLineItem:
    package_id: str = ""
    quantity: int = 1
    unit_price: Decimal = Decimal("0")
    discount_type: str = DiscountType.FIXED
    discount_value: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    vehicle_type: str = ""
    notes: str = ""


@dataclass
class AddonLineItem:
    addon_id: str = ""
    unit_price: Decimal = Decimal("0")
    discount_type: str = DiscountType.FIXED
    discount_value: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    application_type: str = ApplicationType.ALL_WASHES
    applicable_wash_numbers: list[int] = field(default_factory=list)


@dataclass
class WashSlot:
    date: Optional[date] = None
    time_from: str = ""
    time_to: str = ""
    is_auto_generated: bool = False


@dataclass
class ServiceArea:
    area: str = ""
    map_url: str = ""


@dataclass
class Payment:
    amount: Optional[Decimal] = None
    date: Optional[date] = None
    method: str = ""
    status: str = PaymentStatus.PENDING


@dataclass
class SubscriptionDraft:
    customer: Optional[Customer] = None
    vehicle_type: str = ""
    months_duration: int = 1
    start_date: Optional[date] = None
    service_area: ServiceArea = field(default_factory=ServiceArea)
    package_items: list[PackageLineItem] = field(default_factory=list)
    addon_items: list[AddonLineItem] = field(default_factory=list)
    wash_schedules: list[WashSlot] = field(default_factory=list)
    payment: Payment = field(default_factory=Payment)
    notes: str = ""

    def to_dict(self) -> dict:
        """JSON-safe representation (Decimals as strings, dates as ISO)."""
        return {
            "customer": self.customer.to_dict() if self.customer else None,
            "vehicle_type": self.vehicle_type,
            "months_duration": self.months_duration,
            "start_date": _iso(self.start_date),
            "service_area": {
                "area": self.service_area.area,
                "map_url": self.service_area.map_url,
            },
            "package_items": [
                {
                    "package_id": item.package_id,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                    "discount_type": str(item.discount_type),
                    "discount_value": str(item.discount_value),
                    "discount": str(item.discount),
                    "price": str(item.price),
                    "vehicle_type": item.vehicle_type,
                    "notes": item.notes,
                }
                for item in self.package_items
            ],
            "addon_items": [
                {
                    "addon_id": item.addon_id,
                    "unit_price": str(item.unit_price),
                    "discount_type": str(item.discount_type),
                    "discount_value": str(item.discount_value),
                    "discount": str(item.discount),
                    "price": str(item.price),
                    "application_type": str(item.application_type),
                    "applicable_wash_numbers": list(item.applicable_wash_numbers),
                }
                for item in self.addon_items
            ],
            "wash_schedules": [
                {
                    "date": _iso(slot.date),
                    "time_from": slot.time_from,
                    "time_to": slot.time_to,
                    "is_auto_generated": slot.is_auto_generated,
                }
                for slot in self.wash_schedules
            ],
            "payment": {
                "amount": str(self.payment.amount) if self.payment.amount is not None else None,
                "date": _iso(self.payment.date),
                "method": self.payment.method,
                "status": str(self.payment.status),
            },
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SubscriptionDraft":
        """
        Rebuild a draft from to_dict() output.

        Raises:
            DraftCorrupted: If data is not a well-formed draft
        """
        try:
            customer = data.get("customer")
            area = data.get("service_area") or {}
            payment = data.get("payment") or {}
            amount = payment.get("amount")
            months = int(data.get("months_duration") or 1)

            return cls(
                customer=Customer(**customer) if customer else None,
                vehicle_type=data.get("vehicle_type") or "",
                months_duration=months,
                start_date=to_date(data.get("start_date")),
                service_area=ServiceArea(
                    area=area.get("area") or "",
                    map_url=area.get("map_url") or "",
                ),
                package_items=[_package_item(raw) for raw in data.get("package_items") or []],
                addon_items=[_addon_item(raw) for raw in data.get("addon_items") or []],
                wash_schedules=[_wash_slot(raw) for raw in data.get("wash_schedules") or []],
                payment=Payment(
                    amount=to_decimal(amount) if amount not in (None, "") else None,
                    date=to_date(payment.get("date")),
                    method=payment.get("method") or "",
                    status=payment.get("status") or PaymentStatus.PENDING,
                ),
                notes=data.get("notes") or "",
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DraftCorrupted(f"Malformed draft: {e}")


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _package_item(raw: dict) -> PackageLineItem:
    return PackageLineItem(
        package_id=str(raw.get("package_id") or ""),
        quantity=int(raw.get("quantity") or 1),
        unit_price=to_decimal(raw.get("unit_price")),
        discount_type=raw.get("discount_type") or DiscountType.FIXED,
        discount_value=to_decimal(raw.get("discount_value")),
        discount=to_decimal(raw.get("discount")),
        price=to_decimal(raw.get("price")),
        vehicle_type=raw.get("vehicle_type") or "",
        notes=raw.get("notes") or "",
    )


def _addon_item(raw: dict, total_washes: Optional[int] = None) -> AddonLineItem:
    numbers = sorted({int(n) for n in raw.get("applicable_wash_numbers") or []})
    application_type = raw.get("application_type")
    if not application_type:
        # Saved subscriptions only carry the wash numbers
        if total_washes is None or (total_washes and numbers == list(range(1, total_washes + 1))):
            application_type = ApplicationType.ALL_WASHES
        else:
            application_type = ApplicationType.SPECIFIC_WASHES
    return AddonLineItem(
        addon_id=str(raw.get("addon_id") or ""),
        unit_price=to_decimal(raw.get("unit_price")),
        discount_type=raw.get("discount_type") or DiscountType.FIXED,
        discount_value=to_decimal(raw.get("discount_value")),
        discount=to_decimal(raw.get("discount")),
        price=to_decimal(raw.get("price")),
        application_type=application_type,
        applicable_wash_numbers=numbers,
    )


def _wash_slot(raw: dict) -> WashSlot:
    return WashSlot(
        date=to_date(raw.get("date")),
        time_from=raw.get("time_from") or "",
        time_to=raw.get("time_to") or "",
        is_auto_generated=bool(raw.get("is_auto_generated", raw.get("isAutoGenerated", False))),
    )


def draft_from_subscription(
    subscription: ExistingSubscription,
    packages: Iterable[Package] = (),
) -> SubscriptionDraft:
    """
    Hydrate a draft from a persisted subscription (edit mode).

    Stored addons carry wash numbers but no application type. An addon
    covering every wash 1..total (total taken from the packages catalog)
    is treated as all-washes; anything else keeps its numbers as
    specific washes.
    """
    package_items = [_package_item(raw) for raw in subscription.packages]
    by_id = {str(p.id): p for p in packages}
    total_washes = sum(
        by_id[item.package_id].max_washes_per_month * subscription.months_duration
        for item in package_items
        if item.package_id in by_id
    )
    return SubscriptionDraft(
        customer=subscription.customer,
        vehicle_type=subscription.vehicle_type,
        months_duration=subscription.months_duration,
        start_date=subscription.start_date,
        service_area=ServiceArea(area=subscription.area, map_url=subscription.map_url),
        package_items=package_items,
        addon_items=[_addon_item(raw, total_washes) for raw in subscription.addons],
        wash_schedules=[_wash_slot(raw) for raw in subscription.washing_schedules],
        payment=Payment(
            amount=subscription.payment_amount,
            date=subscription.payment_date,
            method=subscription.payment_method,
            status=subscription.payment_status,
        ),
        notes=subscription.notes,
    )


def _as_id(value: str):
    """Numeric ids travel as integers, anything else unchanged."""
    return int(value) if str(value).isdigit() else value


def build_submission_payload(draft: SubscriptionDraft) -> dict:
    """
    Transform a draft into the finalized subscription request.

    Addon quantity is always 1: addon pricing is already folded into the
    selected wash count.
    """
    return {
        "customer_id": _as_id(draft.customer.id) if draft.customer else None,
        "vehicle_type": draft.vehicle_type,
        "start_date": _iso(draft.start_date),
        "months_duration": draft.months_duration,
        "area": draft.service_area.area,
        "map_url": draft.service_area.map_url,
        "packages": [
            {
                "package_id": _as_id(item.package_id),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "price": item.price,
                "vehicle_type": item.vehicle_type,
                "discount": item.discount,
                "discount_type": str(item.discount_type),
                "discount_value": item.discount_value,
                "notes": item.notes or None,
            }
            for item in draft.package_items
        ],
        "addons": [
            {
                "addon_id": _as_id(item.addon_id),
                "quantity": 1,
                "unit_price": item.unit_price,
                "price": item.price,
                "discount": item.discount,
                "discount_type": str(item.discount_type),
                "discount_value": item.discount_value,
                "applicable_wash_numbers": list(item.applicable_wash_numbers),
            }
            for item in draft.addon_items
        ],
        "washing_schedules": [
            {
                "date": _iso(slot.date),
                "time_from": slot.time_from,
                "time_to": slot.time_to,
            }
            for slot in draft.wash_schedules
        ],
        "payment_amount": draft.payment.amount if draft.payment.amount is not None else Decimal("0"),
        "payment_date": _iso(draft.payment.date),
        "payment_method": draft.payment.method,
        "notes": draft.notes or None,
    }
