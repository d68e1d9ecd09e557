"""Subscription pricing.

Prices package and add-on line items and totals the draft.

- Package price folds in the duration: unit_price x months - discount
- Add-on price follows the selected wash count: unit_price x washes - discount
- Discounts are a percentage of the line subtotal or a fixed amount
- Line prices never go below zero
- Tax is a single flat percentage of the subtotal
- The grand total is rounded to a whole amount; the difference is
  reported as round_off so the totals always reconcile exactly
"""

import math
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from .choices import ApplicationType, DiscountType
from .conf import get_tax_percentage
from .draft import AddonLineItem, PackageLineItem, SubscriptionDraft

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Totals:
    """Aggregate totals for a draft."""

    packages_total: Decimal
    addons_total: Decimal
    subtotal: Decimal
    tax_percentage: Decimal
    tax: Decimal
    raw_total: Decimal
    rounded_total: Decimal
    round_off: Decimal
    per_month: Decimal

    @property
    def has_round_off(self) -> bool:
        return self.round_off != ZERO


def calculate_discount(
    subtotal: Decimal,
    discount_type: str,
    discount_value: Optional[Decimal],
) -> Decimal:
    """Discount amount for a line subtotal."""
    value = discount_value or ZERO
    if discount_type == DiscountType.PERCENTAGE:
        return subtotal * value / HUNDRED
    return value


def price_package_item(item: PackageLineItem, months_duration: int) -> PackageLineItem:
    """Return a copy of item with discount and price computed for the duration."""
    subtotal = item.unit_price * months_duration
    discount = calculate_discount(subtotal, item.discount_type, item.discount_value)
    return replace(item, discount=discount, price=max(ZERO, subtotal - discount))


def price_addon_item(item: AddonLineItem) -> AddonLineItem:
    """Return a copy of item with discount and price computed for its washes."""
    subtotal = item.unit_price * len(item.applicable_wash_numbers)
    discount = calculate_discount(subtotal, item.discount_type, item.discount_value)
    return replace(item, discount=discount, price=max(ZERO, subtotal - discount))


def apply_application_type(
    item: AddonLineItem,
    application_type: str,
    total_washes: int,
) -> AddonLineItem:
    """
    Switch an add-on between all washes and specific washes.

    all_washes selects every wash number 1..total_washes; specific_washes
    clears the selection for manual picking.
    """
    if application_type == ApplicationType.ALL_WASHES:
        numbers = list(range(1, total_washes + 1))
    else:
        numbers = []
    return replace(item, application_type=application_type, applicable_wash_numbers=numbers)


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def calculate_totals(
    draft: SubscriptionDraft,
    tax_percentage: Optional[Decimal] = None,
) -> Totals:
    """
    Total the draft's already-priced line items.

    Args:
        draft: Draft whose package/addon prices are current
        tax_percentage: Override for WASHPLAN_TAX_PERCENTAGE

    Returns:
        Totals where packages_total + addons_total + tax + round_off
        equals rounded_total
    """
    if tax_percentage is None:
        tax_percentage = get_tax_percentage()

    packages_total = _sum(item.price for item in draft.package_items)
    addons_total = _sum(item.price for item in draft.addon_items)
    subtotal = packages_total + addons_total
    tax = subtotal * tax_percentage / HUNDRED
    raw_total = subtotal + tax
    rounded_total = raw_total.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    months = draft.months_duration or 1

    return Totals(
        packages_total=packages_total,
        addons_total=addons_total,
        subtotal=subtotal,
        tax_percentage=tax_percentage,
        tax=tax,
        raw_total=raw_total,
        rounded_total=rounded_total,
        round_off=rounded_total - raw_total,
        per_month=rounded_total / months,
    )


def group_wash_numbers_by_month(total_washes: int, months_duration: int) -> list[list[int]]:
    """
    Bucket wash numbers into months for specific-wash selection.

    Each month holds ceil(total / months) numbers; when the total does not
    divide evenly the last months are short and may be empty.
    """
    if total_washes <= 0 or months_duration <= 0:
        return [[] for _ in range(max(months_duration, 0))]

    per_month = math.ceil(total_washes / months_duration)
    months = []
    for month in range(months_duration):
        first = month * per_month + 1
        last = min((month + 1) * per_month, total_washes)
        months.append(list(range(first, last + 1)))
    return months
