"""
Subscription wizard state machine.

Five linear steps:

    1 customer & duration -> 2 packages -> 3 add-ons -> 4 schedules -> 5 payment & summary

The wizard is a reducer: reduce(state, action) returns a new WizardState and
never mutates its input. Every action ends with recompute(), which re-derives
prices, "all washes" add-on selections and manual schedule slots from the
draft. Persistence and submission are handled by services.py.
"""

import copy
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from django.utils import timezone

from .choices import (
    ApplicationType,
    PaymentStatus,
    PAYMENT_EDITABLE_STATUSES,
    ScheduleMode,
    VehicleType,
    WizardMode,
)
from .draft import AddonLineItem, PackageLineItem, ServiceArea, SubscriptionDraft
from .exceptions import InvalidStep, ScheduleRuleError
from .pricing import (
    Totals,
    apply_application_type,
    calculate_totals,
    price_addon_item,
    price_package_item,
)
from .records import Addon, Customer, Package, to_date, to_decimal
from .schedules import (
    ScheduleRule,
    allocate_manual_slots,
    calculate_total_washes,
    edit_slot,
    generate_from_rule,
    validate_schedules,
)


class WizardStep(IntEnum):
    CUSTOMER_AND_DURATION = 1
    PACKAGES = 2
    ADDONS = 3
    SCHEDULES = 4
    PAYMENT_AND_SUMMARY = 5


MIN_MONTHS = 1
MAX_MONTHS = 12

SCHEDULES_LOCKED_MESSAGE = "Schedules cannot be changed once payment has started"
PAYMENT_LOCKED_MESSAGE = "Payment details cannot be changed for this subscription"


@dataclass
class WizardState:
    step: int = WizardStep.CUSTOMER_AND_DURATION
    draft: SubscriptionDraft = field(default_factory=SubscriptionDraft)
    mode: str = WizardMode.NEW
    subscription_id: Optional[str] = None
    existing_payment_status: Optional[str] = None
    packages: list[Package] = field(default_factory=list)
    addons: list[Addon] = field(default_factory=list)
    schedule_mode: str = ScheduleMode.MANUAL
    schedule_rule: ScheduleRule = field(default_factory=ScheduleRule)
    errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    submit_error: Optional[str] = None
    load_error: Optional[str] = None
    is_open: bool = True

    @property
    def is_edit(self) -> bool:
        return self.mode == WizardMode.EDIT

    @property
    def total_washes(self) -> int:
        return calculate_total_washes(
            self.draft.package_items, self.packages, self.draft.months_duration
        )

    @property
    def totals(self) -> Totals:
        return calculate_totals(self.draft)

    def packages_for_vehicle(self) -> list[Package]:
        """Catalog packages matching the selected vehicle type (all if unset)."""
        vehicle_type = self.draft.vehicle_type.lower()
        if not vehicle_type:
            return list(self.packages)
        return [p for p in self.packages if p.vehicle_type == vehicle_type]


def can_edit_schedules(state: WizardState) -> bool:
    """Schedules are frozen once an existing subscription leaves 'pending'."""
    if not state.is_edit:
        return True
    return state.existing_payment_status == PaymentStatus.PENDING


def can_edit_payment(state: WizardState) -> bool:
    """Payment fields stay editable while payment is pending or partial."""
    if not state.is_edit:
        return True
    return state.existing_payment_status in PAYMENT_EDITABLE_STATUSES


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class SelectCustomer:
    customer: Customer


@dataclass(frozen=True)
class SetVehicleType:
    vehicle_type: str


@dataclass(frozen=True)
class SetMonthsDuration:
    months_duration: int


@dataclass(frozen=True)
class SetStartDate:
    start_date: Any


@dataclass(frozen=True)
class SetServiceArea:
    area: Optional[str] = None
    map_url: Optional[str] = None


@dataclass(frozen=True)
class SetNotes:
    notes: str


@dataclass(frozen=True)
class AddPackageItem:
    pass


@dataclass(frozen=True)
class UpdatePackageItem:
    index: int
    field: str
    value: Any


@dataclass(frozen=True)
class RemovePackageItem:
    index: int


@dataclass(frozen=True)
class AddAddonItem:
    pass


@dataclass(frozen=True)
class UpdateAddonItem:
    index: int
    field: str
    value: Any


@dataclass(frozen=True)
class RemoveAddonItem:
    index: int


@dataclass(frozen=True)
class SetScheduleMode:
    schedule_mode: str


@dataclass(frozen=True)
class SetScheduleRule:
    rule: ScheduleRule


@dataclass(frozen=True)
class GenerateSchedules:
    pass


@dataclass(frozen=True)
class UpdateWashSlot:
    index: int
    field: str
    value: Any


@dataclass(frozen=True)
class SetPayment:
    field: str
    value: Any


@dataclass(frozen=True)
class NextStep:
    pass


@dataclass(frozen=True)
class PreviousStep:
    pass


@dataclass(frozen=True)
class Reset:
    pass


# =============================================================================
# HANDLERS
# =============================================================================

PACKAGE_FIELDS = ("package_id", "quantity", "unit_price", "discount_type", "discount_value", "notes")
ADDON_FIELDS = (
    "addon_id", "unit_price", "discount_type", "discount_value",
    "application_type", "applicable_wash_numbers",
)
PAYMENT_FIELDS = ("amount", "date", "method", "status")


def _to_int(value) -> int:
    """Integer form of user input; anything unparseable becomes 0."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _select_customer(state: WizardState, action: SelectCustomer):
    state.draft.customer = action.customer
    if action.customer and action.customer.area:
        state.draft.service_area = ServiceArea(
            area=action.customer.area,
            map_url=action.customer.map_url,
        )


def _set_vehicle_type(state: WizardState, action: SetVehicleType):
    state.draft.vehicle_type = (action.vehicle_type or "").lower()


def _set_months_duration(state: WizardState, action: SetMonthsDuration):
    months = _to_int(action.months_duration)
    if months != state.draft.months_duration:
        # Price already folds in the duration, so quantity stays at one cycle
        for item in state.draft.package_items:
            item.quantity = 1
    state.draft.months_duration = months


def _set_start_date(state: WizardState, action: SetStartDate):
    state.draft.start_date = to_date(action.start_date)


def _set_service_area(state: WizardState, action: SetServiceArea):
    area = state.draft.service_area
    state.draft.service_area = ServiceArea(
        area=action.area if action.area else area.area,
        map_url=action.map_url if action.map_url else area.map_url,
    )


def _set_notes(state: WizardState, action: SetNotes):
    state.draft.notes = action.notes or ""


def _add_package_item(state: WizardState, action: AddPackageItem):
    state.draft.package_items.append(PackageLineItem(vehicle_type=state.draft.vehicle_type))


def _update_package_item(state: WizardState, action: UpdatePackageItem):
    if action.field not in PACKAGE_FIELDS:
        raise ValueError(f"Cannot update package field '{action.field}'")
    item = state.draft.package_items[action.index]

    if action.field == "package_id":
        item.package_id = str(action.value or "")
        package = next((p for p in state.packages if p.id == item.package_id), None)
        if package is not None:
            item.unit_price = package.subscription_price
            item.vehicle_type = package.vehicle_type or state.draft.vehicle_type
    elif action.field == "quantity":
        item.quantity = _to_int(action.value)
    elif action.field in ("unit_price", "discount_value"):
        setattr(item, action.field, to_decimal(action.value))
    else:
        setattr(item, action.field, action.value or "")


def _remove_package_item(state: WizardState, action: RemovePackageItem):
    del state.draft.package_items[action.index]


def _add_addon_item(state: WizardState, action: AddAddonItem):
    state.draft.addon_items.append(AddonLineItem())


def _update_addon_item(state: WizardState, action: UpdateAddonItem):
    if action.field not in ADDON_FIELDS:
        raise ValueError(f"Cannot update addon field '{action.field}'")
    items = state.draft.addon_items
    item = items[action.index]

    if action.field == "addon_id":
        item.addon_id = str(action.value or "")
        addon = next((a for a in state.addons if a.id == item.addon_id), None)
        if addon is not None:
            item.unit_price = addon.unit_price
    elif action.field == "application_type":
        items[action.index] = apply_application_type(item, action.value, state.total_washes)
    elif action.field == "applicable_wash_numbers":
        item.applicable_wash_numbers = sorted({int(n) for n in action.value or []})
    elif action.field in ("unit_price", "discount_value"):
        setattr(item, action.field, to_decimal(action.value))
    else:
        item.discount_type = action.value


def _remove_addon_item(state: WizardState, action: RemoveAddonItem):
    del state.draft.addon_items[action.index]


def _set_schedule_mode(state: WizardState, action: SetScheduleMode):
    state.schedule_mode = action.schedule_mode


def _set_schedule_rule(state: WizardState, action: SetScheduleRule):
    state.schedule_rule = copy.deepcopy(action.rule)


def _generate_schedules(state: WizardState, action: GenerateSchedules):
    state.warnings = []
    if not can_edit_schedules(state):
        state.errors = {"schedule_rule": SCHEDULES_LOCKED_MESSAGE}
        return

    try:
        result = generate_from_rule(
            state.schedule_rule,
            state.draft.start_date,
            state.draft.months_duration,
            state.total_washes,
        )
    except ScheduleRuleError as e:
        state.errors = {"schedule_rule": str(e)}
        return

    state.schedule_mode = ScheduleMode.RULE_BASED
    state.draft.wash_schedules = result.slots
    state.errors = {}
    if result.warning:
        state.warnings.append(result.warning)


def _update_wash_slot(state: WizardState, action: UpdateWashSlot):
    if not can_edit_schedules(state):
        state.errors = {"schedules": SCHEDULES_LOCKED_MESSAGE}
        return
    value = to_date(action.value) if action.field == "date" else (action.value or "")
    slots = state.draft.wash_schedules
    slots[action.index] = edit_slot(slots[action.index], action.field, value)


def _set_payment(state: WizardState, action: SetPayment):
    if action.field not in PAYMENT_FIELDS:
        raise ValueError(f"Cannot update payment field '{action.field}'")
    if not can_edit_payment(state):
        state.errors = {"payment": PAYMENT_LOCKED_MESSAGE}
        return

    payment = state.draft.payment
    if action.field == "amount":
        payment.amount = to_decimal(action.value) if action.value not in (None, "") else None
    elif action.field == "date":
        payment.date = to_date(action.value)
    else:
        setattr(payment, action.field, action.value or "")


def _next_step(state: WizardState, action: NextStep):
    if state.step >= WizardStep.PAYMENT_AND_SUMMARY:
        raise InvalidStep(state.step + 1)
    state.errors = validate_step(state, state.step)
    if not state.errors:
        state.step = WizardStep(state.step + 1)


def _previous_step(state: WizardState, action: PreviousStep):
    state.errors = {}
    if state.step > WizardStep.CUSTOMER_AND_DURATION:
        state.step = WizardStep(state.step - 1)


def _reset(state: WizardState, action: Reset):
    state.step = WizardStep.CUSTOMER_AND_DURATION
    state.draft = SubscriptionDraft()
    state.schedule_mode = ScheduleMode.MANUAL
    state.schedule_rule = ScheduleRule()
    state.errors = {}
    state.warnings = []
    state.submit_error = None


_HANDLERS = {
    SelectCustomer: _select_customer,
    SetVehicleType: _set_vehicle_type,
    SetMonthsDuration: _set_months_duration,
    SetStartDate: _set_start_date,
    SetServiceArea: _set_service_area,
    SetNotes: _set_notes,
    AddPackageItem: _add_package_item,
    UpdatePackageItem: _update_package_item,
    RemovePackageItem: _remove_package_item,
    AddAddonItem: _add_addon_item,
    UpdateAddonItem: _update_addon_item,
    RemoveAddonItem: _remove_addon_item,
    SetScheduleMode: _set_schedule_mode,
    SetScheduleRule: _set_schedule_rule,
    GenerateSchedules: _generate_schedules,
    UpdateWashSlot: _update_wash_slot,
    SetPayment: _set_payment,
    NextStep: _next_step,
    PreviousStep: _previous_step,
    Reset: _reset,
}


def reduce(state: WizardState, action) -> WizardState:
    """
    Apply an action and return the resulting state.

    The input state is left untouched.

    Raises:
        TypeError: If action is not a wizard action
        InvalidStep: If NextStep is dispatched on the last step
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown wizard action {action!r}")

    new_state = copy.deepcopy(state)
    handler(new_state, action)
    return recompute(new_state)


def recompute(state: WizardState) -> WizardState:
    """
    Re-derive every computed field of the draft in place.

    - "all washes" add-ons select every wash of the current schedule
    - package and add-on prices are recalculated
    - in manual mode, blank slots are allocated when the required count changed
    """
    draft = state.draft
    total_washes = state.total_washes

    for index, item in enumerate(draft.addon_items):
        if item.application_type == ApplicationType.ALL_WASHES:
            item = apply_application_type(item, ApplicationType.ALL_WASHES, total_washes)
        draft.addon_items[index] = price_addon_item(item)

    draft.package_items = [
        price_package_item(item, draft.months_duration) for item in draft.package_items
    ]

    if (
        state.schedule_mode == ScheduleMode.MANUAL
        and draft.package_items
        and draft.months_duration > 0
        and can_edit_schedules(state)
    ):
        draft.wash_schedules = allocate_manual_slots(draft.wash_schedules, total_washes)

    return state


# =============================================================================
# STEP VALIDATORS
# =============================================================================

def _validate_customer_and_duration(state: WizardState) -> dict[str, str]:
    draft = state.draft
    errors = {}
    if not draft.customer:
        errors["customer"] = "Please select a customer"
    if draft.vehicle_type not in VehicleType.values:
        errors["vehicleType"] = "Please select vehicle type"
    if not MIN_MONTHS <= (draft.months_duration or 0) <= MAX_MONTHS:
        errors["monthsDuration"] = "Please enter valid duration"
    if not draft.start_date:
        errors["startDate"] = "Please select start date"
    elif not state.is_edit and draft.start_date < timezone.localdate():
        errors["startDate"] = "Start date cannot be in the past"
    if not draft.service_area.area:
        errors["area"] = "Please enter service area"
    return errors


def _validate_packages(state: WizardState) -> dict[str, str]:
    items = state.draft.package_items
    if not items:
        return {"packages": "Please add at least one package"}

    errors = {}
    for index, item in enumerate(items):
        if not item.package_id:
            errors[f"package_{index}"] = "Please select a package"
        if item.quantity < 1:
            errors[f"quantity_{index}"] = "Quantity must be at least 1"
    return errors


def _validate_addons(state: WizardState) -> dict[str, str]:
    errors = {}
    for index, item in enumerate(state.draft.addon_items):
        if not item.addon_id:
            errors[f"addon_{index}"] = "Please select an addon"
        if (
            item.application_type == ApplicationType.SPECIFIC_WASHES
            and not item.applicable_wash_numbers
        ):
            errors[f"addon_wash_{index}"] = "Please select at least one wash for this addon"
    return errors


def _validate_schedules(state: WizardState) -> dict[str, str]:
    return validate_schedules(
        state.draft.wash_schedules,
        required_count=state.total_washes,
        locked=not can_edit_schedules(state),
    )


def _validate_payment(state: WizardState) -> dict[str, str]:
    if not can_edit_payment(state):
        return {}
    errors = {}
    if not state.draft.payment.method:
        errors["paymentMethod"] = "Please select payment method"
    if not state.draft.payment.status:
        errors["paymentStatus"] = "Please select payment status"
    return errors


_VALIDATORS = {
    WizardStep.CUSTOMER_AND_DURATION: _validate_customer_and_duration,
    WizardStep.PACKAGES: _validate_packages,
    WizardStep.ADDONS: _validate_addons,
    WizardStep.SCHEDULES: _validate_schedules,
    WizardStep.PAYMENT_AND_SUMMARY: _validate_payment,
}


def validate_step(state: WizardState, step: int) -> dict[str, str]:
    """
    Validate one step of the wizard.

    Returns a dict of field key -> message (empty = valid).

    Raises:
        InvalidStep: If step is not 1-5
    """
    try:
        validator = _VALIDATORS[WizardStep(step)]
    except ValueError:
        raise InvalidStep(step)
    return validator(state)
