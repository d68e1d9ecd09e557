"""Tests for the subscription wizard reducer."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from django_washplan.choices import (
    ApplicationType,
    DiscountType,
    PaymentMethod,
    PaymentStatus,
    ScheduleMode,
    WizardMode,
)
from django_washplan.draft import WashSlot
from django_washplan.exceptions import InvalidStep
from django_washplan.schedules import ScheduleRule
from django_washplan.wizard import (
    AddAddonItem,
    AddPackageItem,
    GenerateSchedules,
    NextStep,
    PreviousStep,
    RemovePackageItem,
    Reset,
    SelectCustomer,
    SetMonthsDuration,
    SetPayment,
    SetScheduleRule,
    SetServiceArea,
    SetStartDate,
    SetVehicleType,
    UpdateAddonItem,
    UpdatePackageItem,
    UpdateWashSlot,
    WizardStep,
    can_edit_payment,
    can_edit_schedules,
    reduce,
    validate_step,
)


def apply(state, *actions):
    for action in actions:
        state = reduce(state, action)
    return state


def with_package(state, customer, start_date, package_id="1"):
    return apply(
        state,
        SelectCustomer(customer),
        SetVehicleType("sedan"),
        SetStartDate(start_date),
        AddPackageItem(),
        UpdatePackageItem(0, "package_id", package_id),
    )


def ready_for_payment(state, customer, start_date):
    """Walk a new subscription through steps 1-4 with a generated schedule."""
    state = with_package(state, customer, start_date)
    state = apply(
        state,
        SetScheduleRule(ScheduleRule(weekdays=[1, 3])),
        GenerateSchedules(),
        NextStep(), NextStep(), NextStep(), NextStep(),
    )
    assert state.step == WizardStep.PAYMENT_AND_SUMMARY, state.errors
    return state


class TestReducer:
    """Tests for reduce() and the step flow."""

    def test_reduce_does_not_mutate_input(self, state, customer):
        new_state = reduce(state, SelectCustomer(customer))

        assert new_state.draft.customer == customer
        assert state.draft.customer is None

    def test_unknown_action_rejected(self, state):
        with pytest.raises(TypeError):
            reduce(state, object())

    def test_select_customer_prefills_area(self, state, customer):
        """Selecting a customer copies their area and map link."""
        new_state = reduce(state, SelectCustomer(customer))

        assert new_state.draft.service_area.area == "Indiranagar"
        assert new_state.draft.service_area.map_url == "https://maps.example.com/asha"

    def test_set_service_area_merges(self, state, customer):
        new_state = apply(state, SelectCustomer(customer), SetServiceArea(area="Koramangala"))

        assert new_state.draft.service_area.area == "Koramangala"
        assert new_state.draft.service_area.map_url == "https://maps.example.com/asha"

    def test_next_blocked_by_validation(self, state):
        """Next stays on the step and reports errors when validation fails."""
        new_state = reduce(state, NextStep())

        assert new_state.step == WizardStep.CUSTOMER_AND_DURATION
        assert new_state.errors["customer"] == "Please select a customer"

    def test_next_advances_when_valid(self, state, customer, start_date):
        new_state = apply(
            state, SelectCustomer(customer), SetVehicleType("sedan"),
            SetStartDate(start_date), NextStep(),
        )

        assert new_state.step == WizardStep.PACKAGES
        assert new_state.errors == {}

    def test_back_needs_no_validation(self, state):
        state = replace(state, step=WizardStep.ADDONS, errors={"x": "y"})

        new_state = reduce(state, PreviousStep())

        assert new_state.step == WizardStep.PACKAGES
        assert new_state.errors == {}

    def test_back_on_first_step_is_noop(self, state):
        assert reduce(state, PreviousStep()).step == WizardStep.CUSTOMER_AND_DURATION

    def test_next_past_last_step_rejected(self, state, customer, start_date):
        state = ready_for_payment(state, customer, start_date)

        with pytest.raises(InvalidStep):
            reduce(state, NextStep())

    def test_reset_keeps_catalog(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        new_state = reduce(state, Reset())

        assert new_state.draft.customer is None
        assert new_state.draft.package_items == []
        assert new_state.packages == state.packages


class TestPackageItems:
    """Tests for package line items inside the wizard."""

    def test_selecting_package_snapshots_price(self, state, customer, start_date):
        """Choosing a package copies its price and vehicle type into the item."""
        state = with_package(state, customer, start_date, package_id="2")

        item = state.draft.package_items[0]
        assert item.unit_price == Decimal("1800")
        assert item.vehicle_type == "sedan"
        assert item.price == Decimal("1800")

    def test_duration_change_resets_quantity_and_reprices(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = reduce(state, UpdatePackageItem(0, "quantity", 3))

        state = reduce(state, SetMonthsDuration(3))

        item = state.draft.package_items[0]
        assert item.quantity == 1
        assert item.price == Decimal("3000")

    def test_discount_reprices(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = apply(
            state,
            UpdatePackageItem(0, "discount_type", DiscountType.PERCENTAGE),
            UpdatePackageItem(0, "discount_value", "10"),
        )

        assert state.draft.package_items[0].price == Decimal("900")

    def test_manual_slots_follow_required_count(self, state, customer, start_date):
        """In manual mode the schedule is sized to the required wash count."""
        state = with_package(state, customer, start_date)
        assert len(state.draft.wash_schedules) == 4

        state = reduce(state, SetMonthsDuration(2))

        assert len(state.draft.wash_schedules) == 8

    def test_unrelated_edit_keeps_manual_entries(self, state, customer, start_date):
        """Changing package notes does not wipe dates already entered."""
        state = with_package(state, customer, start_date)
        state = apply(
            state,
            UpdateWashSlot(0, "date", "2030-01-08"),
            UpdateWashSlot(0, "time_from", "09:00"),
            UpdateWashSlot(0, "time_to", "10:00"),
        )

        state = reduce(state, UpdatePackageItem(0, "notes", "Use foam"))

        slot = state.draft.wash_schedules[0]
        assert slot.date == date(2030, 1, 8)
        assert slot.time_from == "09:00"
        assert state.draft.package_items[0].notes == "Use foam"

    def test_remove_package(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        state = reduce(state, RemovePackageItem(0))

        assert state.draft.package_items == []
        assert state.total_washes == 0

    def test_unknown_field_rejected(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        with pytest.raises(ValueError):
            reduce(state, UpdatePackageItem(0, "price", "1"))


class TestAddonItems:
    """Tests for add-on line items inside the wizard."""

    def test_new_addon_covers_all_washes(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        state = apply(state, AddAddonItem(), UpdateAddonItem(0, "addon_id", "10"))

        item = state.draft.addon_items[0]
        assert item.applicable_wash_numbers == [1, 2, 3, 4]
        assert item.price == Decimal("400")

    def test_all_washes_follows_duration(self, state, customer, start_date):
        """All-wash add-ons re-sync when the required count changes."""
        state = with_package(state, customer, start_date)
        state = apply(state, AddAddonItem(), UpdateAddonItem(0, "addon_id", "11"))

        state = reduce(state, SetMonthsDuration(3))

        item = state.draft.addon_items[0]
        assert item.applicable_wash_numbers == list(range(1, 13))
        assert item.price == Decimal("600")

    def test_specific_washes(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = apply(
            state,
            AddAddonItem(),
            UpdateAddonItem(0, "addon_id", "10"),
            UpdateAddonItem(0, "application_type", ApplicationType.SPECIFIC_WASHES),
        )
        assert state.draft.addon_items[0].price == Decimal("0")

        state = reduce(state, UpdateAddonItem(0, "applicable_wash_numbers", [3, 1, 3]))

        item = state.draft.addon_items[0]
        assert item.applicable_wash_numbers == [1, 3]
        assert item.price == Decimal("200")


class TestGenerateSchedules:
    """Tests for rule-based generation through the wizard."""

    def test_generate_switches_to_rule_mode(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        state = apply(state, SetScheduleRule(ScheduleRule(weekdays=[1, 3])), GenerateSchedules())

        assert state.schedule_mode == ScheduleMode.RULE_BASED
        assert [s.date for s in state.draft.wash_schedules] == [
            date(2030, 1, 7), date(2030, 1, 9), date(2030, 1, 14), date(2030, 1, 16),
        ]
        assert state.warnings == []

    def test_shortfall_becomes_warning(self, state, customer, start_date):
        """A partial schedule is kept and the shortfall reported as a warning."""
        state = with_package(state, customer, start_date, package_id="2")

        state = apply(state, SetScheduleRule(ScheduleRule(weekdays=[1])), GenerateSchedules())

        assert len(state.draft.wash_schedules) == 5
        assert state.warnings == [
            "Only generated 5 out of 8 washes. "
            "Consider extending the duration or adjusting the rule."
        ]

    def test_rule_error_is_reported(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        state = apply(state, SetScheduleRule(ScheduleRule(weekdays=[])), GenerateSchedules())

        assert "schedule_rule" in state.errors
        assert state.schedule_mode == ScheduleMode.MANUAL

    def test_edit_marks_slot_manual(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = apply(state, SetScheduleRule(ScheduleRule(weekdays=[1, 3])), GenerateSchedules())

        state = reduce(state, UpdateWashSlot(1, "time_to", "12:00"))

        assert state.draft.wash_schedules[0].is_auto_generated is True
        assert state.draft.wash_schedules[1].is_auto_generated is False


class TestStepValidation:
    """Tests for validate_step()."""

    def test_step1_reports_every_missing_field(self, state):
        state.draft.months_duration = 0

        errors = validate_step(state, WizardStep.CUSTOMER_AND_DURATION)

        assert errors == {
            "customer": "Please select a customer",
            "vehicleType": "Please select vehicle type",
            "monthsDuration": "Please enter valid duration",
            "startDate": "Please select start date",
            "area": "Please enter service area",
        }

    @freeze_time("2030-01-10")
    def test_step1_rejects_past_start_for_new(self, state, customer):
        state = apply(state, SelectCustomer(customer), SetVehicleType("sedan"),
                      SetStartDate("2030-01-09"))

        errors = validate_step(state, WizardStep.CUSTOMER_AND_DURATION)

        assert errors == {"startDate": "Start date cannot be in the past"}

    def test_step2_requires_packages(self, state):
        errors = validate_step(state, WizardStep.PACKAGES)

        assert errors == {"packages": "Please add at least one package"}

    def test_step2_item_errors(self, state):
        state = apply(state, AddPackageItem(), UpdatePackageItem(0, "quantity", 0))

        errors = validate_step(state, WizardStep.PACKAGES)

        assert errors == {
            "package_0": "Please select a package",
            "quantity_0": "Quantity must be at least 1",
        }

    def test_step1_unparseable_duration_is_reported(self, state, customer, start_date):
        """Typed text in the duration field becomes a validation error."""
        state = with_package(state, customer, start_date)
        state = reduce(state, SetMonthsDuration("abc"))

        assert state.draft.months_duration == 0
        errors = validate_step(state, WizardStep.CUSTOMER_AND_DURATION)
        assert errors == {"monthsDuration": "Please enter valid duration"}

    def test_step2_unparseable_quantity_is_reported(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = reduce(state, UpdatePackageItem(0, "quantity", "x"))

        assert state.draft.package_items[0].quantity == 0
        errors = validate_step(state, WizardStep.PACKAGES)
        assert errors == {"quantity_0": "Quantity must be at least 1"}

    def test_step3_addons_optional(self, state):
        assert validate_step(state, WizardStep.ADDONS) == {}

    def test_step3_specific_washes_need_selection(self, state, customer, start_date):
        state = with_package(state, customer, start_date)
        state = apply(
            state,
            AddAddonItem(),
            UpdateAddonItem(0, "addon_id", "10"),
            UpdateAddonItem(0, "application_type", ApplicationType.SPECIFIC_WASHES),
        )

        errors = validate_step(state, WizardStep.ADDONS)

        assert errors == {"addon_wash_0": "Please select at least one wash for this addon"}

    def test_step4_checks_schedules(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        errors = validate_step(state, WizardStep.SCHEDULES)

        assert errors["date_0"] == "Required"

    @pytest.mark.parametrize("status", [PaymentStatus.PARTIAL, PaymentStatus.PAID])
    def test_step4_passes_when_schedules_locked(self, state, status):
        """Editing a subscription past 'pending' skips schedule validation."""
        state = replace(
            state,
            mode=WizardMode.EDIT,
            existing_payment_status=status,
        )
        state.draft.wash_schedules = [WashSlot(), WashSlot(date=date(2030, 1, 1))]

        assert validate_step(state, WizardStep.SCHEDULES) == {}

    def test_step5_requires_payment_method(self, state):
        errors = validate_step(state, WizardStep.PAYMENT_AND_SUMMARY)

        assert errors == {"paymentMethod": "Please select payment method"}

    def test_step5_passes_when_payment_locked(self, state):
        state = replace(state, mode=WizardMode.EDIT, existing_payment_status=PaymentStatus.PAID)

        assert validate_step(state, WizardStep.PAYMENT_AND_SUMMARY) == {}

    def test_unknown_step(self, state):
        with pytest.raises(InvalidStep):
            validate_step(state, 6)


class TestEditGating:
    """Tests for payment-status gating in edit mode."""

    @pytest.mark.parametrize("status,schedules,payment", [
        (PaymentStatus.PENDING, True, True),
        (PaymentStatus.PARTIAL, False, True),
        (PaymentStatus.PAID, False, False),
        (PaymentStatus.CANCELLED, False, False),
    ])
    def test_gates(self, state, status, schedules, payment):
        state = replace(state, mode=WizardMode.EDIT, existing_payment_status=status)

        assert can_edit_schedules(state) is schedules
        assert can_edit_payment(state) is payment

    def test_new_subscription_is_editable(self, state):
        assert can_edit_schedules(state)
        assert can_edit_payment(state)

    def test_locked_schedule_edits_blocked(self, state):
        state = replace(state, mode=WizardMode.EDIT, existing_payment_status=PaymentStatus.PAID)
        state.draft.wash_schedules = [WashSlot(date=date(2030, 1, 7))]

        new_state = reduce(state, UpdateWashSlot(0, "date", "2030-01-08"))

        assert new_state.draft.wash_schedules[0].date == date(2030, 1, 7)
        assert "schedules" in new_state.errors

    def test_locked_payment_edits_blocked(self, state):
        state = replace(state, mode=WizardMode.EDIT, existing_payment_status=PaymentStatus.PAID)

        new_state = reduce(state, SetPayment("method", PaymentMethod.CASH))

        assert new_state.draft.payment.method == ""
        assert "payment" in new_state.errors

    def test_partial_payment_still_editable(self, state):
        state = replace(state, mode=WizardMode.EDIT, existing_payment_status=PaymentStatus.PARTIAL)

        new_state = reduce(state, SetPayment("amount", "500"))

        assert new_state.draft.payment.amount == Decimal("500")


class TestTotalsProperty:

    def test_state_totals(self, state, customer, start_date):
        state = with_package(state, customer, start_date)

        totals = state.totals

        assert totals.packages_total == Decimal("1000")
        assert totals.tax == Decimal("180")
        assert totals.rounded_total == Decimal("1180")


class TestPackagesForVehicle:

    def test_filters_catalog_by_vehicle(self, state):
        state = reduce(state, SetVehicleType("SUV"))

        assert [p.id for p in state.packages_for_vehicle()] == ["3"]

    def test_no_vehicle_offers_everything(self, state):
        assert len(state.packages_for_vehicle()) == 3
