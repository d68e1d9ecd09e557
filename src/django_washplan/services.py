"""Wizard service layer.

Ties the pure wizard reducer to the backend and the draft store.
Collaborator failures are caught here and stored on the state so the
wizard always stays interactive.

Functions:
- open_wizard(): Load the catalog and hydrate from a subscription or draft
- dispatch(): Apply an action, saving the draft on step changes
- close_wizard(): Save the draft and close
- discard_draft(): Delete the saved draft and start over
- submit(): Validate the last step and hand the subscription to the backend
- payment_balance(): Outstanding amount on a subscription
- record_payment(): Record a payment against an existing subscription
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from django.db import DatabaseError
from django.utils import timezone

from .backends.base import BaseSubscriptionBackend
from .choices import PAYMENT_EDITABLE_STATUSES, WizardMode
from .draft import build_submission_payload, draft_from_subscription
from .drafts import delete_draft, read_draft, write_draft
from .exceptions import BackendError, PaymentAmountError, PaymentNotAllowed
from .records import ExistingSubscription, to_decimal
from .wizard import (
    Reset,
    SelectCustomer,
    WizardState,
    WizardStep,
    recompute,
    reduce,
    validate_step,
)

logger = logging.getLogger(__name__)


def open_wizard(
    backend: BaseSubscriptionBackend,
    customer_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    draft_key: Optional[str] = None,
) -> WizardState:
    """
    Open the wizard.

    Args:
        backend: Catalog/customer/subscription collaborator
        customer_id: Customer to pre-select (new subscriptions)
        subscription_id: Existing subscription to edit; takes precedence
            over any saved draft
        draft_key: Draft storage slot (defaults to WASHPLAN_DRAFT_KEY)

    Returns:
        An open WizardState on step 1. Collaborator failures are reported
        through load_error rather than raised.
    """
    state = WizardState()

    try:
        state.packages = backend.fetch_packages()
        state.addons = backend.fetch_addons()
    except BackendError as e:
        logger.error(f"Failed to load catalog: {e}")
        state.load_error = "Failed to load data"

    if subscription_id:
        state.mode = WizardMode.EDIT
        state.subscription_id = str(subscription_id)
        try:
            subscription = backend.fetch_subscription(subscription_id)
        except BackendError as e:
            logger.error(f"Failed to load subscription {subscription_id}: {e}")
            state.load_error = "Failed to load subscription"
            return state

        state.existing_payment_status = subscription.payment_status
        state.draft = draft_from_subscription(subscription, state.packages)
        logger.info(
            f"Editing subscription {subscription_id} "
            f"(payment status {subscription.payment_status})"
        )
        return recompute(state)

    try:
        draft = read_draft(draft_key)
    except DatabaseError as e:
        logger.warning(f"Could not read saved draft: {e}")
        draft = None
    if draft is not None:
        logger.info("Resuming saved subscription draft")
        state.draft = draft

    if customer_id:
        try:
            customer = backend.fetch_customer(customer_id)
        except BackendError as e:
            logger.error(f"Failed to load customer {customer_id}: {e}")
            state.load_error = "Failed to load data"
        else:
            return reduce(state, SelectCustomer(customer))

    return recompute(state)


def _save(state: WizardState, draft_key: Optional[str]) -> None:
    """Best-effort draft save; never raises."""
    if state.is_edit:
        return
    try:
        write_draft(state.draft, key=draft_key)
    except DatabaseError as e:
        logger.warning(f"Could not save subscription draft: {e}")


def dispatch(state: WizardState, action, draft_key: Optional[str] = None) -> WizardState:
    """Apply an action; a step change in new mode also saves the draft."""
    new_state = reduce(state, action)
    if new_state.step != state.step:
        _save(new_state, draft_key)
    return new_state


def close_wizard(state: WizardState, draft_key: Optional[str] = None) -> WizardState:
    _save(state, draft_key)
    return replace(state, is_open=False)


def discard_draft(state: WizardState, draft_key: Optional[str] = None) -> WizardState:
    """Delete the saved draft and return a fresh state with the same catalog."""
    delete_draft(draft_key)
    return reduce(state, Reset())


def submit(
    state: WizardState,
    backend: BaseSubscriptionBackend,
    draft_key: Optional[str] = None,
) -> WizardState:
    """
    Submit the wizard from the payment & summary step.

    Returns:
        On success, a reset and closed state with the saved draft deleted.
        On validation failure, the same step with errors set.
        On backend failure, the same step with submit_error set and the
        draft kept for retry.
    """
    if state.step != WizardStep.PAYMENT_AND_SUMMARY:
        raise ValueError("Subscriptions can only be submitted from the last step")

    errors = validate_step(state, WizardStep.PAYMENT_AND_SUMMARY)
    if errors:
        return replace(state, errors=errors)

    payload = build_submission_payload(state.draft)
    try:
        result = backend.submit_subscription(payload)
    except BackendError as e:
        logger.error(f"Subscription submission failed: {e}")
        return replace(state, submit_error=str(e))

    if not result.success:
        return replace(state, submit_error=result.error or "Failed to create subscription")

    logger.info(f"Created subscription {result.subscription_id}")
    delete_draft(draft_key)
    closed = reduce(state, Reset())
    closed.is_open = False
    return closed


def payment_balance(total: Decimal, paid: Optional[Decimal]) -> Decimal:
    """Outstanding amount: total minus what has been paid, never negative."""
    return max(Decimal("0"), to_decimal(total) - to_decimal(paid))


def record_payment(
    subscription: ExistingSubscription,
    amount,
    method: str,
    backend: BaseSubscriptionBackend,
    payment_date=None,
) -> dict:
    """
    Record a payment against an existing subscription.

    Args:
        subscription: The subscription being paid
        amount: Payment amount (must not exceed the outstanding balance)
        method: Payment method
        backend: Collaborator that records the payment
        payment_date: Defaults to today

    Returns:
        The backend's response

    Raises:
        PaymentNotAllowed: If payment status is not pending or partial
        PaymentAmountError: If amount is not positive or exceeds the balance
        ValueError: If method is empty
        BackendError: If the backend call fails
    """
    if subscription.payment_status not in PAYMENT_EDITABLE_STATUSES:
        raise PaymentNotAllowed(subscription.payment_status)
    if not method:
        raise ValueError("Please select payment method")

    amount = to_decimal(amount)
    if amount <= 0:
        raise PaymentAmountError("Payment amount must be greater than zero")

    balance = payment_balance(subscription.subscription_amount, subscription.payment_amount)
    if amount > balance:
        raise PaymentAmountError(f"Payment amount cannot exceed balance of {balance}")

    return backend.record_payment(
        subscription.id,
        amount,
        payment_date or timezone.localdate(),
        method,
    )
