"""Enumerations shared by the draft, pricing and wizard modules."""

from django.db import models


class VehicleType(models.TextChoices):
    HATCHBACK = 'hatchback', 'Hatchback'
    SEDAN = 'sedan', 'Sedan'
    SUV = 'suv', 'SUV'
    LUXURY = 'luxury', 'Luxury'


class DiscountType(models.TextChoices):
    FIXED = 'fixed', 'Fixed Amount'
    PERCENTAGE = 'percentage', 'Percentage'


class ApplicationType(models.TextChoices):
    ALL_WASHES = 'all_washes', 'All Washes'
    SPECIFIC_WASHES = 'specific_washes', 'Specific Washes'


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    UPI = 'upi', 'UPI'
    CARD = 'card', 'Card'
    BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PARTIAL = 'partial', 'Partially Paid'
    PAID = 'paid', 'Paid'
    CANCELLED = 'cancelled', 'Cancelled'


class ScheduleRuleType(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    INTERVAL = 'interval', 'Interval'


class ScheduleMode(models.TextChoices):
    MANUAL = 'manual', 'Manual'
    RULE_BASED = 'rule_based', 'Rule Based'


# Payment fields stay editable while the subscription is in one of these states
PAYMENT_EDITABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL)


class WizardMode(models.TextChoices):
    NEW = 'new', 'New Subscription'
    EDIT = 'edit', 'Edit Subscription'
