"""Pytest configuration for django-washplan tests."""
from datetime import date
from decimal import Decimal

import django
import pytest
from django.conf import settings


def pytest_configure():
    """Configure Django settings for pytest."""
    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY="test-secret-key-for-washplan",
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'django.contrib.auth',
                'django_washplan',
            ],
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='UTC',
            WASHPLAN_BACKEND='django_washplan.backends.memory.InMemorySubscriptionBackend',
            WASHPLAN_TAX_PERCENTAGE=Decimal('18'),
        )
    django.setup()


@pytest.fixture
def packages():
    from django_washplan.records import Package

    return [
        Package(id="1", name="Basic Sedan", vehicle_type="sedan",
                max_washes_per_month=4, subscription_price=Decimal("1000")),
        Package(id="2", name="Premium Sedan", vehicle_type="sedan",
                max_washes_per_month=8, subscription_price=Decimal("1800")),
        Package(id="3", name="SUV Shine", vehicle_type="suv",
                max_washes_per_month=4, subscription_price=Decimal("1500")),
    ]


@pytest.fixture
def addons():
    from django_washplan.records import Addon

    return [
        Addon(id="10", name="Interior Vacuum", unit_price=Decimal("100")),
        Addon(id="11", name="Tyre Polish", unit_price=Decimal("50")),
    ]


@pytest.fixture
def customer():
    from django_washplan.records import Customer

    return Customer(id="42", name="Asha Rao", phone="9876543210",
                    area="Indiranagar", map_url="https://maps.example.com/asha")


@pytest.fixture
def backend(packages, addons, customer):
    from django_washplan.backends.memory import InMemorySubscriptionBackend
    from django_washplan.records import Customer

    return InMemorySubscriptionBackend(
        packages=packages,
        addons=addons,
        customers=[customer, Customer(id="43", name="Ravi Kumar", phone="9123456780")],
    )


@pytest.fixture
def state(packages, addons):
    """An empty new-subscription wizard with the catalog loaded."""
    from django_washplan.wizard import WizardState

    return WizardState(packages=list(packages), addons=list(addons))


@pytest.fixture
def start_date():
    return date(2030, 1, 7)
