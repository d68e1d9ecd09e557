"""Configuration helpers for django-washplan.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    WASHPLAN_TAX_PERCENTAGE = Decimal('18')
    WASHPLAN_BACKEND = 'django_washplan.backends.http.HttpSubscriptionBackend'
    WASHPLAN_API_BASE_URL = 'https://backoffice.example.com/api'
"""

from decimal import Decimal

from django.conf import settings


DEFAULTS = {
    "TAX_PERCENTAGE": Decimal("18"),
    "DRAFT_EXPIRY_HOURS": 24,
    "DRAFT_KEY": "subscription_wizard_draft",
    "BACKEND": "django_washplan.backends.http.HttpSubscriptionBackend",
    "API_BASE_URL": "http://localhost:8000/api",
    "API_TOKEN": "",
    "API_TIMEOUT": 30.0,
    "SEARCH_DEBOUNCE_SECONDS": 0.3,
    "SEARCH_LIMIT": 20,
}


def get_setting(name: str, default=None):
    """Get a setting with WASHPLAN_ prefix, falling back to package defaults."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"WASHPLAN_{name}", default)


def get_tax_percentage() -> Decimal:
    """Flat tax rate applied to the subscription subtotal."""
    return Decimal(str(get_setting("TAX_PERCENTAGE")))


def get_draft_expiry_hours() -> int:
    return int(get_setting("DRAFT_EXPIRY_HOURS"))


def get_draft_key() -> str:
    return get_setting("DRAFT_KEY")


# =============================================================================
# DEFAULT SETTINGS REFERENCE
# =============================================================================

# WASHPLAN_TAX_PERCENTAGE = Decimal('18')        # Flat GST rate in percent
# WASHPLAN_DRAFT_EXPIRY_HOURS = 24               # Rolling draft lifetime
# WASHPLAN_DRAFT_KEY = 'subscription_wizard_draft'
# WASHPLAN_BACKEND = 'django_washplan.backends.http.HttpSubscriptionBackend'
# WASHPLAN_API_BASE_URL = 'http://localhost:8000/api'
# WASHPLAN_API_TOKEN = ''                        # Bearer token for the back-office API
# WASHPLAN_API_TIMEOUT = 30.0                    # Seconds
# WASHPLAN_SEARCH_DEBOUNCE_SECONDS = 0.3
# WASHPLAN_SEARCH_LIMIT = 20
