"""django-washplan: Car-wash subscription pricing and wash-schedule engine.

Provides:
- Time-slot generation for bookable service windows
- Itemized pricing for packages and add-ons (discounts, flat tax, rounding)
- Wash-schedule generation from manual entry or a recurrence rule
- A five-step subscription wizard as a pure reducer
- Durable wizard drafts with rolling expiry

Usage:
    INSTALLED_APPS = [
        ...
        'django_washplan',
    ]

    WASHPLAN_BACKEND = 'django_washplan.backends.http.HttpSubscriptionBackend'
    WASHPLAN_API_BASE_URL = 'https://backoffice.example.com/api'

See conf.py for all configuration options.
"""

__version__ = "0.1.0"
