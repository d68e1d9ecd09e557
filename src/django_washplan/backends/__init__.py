"""Subscription backends.

The active backend is configured with WASHPLAN_BACKEND (a dotted path).
"""

from django.utils.module_loading import import_string

from ..conf import get_setting
from ..exceptions import BackendLoadError
from .base import BaseSubscriptionBackend, SubmitResult


def get_backend(path: str = None, **kwargs) -> BaseSubscriptionBackend:
    """
    Instantiate the configured subscription backend.

    Args:
        path: Dotted path overriding WASHPLAN_BACKEND
        **kwargs: Passed to the backend constructor

    Raises:
        BackendLoadError: If the path cannot be imported or is not a backend
    """
    path = path or get_setting("BACKEND")
    try:
        backend_class = import_string(path)
    except ImportError as e:
        raise BackendLoadError(path, str(e))

    if not (isinstance(backend_class, type) and issubclass(backend_class, BaseSubscriptionBackend)):
        raise BackendLoadError(path, "not a BaseSubscriptionBackend subclass")
    return backend_class(**kwargs)


__all__ = ["BaseSubscriptionBackend", "SubmitResult", "get_backend"]
