"""Custom exceptions for django-washplan."""


class WashplanError(Exception):
    """Base exception for washplan errors."""
    pass


class ScheduleRuleError(WashplanError):
    """Raised when a schedule rule cannot produce wash slots."""
    pass


class DraftCorrupted(WashplanError):
    """Raised when a stored draft cannot be decoded."""
    pass


class InvalidStep(WashplanError):
    """Raised when a wizard step number is outside the flow."""

    def __init__(self, step):
        self.step = step
        super().__init__(f"Unknown wizard step '{step}'")


class BackendError(WashplanError):
    """Raised when an external collaborator call fails."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class BackendLoadError(WashplanError):
    """Raised when the configured backend cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load backend '{path}': {reason}")


class PaymentNotAllowed(WashplanError):
    """Raised when payment fields are frozen for a subscription."""

    def __init__(self, payment_status: str):
        self.payment_status = payment_status
        super().__init__(
            f"Payments cannot be recorded while payment status is '{payment_status}'"
        )


class PaymentAmountError(WashplanError):
    """Raised when a payment amount is not positive or exceeds the balance."""
    pass
