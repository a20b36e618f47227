"""Exceptions raised by the payment workflow and webhook reconciliation."""


class PaymentError(Exception):
    """Base class for payment errors."""
    pass


class GatewayError(PaymentError):
    """The payment gateway failed, timed out, or answered with an unusable payload."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class OrderNotFound(PaymentError):
    """No order matches the lookup key."""
    pass


class NotificationDispatchError(PaymentError):
    """A post-payment notification could not be handed to the task queue."""
    pass


class ConcurrentUpdateError(PaymentError):
    """An order kept changing under the reconciliation and could not be written."""
    pass
