class CheckoutError(Exception):
    """Base class for checkout flow failures."""


class EmptyCartError(CheckoutError):
    def __init__(self, message: str = "Your cart is empty."):
        super().__init__(message)


class CheckoutValidationError(CheckoutError):
    """Raised when the address step has invalid fields.

    ``errors`` maps field name to message, in form order, so the first key
    is the field the client should focus.
    """

    def __init__(self, errors: dict):
        self.errors = errors
        super().__init__("Please fix the highlighted fields")

    @property
    def first_invalid_field(self):
        return next(iter(self.errors), None)


class InvalidStepError(CheckoutError):
    pass


class SubmissionInProgressError(CheckoutError):
    def __init__(self, message: str = "Order is already being placed"):
        super().__init__(message)


class OrderPersistError(CheckoutError):
    def __init__(self, message: str = "Failed to place order. Please try again."):
        super().__init__(message)


class PromoCodeError(Exception):
    pass


class IdempotencyKeyConflictError(CheckoutError):
    def __init__(self, message: str = "This order key was already used by another checkout"):
        super().__init__(message)


class PromoRejectedError(CheckoutError):
    """The applied promo code stopped being valid before the order was placed."""
