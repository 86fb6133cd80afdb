"""Exceptions raised by the discount engine's infrastructure code.

Eligibility and code application failures are not exceptions: they are
returned as values (see ``EligibilityResult`` and ``ApplyCodeResult``).
"""


class DiscountEngineError(Exception):
    """Base class for discount engine errors."""


class CatalogUnavailableError(DiscountEngineError):
    """The coupon/promotion catalog could not be reached or parsed."""


class CheckoutSessionNotFound(DiscountEngineError):
    """No checkout session is registered under the given id."""
