"""Unit tests for discount amount calculators."""

from decimal import Decimal
from unittest.mock import patch

from discounts.services.discount_amounts import (
    buy_one_get_one,
    fixed_amount,
    free_delivery,
    percentage,
)
from discounts.services.discount_amounts.factory import calculate_amount, get_amount_calculator
from discounts.services.discount_definition import DiscountType
from tests.conftest import make_coupon, make_promotion


class TestPercentageCalculator:
    def test_percentage_of_subtotal(self):
        """Test 10% of £30 is £3."""
        definition = make_promotion(percentage_rate=Decimal("10"))
        assert percentage.calculate(definition, Decimal("3000")) == Decimal("300")

    def test_cap_applies(self):
        """Test 50% off capped at £10 on £100 gives £10."""
        definition = make_coupon(percentage_rate=Decimal("50"), max_discount_cents=Decimal("1000"))
        assert percentage.calculate(definition, Decimal("10000")) == Decimal("1000")

    def test_cap_with_smaller_discount(self):
        """Test 20% off capped at £5 on £50 gives min(£10, £5)."""
        definition = make_coupon(percentage_rate=Decimal("20"), max_discount_cents=Decimal("500"))
        assert percentage.calculate(definition, Decimal("5000")) == Decimal("500")

    def test_cap_not_reached(self):
        """Test the uncapped amount is kept when below the cap."""
        definition = make_coupon(percentage_rate=Decimal("20"), max_discount_cents=Decimal("500"))
        assert percentage.calculate(definition, Decimal("1000")) == Decimal("200")

    def test_cap_never_exceeded(self):
        """Test a capped discount never exceeds its cap whatever the subtotal."""
        definition = make_coupon(percentage_rate=Decimal("50"), max_discount_cents=Decimal("1000"))
        for subtotal in ("0", "1999", "2000", "2001", "100000", "99999999"):
            assert percentage.calculate(definition, Decimal(subtotal)) <= Decimal("1000")

    def test_zero_cap_is_uncapped(self):
        """Test a cap of 0 leaves the discount uncapped."""
        definition = make_coupon(percentage_rate=Decimal("20"), max_discount_cents=Decimal("0"))
        assert percentage.calculate(definition, Decimal("5000")) == Decimal("1000")

    def test_no_rounding_of_fractional_cents(self):
        """Test fractional minor units are kept unrounded."""
        definition = make_promotion(percentage_rate=Decimal("15"))
        assert percentage.calculate(definition, Decimal("333")) == Decimal("49.95")

    def test_zero_subtotal(self):
        """Test zero subtotal yields zero."""
        definition = make_promotion()
        assert percentage.calculate(definition, Decimal("0")) == Decimal("0")


class TestFixedAmountCalculator:
    def test_fixed_amount(self):
        """Test a fixed discount below the subtotal is used as is."""
        definition = make_coupon(discount_type=DiscountType.FIXED, amount_cents=Decimal("1000"))
        assert fixed_amount.calculate(definition, Decimal("2500")) == Decimal("1000")

    def test_clamped_to_subtotal(self):
        """Test a fixed discount larger than the subtotal is clamped."""
        definition = make_coupon(discount_type=DiscountType.FIXED, amount_cents=Decimal("1000"))
        assert fixed_amount.calculate(definition, Decimal("600")) == Decimal("600")

    def test_unclamped_when_disabled(self):
        """Test the storefront's unclamped behaviour can be restored."""
        definition = make_coupon(discount_type=DiscountType.FIXED, amount_cents=Decimal("1000"))
        with patch(
            "discounts.services.discount_amounts.fixed_amount.settings"
        ) as mock_settings:
            mock_settings.CLAMP_FIXED_DISCOUNTS_TO_SUBTOTAL = False
            assert fixed_amount.calculate(definition, Decimal("600")) == Decimal("1000")

    def test_missing_amount_is_zero(self):
        """Test a fixed definition without amount yields zero."""
        definition = make_coupon(discount_type=DiscountType.FIXED, amount_cents=None)
        assert fixed_amount.calculate(definition, Decimal("600")) == Decimal("0")


class TestFreeDeliveryCalculator:
    def test_standard_fee_when_unknown(self):
        """Test the standard delivery fee is credited when no fee is known."""
        definition = make_promotion(discount_type=DiscountType.FREE_DELIVERY, percentage_rate=None)
        assert free_delivery.calculate(definition, Decimal("1000")) == Decimal("299")

    def test_independent_of_subtotal(self):
        """Test the credit is the same for any subtotal."""
        definition = make_promotion(discount_type=DiscountType.FREE_DELIVERY, percentage_rate=None)
        amounts = {free_delivery.calculate(definition, Decimal(s)) for s in ("0", "1500", "90000")}
        assert amounts == {Decimal("299")}

    def test_known_delivery_fee(self):
        """Test the concrete delivery fee is credited when known."""
        definition = make_promotion(discount_type=DiscountType.FREE_DELIVERY, percentage_rate=None)
        assert free_delivery.calculate(definition, Decimal("1000"), Decimal("450")) == Decimal("450")

    def test_collection_has_no_fee(self):
        """Test a zero delivery fee gives a zero credit."""
        definition = make_promotion(discount_type=DiscountType.FREE_DELIVERY, percentage_rate=None)
        assert free_delivery.calculate(definition, Decimal("1000"), Decimal("0")) == Decimal("0")


class TestBuyOneGetOneCalculator:
    def test_zero_credit(self):
        """Test BOGO contributes nothing without line-item data."""
        definition = make_promotion(discount_type=DiscountType.BUY_ONE_GET_ONE)
        assert buy_one_get_one.calculate(definition, Decimal("5000")) == Decimal("0")


class TestFactory:
    def test_every_type_has_a_calculator(self):
        """Test every discount type is registered."""
        for discount_type in DiscountType:
            assert get_amount_calculator(discount_type) is not None

    def test_dispatch(self):
        """Test calculate_amount dispatches on discount type."""
        pct = make_promotion(percentage_rate=Decimal("10"))
        fixed = make_promotion(discount_type=DiscountType.FIXED, amount_cents=Decimal("250"))
        assert calculate_amount(pct, Decimal("3000")) == Decimal("300")
        assert calculate_amount(fixed, Decimal("3000")) == Decimal("250")

    def test_deterministic(self):
        """Test repeated calls give identical results."""
        definition = make_coupon(percentage_rate=Decimal("12.5"))
        results = {calculate_amount(definition, Decimal("1234")) for _ in range(5)}
        assert results == {Decimal("154.25")}

    def test_never_negative(self):
        """Test a negative subtotal never yields a negative amount."""
        fixed = make_coupon(discount_type=DiscountType.FIXED, amount_cents=Decimal("500"))
        pct = make_coupon(percentage_rate=Decimal("10"))
        assert calculate_amount(fixed, Decimal("-100")) == Decimal("0")
        assert calculate_amount(pct, Decimal("-100")) == Decimal("0")
