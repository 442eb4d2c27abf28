"""Tests for the payment method registry."""

import pytest

from staydesk.payments.methods import (
    PAYMENT_METHODS,
    get_payment_method,
    is_cash,
    needs_verification,
    normalize_method,
)


class TestPaymentMethods:
    def test_only_cash_skips_reference(self):
        no_reference = [name for name, info in PAYMENT_METHODS.items() if not info.requires_reference]
        assert no_reference == ["cash"]

    def test_cash_display_name(self):
        assert get_payment_method("cash").display_name == "Cash Payment"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Vodacom M-Pesa DRC", "vodacom_mpesa"),
            ("  Orange Money ", "orange_money"),
            ("Equity BCDC", "bank_transfer"),
            ("CASH", "cash"),
            ("tmb_bank", "tmb_bank"),
        ],
    )
    def test_normalize_aliases(self, raw, expected):
        assert normalize_method(raw) == expected

    def test_unknown_method_is_formatted(self):
        info = get_payment_method("pepele_mobile")
        assert info.display_name == "Pepele Mobile"
        assert info.requires_reference is True

    def test_is_cash(self):
        assert is_cash(" Cash ")
        assert not is_cash("airtel_money")

    @pytest.mark.parametrize(
        "status, expected",
        [("pending_verification", True), ("pending", True), ("completed", False), ("verified", False)],
    )
    def test_needs_verification(self, status, expected):
        assert needs_verification(status) is expected
