"""Payment method definitions: supported rails, display names and aliases."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentMethodInfo:
    """Display and policy attributes of a payment rail."""

    name: str
    display_name: str
    requires_reference: bool  # a transaction reference must accompany the payment
    aliases: tuple[str, ...] = ()


PAYMENT_METHODS: dict[str, PaymentMethodInfo] = {
    "cash": PaymentMethodInfo(
        name="cash",
        display_name="Cash Payment",
        requires_reference=False,
    ),
    "vodacom_mpesa": PaymentMethodInfo(
        name="vodacom_mpesa",
        display_name="Vodacom M-Pesa",
        requires_reference=True,
        aliases=("vodacom m-pesa drc", "vodacom m-pesa"),
    ),
    "orange_money": PaymentMethodInfo(
        name="orange_money",
        display_name="Orange Money",
        requires_reference=True,
        aliases=("orange money",),
    ),
    "airtel_money": PaymentMethodInfo(
        name="airtel_money",
        display_name="Airtel Money",
        requires_reference=True,
        aliases=("airtel money drc", "airtel money"),
    ),
    "bank_transfer": PaymentMethodInfo(
        name="bank_transfer",
        display_name="Bank Transfer",
        requires_reference=True,
        aliases=("equity bcdc",),
    ),
    "tmb_bank": PaymentMethodInfo(
        name="tmb_bank",
        display_name="TMB Bank",
        requires_reference=True,
        aliases=("tmb bank",),
    ),
}

_ALIASES: dict[str, str] = {
    alias: info.name for info in PAYMENT_METHODS.values() for alias in (info.name, *info.aliases)
}


def normalize_method(method: str) -> str:
    """Canonical key for a stored or user-entered method name."""
    key = method.strip().lower()
    return _ALIASES.get(key, key)


def get_payment_method(method: str) -> PaymentMethodInfo:
    """Look up a payment method, formatting unknown ones from their name."""
    key = normalize_method(method)
    if key in PAYMENT_METHODS:
        return PAYMENT_METHODS[key]

    display_name = " ".join(word.capitalize() for word in re.split(r"[_\s-]+", method.strip()) if word)
    return PaymentMethodInfo(name=key, display_name=display_name or method, requires_reference=True)


def is_cash(method: str) -> bool:
    return normalize_method(method) == "cash"


def needs_verification(status: str) -> bool:
    """Whether staff still have to approve or reject a payment in ``status``.

    Cash collected at the front desk is recorded as completed and never
    lands here; cash declared by a guest does.
    """
    return status in ("pending_verification", "pending")
