"""Checkout services: card payments through Stripe and the wallet cart."""

from .pricing import card_total, to_minor_units, wallet_totals
from .stripe_checkout import create_card_checkout
from .wallet import build_wallet_cart, normalize_image_url

__all__ = [
    "card_total",
    "to_minor_units",
    "wallet_totals",
    "create_card_checkout",
    "build_wallet_cart",
    "normalize_image_url",
]
