"""
Stripe hosted checkout for paid modules.
Creates one-off payment sessions and records unlocks when the user returns.
"""

import logging
import os
from typing import Any, Dict, Optional

import stripe

from pipassist.exceptions import ConfigurationError, PaymentError
from pipassist.interfaces import CheckoutInterface
from pipassist.storage.unlock_registry import UnlockRegistry

DEFAULT_PRICES = {"pip": 29.99, "form_checker": 9.99, "default": 14.99}

PRODUCT_NAMES = {
    "pip": "PIP Assist - PIP Form",
    "form_checker": "PIP Assist - Form Checker",
}


def price_for(module_id: str, prices: Optional[Dict[str, float]] = None) -> float:
    prices = prices or DEFAULT_PRICES
    return prices.get(module_id, prices.get("default", DEFAULT_PRICES["default"]))


def locale_for(lang: str) -> str:
    """Checkout page locale. Stripe has no Farsi page, so it picks one itself."""
    return "auto" if lang == "fa" else "en"


class StripeCheckout(CheckoutInterface):
    """Stripe Checkout sessions for module unlocks."""

    def __init__(
        self,
        registry: UnlockRegistry,
        app_url: str = "http://localhost:3000",
        currency: str = "gbp",
        prices: Optional[Dict[str, float]] = None,
        api_key: Optional[str] = None,
    ):
        self.registry = registry
        self.app_url = app_url.rstrip("/")
        self.currency = currency
        self.prices = prices or DEFAULT_PRICES
        self.api_key = (api_key or os.getenv("STRIPE_SECRET_KEY") or "").strip()
        self.logger = logging.getLogger(__name__)

    def create_session(self, module_id: str, lang: str = "en") -> Dict[str, Any]:
        """Create a checkout session and return its id and hosted URL."""
        self._ensure_api_key()
        price = price_for(module_id, self.prices)

        session_params = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": PRODUCT_NAMES.get(module_id, f"PIP Assist - {module_id}"),
                            "description": f"One-time payment to unlock the {module_id} assistant.",
                        },
                        "unit_amount": int(round(price * 100)),
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": (
                f"{self.app_url}/success?session_id={{CHECKOUT_SESSION_ID}}&module={module_id}"
            ),
            "cancel_url": f"{self.app_url}/cancel",
            "locale": locale_for(lang),
            "metadata": {"module_id": module_id},
        }

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **session_params)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe checkout error for module {module_id}: {e}")
            raise PaymentError("Failed to create checkout session", str(e))

        self.logger.info(f"Checkout session created for module {module_id}: {session.id}")
        return {"session_id": session.id, "checkout_url": session.url}

    def handle_return(
        self, module_id: str, session_id: Optional[str] = None, cancelled: bool = False
    ) -> bool:
        """Record the unlock for a paid session. Cancellation changes nothing."""
        if cancelled:
            self.logger.info(f"Checkout for module {module_id} was cancelled")
            return False

        if not session_id:
            raise PaymentError("Missing checkout session id")

        self._ensure_api_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.StripeError as e:
            self.logger.error(f"Could not retrieve checkout session {session_id}: {e}")
            raise PaymentError("Failed to verify checkout session", str(e))

        if getattr(session, "payment_status", None) != "paid":
            raise PaymentError(
                "Checkout session is not paid",
                f"payment_status={getattr(session, 'payment_status', None)}",
            )

        metadata = dict(getattr(session, "metadata", None) or {})
        paid_module = metadata.get("module_id")
        if paid_module and paid_module != module_id:
            raise PaymentError(
                "Checkout session belongs to another module",
                f"session is for '{paid_module}', not '{module_id}'",
            )

        self.registry.unlock(module_id)
        return True

    def _ensure_api_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                "Stripe secret key is not set", "Export STRIPE_SECRET_KEY before checking out"
            )
