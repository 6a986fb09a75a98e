"""
Tests for Stripe checkout sessions and unlocks.
"""

import unittest
from unittest.mock import Mock, patch

import stripe

from pipassist.exceptions import ConfigurationError, PaymentError
from pipassist.payment import StripeCheckout, locale_for, price_for
from pipassist.storage import InMemoryStore, UnlockRegistry


class TestPricing(unittest.TestCase):
    """Test cases for price and locale helpers."""

    def test_price_for_known_and_default(self):
        self.assertEqual(price_for("pip"), 29.99)
        self.assertEqual(price_for("form_checker"), 9.99)
        self.assertEqual(price_for("uc"), 14.99)
        self.assertEqual(price_for("uc", {"uc": 5.0, "default": 1.0}), 5.0)

    def test_locale_for(self):
        self.assertEqual(locale_for("fa"), "auto")
        self.assertEqual(locale_for("en"), "en")
        self.assertEqual(locale_for("uk"), "en")


@patch("pipassist.payment.stripe_checkout.stripe.checkout.Session")
class TestStripeCheckout(unittest.TestCase):
    """Test cases for StripeCheckout."""

    def setUp(self):
        self.registry = UnlockRegistry(InMemoryStore())
        self.checkout = StripeCheckout(
            self.registry, app_url="https://pipassist.example/", api_key="sk_test_123"
        )

    def test_create_session(self, mock_session):
        mock_session.create.return_value = Mock(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")

        result = self.checkout.create_session("pip", lang="fa")

        self.assertEqual(
            result, {"session_id": "cs_test_1", "checkout_url": "https://checkout.stripe.com/c/cs_test_1"}
        )
        kwargs = mock_session.create.call_args.kwargs
        self.assertEqual(kwargs["api_key"], "sk_test_123")
        self.assertEqual(kwargs["mode"], "payment")
        self.assertEqual(kwargs["locale"], "auto")
        self.assertEqual(kwargs["metadata"], {"module_id": "pip"})
        self.assertEqual(kwargs["line_items"][0]["price_data"]["unit_amount"], 2999)
        self.assertEqual(kwargs["line_items"][0]["price_data"]["currency"], "gbp")
        self.assertEqual(
            kwargs["success_url"],
            "https://pipassist.example/success?session_id={CHECKOUT_SESSION_ID}&module=pip",
        )
        self.assertEqual(kwargs["cancel_url"], "https://pipassist.example/cancel")

    def test_create_session_stripe_error(self, mock_session):
        mock_session.create.side_effect = stripe.StripeError("card declined")

        with self.assertRaises(PaymentError):
            self.checkout.create_session("pip")

    def test_missing_api_key(self, mock_session):
        with patch.dict("os.environ", {}, clear=True):
            checkout = StripeCheckout(self.registry)

        with self.assertRaises(ConfigurationError):
            checkout.create_session("pip")
        mock_session.create.assert_not_called()

    def test_api_key_from_environment(self, mock_session):
        with patch.dict("os.environ", {"STRIPE_SECRET_KEY": " sk_env "}):
            checkout = StripeCheckout(self.registry)
        self.assertEqual(checkout.api_key, "sk_env")

    def test_paid_session_unlocks_module(self, mock_session):
        mock_session.retrieve.return_value = Mock(payment_status="paid", metadata={"module_id": "form_checker"})

        self.assertTrue(self.checkout.handle_return("form_checker", session_id="cs_test_1"))

        mock_session.retrieve.assert_called_once_with("cs_test_1", api_key="sk_test_123")
        self.assertTrue(self.registry.is_unlocked("form_checker"))
        self.assertEqual(self.registry.uses_left("form_checker"), 5)

    def test_cancelled_checkout_changes_nothing(self, mock_session):
        self.assertFalse(self.checkout.handle_return("pip", cancelled=True))
        mock_session.retrieve.assert_not_called()
        self.assertFalse(self.registry.is_unlocked("pip"))

    def test_unpaid_session_rejected(self, mock_session):
        mock_session.retrieve.return_value = Mock(payment_status="unpaid", metadata={"module_id": "pip"})

        with self.assertRaises(PaymentError):
            self.checkout.handle_return("pip", session_id="cs_test_1")
        self.assertFalse(self.registry.is_unlocked("pip"))

    def test_session_for_other_module_rejected(self, mock_session):
        mock_session.retrieve.return_value = Mock(payment_status="paid", metadata={"module_id": "uc"})

        with self.assertRaises(PaymentError):
            self.checkout.handle_return("pip", session_id="cs_test_1")
        self.assertFalse(self.registry.is_unlocked("pip"))

    def test_missing_session_id(self, mock_session):
        with self.assertRaises(PaymentError):
            self.checkout.handle_return("pip")

    def test_retrieve_error(self, mock_session):
        mock_session.retrieve.side_effect = stripe.StripeError("no such session")

        with self.assertRaises(PaymentError):
            self.checkout.handle_return("pip", session_id="cs_missing")
