"""
Payment module for PIP Assist - hosted checkout and module unlocks.
"""

from .stripe_checkout import StripeCheckout, price_for, locale_for

__all__ = ['StripeCheckout', 'price_for', 'locale_for']
