"""
Module 'catalog' (feature-first): point d'entrée public.
Tiers d'abonnement statiques et recherches par id / price Stripe / produit.
"""

from .models import BILLING_CYCLES, PricingFeature, PricingTier, to_minor_units
from .repository import (
    PRICING_TIERS,
    UNKNOWN_PLAN_NAME,
    calculate_yearly_discount,
    excluded_features,
    get_popular_tier,
    get_tier_by_id,
    get_tier_by_price_id,
    get_tier_by_product_id,
    included_features,
    list_tiers,
    plan_name_for_price,
)

__all__ = [
    # models
    "BILLING_CYCLES",
    "PricingFeature",
    "PricingTier",
    "to_minor_units",
    # repository
    "PRICING_TIERS",
    "UNKNOWN_PLAN_NAME",
    "calculate_yearly_discount",
    "excluded_features",
    "get_popular_tier",
    "get_tier_by_id",
    "get_tier_by_price_id",
    "get_tier_by_product_id",
    "included_features",
    "list_tiers",
    "plan_name_for_price",
]
