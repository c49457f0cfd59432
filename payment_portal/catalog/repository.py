"""
Catalogue statique des offres d'abonnement.
Source unique de vérité pour la correspondance tier <-> price Stripe.
"""
from typing import Dict, List, Optional

from .models import PricingFeature, PricingTier, StripePriceIds, TierPrice, to_minor_units

TIER_BASIC = "basic"
TIER_PROFESSIONAL = "professional"
TIER_ENTERPRISE = "enterprise"

UNKNOWN_PLAN_NAME = "Unknown Plan"

PRICING_TIERS: List[PricingTier] = [
    PricingTier(
        id=TIER_BASIC,
        name="Basic",
        description="Perfect for small practices getting started with digital patient management",
        price=TierPrice(
            monthly=29,
            yearly=24,
            stripe_monthly_amount=to_minor_units(29),
            stripe_yearly_amount=to_minor_units(288),
        ),
        max_patients=100,
        support_level="email",
        analytics="basic",
        api_access=False,
        custom_integrations=False,
        white_label=False,
        features=[
            PricingFeature(name="Up to 100 patients", description="Store and manage up to 100 patient records", included=True, limit=100),
            PricingFeature(name="Basic reporting", description="Essential reports and analytics for your practice", included=True),
            PricingFeature(name="Email support", description="Get help via email during business hours", included=True),
            PricingFeature(name="Secure data storage", description="HIPAA-compliant cloud storage for all patient data", included=True),
            PricingFeature(name="Mobile app access", description="Access your data on iOS and Android devices", included=True),
            PricingFeature(name="API access", description="Programmatic access to your data", included=False),
            PricingFeature(name="Advanced analytics", description="Detailed insights and custom reports", included=False),
            PricingFeature(name="Priority support", description="Fast-track support with shorter response times", included=False),
        ],
        stripe_price_id=StripePriceIds(monthly="price_1RsbiV3knPyAFyt5jhMDdEUI"),
        stripe_product_id="prod_basic",
    ),
    PricingTier(
        id=TIER_PROFESSIONAL,
        name="Professional",
        description="Ideal for growing practices that need advanced features and analytics",
        price=TierPrice(
            monthly=79,
            yearly=65,
            stripe_monthly_amount=to_minor_units(79),
            stripe_yearly_amount=to_minor_units(780),
        ),
        max_patients=1000,
        support_level="priority",
        analytics="advanced",
        api_access=True,
        custom_integrations=False,
        white_label=False,
        popular=True,
        features=[
            PricingFeature(name="Up to 1,000 patients", description="Store and manage up to 1,000 patient records", included=True, limit=1000),
            PricingFeature(name="Advanced analytics", description="Detailed insights, custom reports, and data visualization", included=True),
            PricingFeature(name="Priority support", description="Fast-track support with 24-hour response time", included=True),
            PricingFeature(name="API access", description="Full REST API access for integrations", included=True),
            PricingFeature(name="Secure data storage", description="HIPAA-compliant cloud storage for all patient data", included=True),
            PricingFeature(name="Mobile app access", description="Access your data on iOS and Android devices", included=True),
            PricingFeature(name="Basic reporting", description="All basic reports included", included=True),
            PricingFeature(name="Custom integrations", description="Integrate with your existing practice management software", included=False),
            PricingFeature(name="White-label options", description="Customize the platform with your branding", included=False),
        ],
        stripe_price_id=StripePriceIds(monthly="price_1Rsbj73knPyAFyt5qcAlh8Lw"),
        stripe_product_id="prod_professional",
    ),
    PricingTier(
        id=TIER_ENTERPRISE,
        name="Enterprise",
        description="Complete solution for large practices and healthcare organizations",
        price=TierPrice(
            monthly=199,
            yearly=165,
            stripe_monthly_amount=to_minor_units(199),
            stripe_yearly_amount=to_minor_units(1980),
        ),
        max_patients="unlimited",
        support_level="24/7",
        analytics="custom",
        api_access=True,
        custom_integrations=True,
        white_label=True,
        features=[
            PricingFeature(name="Unlimited patients", description="No limits on the number of patient records", included=True, limit="unlimited"),
            PricingFeature(name="Custom integrations", description="Seamlessly integrate with your existing systems", included=True),
            PricingFeature(name="24/7 support", description="Round-the-clock support with dedicated account manager", included=True),
            PricingFeature(name="White-label options", description="Fully customize the platform with your branding", included=True),
            PricingFeature(name="Advanced analytics", description="Custom dashboards and enterprise-grade reporting", included=True),
            PricingFeature(name="API access", description="Full REST API access with higher rate limits", included=True),
            PricingFeature(name="Secure data storage", description="HIPAA-compliant cloud storage with advanced security", included=True),
            PricingFeature(name="Mobile app access", description="White-labeled mobile apps for your organization", included=True),
            PricingFeature(name="Basic reporting", description="All basic and advanced reports included", included=True),
            PricingFeature(name="SLA guarantee", description="99.9% uptime guarantee with service level agreement", included=True),
            PricingFeature(name="Data migration", description="Free data migration from your existing systems", included=True),
        ],
        stripe_price_id=StripePriceIds(monthly="price_1RsbjW3knPyAFyt5uFXrBBw1"),
        stripe_product_id="prod_enterprise",
    ),
]


def _index_by_price_id(tiers: List[PricingTier]) -> Dict[str, PricingTier]:
    """
    Construit l'index price_id -> tier.
    Un price_id partagé par deux tiers rendrait la recherche inverse ambiguë: on refuse au chargement.
    """
    index: Dict[str, PricingTier] = {}
    for tier in tiers:
        for price_id in tier.price_ids():
            if price_id in index:
                raise ValueError(f"price id {price_id} is used by both {index[price_id].id} and {tier.id}")
            index[price_id] = tier
    return index


_TIERS_BY_ID: Dict[str, PricingTier] = {t.id: t for t in PRICING_TIERS}
_TIERS_BY_PRICE_ID: Dict[str, PricingTier] = _index_by_price_id(PRICING_TIERS)


def list_tiers() -> List[PricingTier]:
    return list(PRICING_TIERS)


def get_tier_by_id(tier_id: str) -> Optional[PricingTier]:
    return _TIERS_BY_ID.get(tier_id)


def get_tier_by_price_id(price_id: str) -> Optional[PricingTier]:
    return _TIERS_BY_PRICE_ID.get(price_id)


def get_tier_by_product_id(product_id: str) -> Optional[PricingTier]:
    return next((t for t in PRICING_TIERS if t.stripe_product_id == product_id), None)


def get_popular_tier() -> Optional[PricingTier]:
    return next((t for t in PRICING_TIERS if t.popular), None)


def plan_name_for_price(price_id: Optional[str]) -> str:
    tier = get_tier_by_price_id(price_id) if price_id else None
    return tier.name if tier else UNKNOWN_PLAN_NAME


def calculate_yearly_discount(tier: PricingTier) -> int:
    """Remise annuelle en pourcentage entier (0 si pas de prix annuel)."""
    if not tier.price.yearly:
        return 0
    monthly_total = tier.price.monthly * 12
    yearly_total = tier.price.yearly * 12
    return round((monthly_total - yearly_total) / monthly_total * 100)


def included_features(tier: PricingTier) -> List[PricingFeature]:
    return [f for f in tier.features if f.included]


def excluded_features(tier: PricingTier) -> List[PricingFeature]:
    return [f for f in tier.features if not f.included]
