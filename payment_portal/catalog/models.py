# module payment_portal.catalog.models
"""Modèles du catalogue d'abonnements (immuables, définis au démarrage)."""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

BillingCycle = Literal["monthly", "yearly"]
SupportLevel = Literal["email", "priority", "24/7"]
AnalyticsLevel = Literal["basic", "advanced", "custom"]

BILLING_CYCLES = ("monthly", "yearly")


def to_minor_units(amount: float) -> int:
    """Montant en unités mineures (centimes) pour Stripe."""
    return int(round(amount * 100))


class PricingFeature(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    included: bool
    limit: Optional[Union[int, str]] = None


class TierPrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly: float
    yearly: Optional[float] = None  # prix mensuel équivalent en facturation annuelle
    stripe_monthly_amount: int
    stripe_yearly_amount: Optional[int] = None


class StripePriceIds(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly: Optional[str] = None
    yearly: Optional[str] = None


class PricingTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    price: TierPrice
    features: List[PricingFeature]
    popular: bool = False
    stripe_price_id: StripePriceIds = StripePriceIds()
    stripe_product_id: Optional[str] = None
    max_patients: Union[int, Literal["unlimited"]]
    support_level: SupportLevel
    analytics: AnalyticsLevel
    api_access: bool
    custom_integrations: bool
    white_label: bool

    def price_id_for(self, cycle: str) -> Optional[str]:
        if cycle == "yearly":
            return self.stripe_price_id.yearly
        if cycle == "monthly":
            return self.stripe_price_id.monthly
        return None

    def price_ids(self) -> List[str]:
        return [p for p in (self.stripe_price_id.monthly, self.stripe_price_id.yearly) if p]
