from typing import Any, Dict

from fastapi import APIRouter

from payment_portal.errors import not_found
from payment_portal.catalog import repository as catalog
from payment_portal.catalog.models import PricingTier

router = APIRouter(prefix="/api/v1/catalog", tags=["Catalog API"])


def _tier_payload(tier: PricingTier) -> Dict[str, Any]:
    data = tier.model_dump()
    data["yearly_discount"] = catalog.calculate_yearly_discount(tier)
    return data


# module payment_portal.catalog.views
@router.get("/tiers")
def list_pricing_tiers() -> Dict[str, Any]:
    """
    Liste des offres pour la page de tarifs.
    - Ajoute la remise annuelle calculée (en %) à chaque tier.
    """
    return {"success": True, "tiers": [_tier_payload(t) for t in catalog.list_tiers()]}


@router.get("/tiers/{tier_id}")
def get_pricing_tier(tier_id: str) -> Dict[str, Any]:
    tier = catalog.get_tier_by_id(tier_id)
    if not tier:
        raise not_found(f"Unknown pricing tier: {tier_id}")
    return {"success": True, "tier": _tier_payload(tier)}
