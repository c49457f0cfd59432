"""
Lecture tolérante des objets Stripe.
Les champs "expandables" valent soit un identifiant (str), soit l'objet développé;
les objets Stripe se lisent comme des dicts, les tests passent de simples dicts.
"""
from typing import Any, Optional


def field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None or isinstance(obj, str):
        return default
    if hasattr(obj, "keys"):
        # StripeObject / dict: jamais de repli sur les méthodes (items, values...)
        try:
            value = obj[name]
        except (KeyError, TypeError):
            value = None
    else:
        value = getattr(obj, name, None)
    return default if value is None else value


def object_id(obj: Any) -> Optional[str]:
    """Identifiant d'un champ expandable (str brut ou objet développé)."""
    if obj is None:
        return None
    if isinstance(obj, str):
        return obj
    return field(obj, "id")


def expanded(obj: Any) -> Any:
    """Retourne l'objet s'il a été développé, None si on n'a qu'un identifiant."""
    if obj is None or isinstance(obj, str):
        return None
    return obj


def list_data(obj: Any) -> list:
    """Contenu `data` d'une liste Stripe (ListObject ou dict)."""
    return list(field(obj, "data", []) or [])
