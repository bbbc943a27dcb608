# Overview: Fixed category list for the storefront and custom-category handling.

from __future__ import annotations

from .validation import ValidationError

CUSTOM_CATEGORY = "Other (Custom)"

CATEGORIES = [
    "Sarees (Cotton)",
    "Sarees (Pattu)",
    "Sarees (Gadwal)",
    "Sarees (Narayanpet)",
    "Sarees (Ikkat)",
    "Sarees (Uppada)",
    "Sarees (Mangalgiri)",
    "Kurtis & Tops",
    "Dress Materials",
    "Lehengas",
    "Dupattas",
    "Salwar Suits",
    "Blouses",
    "Nighties",
    "Petticoats",
    "Shawls & Stoles",
    "Skirts & Ghagras",
    "Leggings",
    "Chudidars",
    "Gowns",
    "Langa Voni (Half Saree)",
    "Saree Falls & Accessories",
    "Others",
    CUSTOM_CATEGORY,
]


def resolve_category(category: str | None, custom_category: str | None, *, current: str | None = None) -> str:
    """
    Turn the category picker value into the stored category.

    "Other (Custom)" stores the free-text custom_category instead. Anything
    outside the fixed list is refused, except the item's current category so
    that editing an item with a custom category does not force a re-pick.
    """
    category = (category or "").strip()
    if not category:
        raise ValidationError("category is required")

    if category == CUSTOM_CATEGORY:
        custom = (custom_category or "").strip()
        if not custom:
            raise ValidationError("custom_category is required when category is 'Other (Custom)'")
        if len(custom) > 120:
            raise ValidationError("custom_category exceeds max length 120")
        return custom

    if category in CATEGORIES or (current is not None and category == current):
        return category

    raise ValidationError(f"Unknown category: {category}")
