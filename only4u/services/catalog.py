# only4u/services/catalog.py
from __future__ import annotations

from sqlalchemy.orm import selectinload

from only4u.models import CATEGORIES, STATUSES, ProductGroup, ProductVariant

ADMIN_SORT_KEYS = {
    "name": ProductGroup.name,
    "price": ProductGroup.price,
    "category": ProductGroup.category,
    "status": ProductGroup.status,
    "created_at": ProductGroup.created_at,
}


def normalize_category(value: str | None) -> str | None:
    """Lowercased category slug, or None when it is not one we sell."""
    slug = (value or "").strip().lower()
    return slug if slug in CATEGORIES else None


def _price(group: ProductGroup) -> str:
    return f"{group.price:.2f}"


def variant_dict(v: ProductVariant) -> dict:
    return {
        "id": v.id,
        "variant_group_id": v.variant_group_id,
        "color": v.color,
        "image_url": v.image_url,
        "hover_image_url": v.hover_or_main_url,
        "stock": v.stock,
    }


def group_dict(group: ProductGroup) -> dict:
    return {
        "variant_group_id": group.variant_group_id,
        "name": group.name,
        "price": _price(group),
        "description": group.description or "",
        "category": group.category,
        "status": group.status,
        "created_at": group.created_at.isoformat() if group.created_at else None,
        "variants": [variant_dict(v) for v in (group.variants or [])],
    }


def card_dict(group: ProductGroup) -> dict:
    """Storefront card: first colour gives the pictures."""
    first = group.variants[0]
    return {
        "variant_group_id": group.variant_group_id,
        "name": group.name,
        "price": _price(group),
        "image": first.image_url,
        "hover_image": first.hover_or_main_url,
        "category": group.category,
        "status": group.status,
        "description": group.description or "No description available",
        "variants": [{"id": v.id, "color": v.color, "stock": v.stock} for v in group.variants],
    }


def list_products(category: str | None = None, status: str | None = None) -> list[dict]:
    """Browsable groups, newest first. Groups without any variant are left out."""
    q = ProductGroup.query.options(selectinload(ProductGroup.variants))
    if category is not None:
        category = normalize_category(category)
        if category is None:
            return []
        q = q.filter(ProductGroup.category == category)
    if status is not None:
        if status not in STATUSES:
            return []
        q = q.filter(ProductGroup.status == status)
    groups = q.order_by(ProductGroup.created_at.desc(), ProductGroup.name.asc()).all()
    return [card_dict(g) for g in groups if g.is_browsable]


def list_groups_admin(sort_by: str | None = "name", sort_order: str | None = "asc") -> list[dict]:
    column = ADMIN_SORT_KEYS.get(sort_by or "name", ProductGroup.name)
    ordering = column.desc() if (sort_order or "").lower() == "desc" else column.asc()
    groups = (
        ProductGroup.query.options(selectinload(ProductGroup.variants))
        .order_by(ordering, ProductGroup.variant_group_id.asc())
        .all()
    )
    return [group_dict(g) for g in groups]


def get_group(group_id: str) -> dict | None:
    group = (
        ProductGroup.query.options(selectinload(ProductGroup.variants))
        .filter(ProductGroup.variant_group_id == group_id)
        .first()
    )
    return group_dict(group) if group else None


def get_product(variant_id: str) -> dict | None:
    """One colour merged with its group's attributes, plus every sibling colour."""
    variant = (
        ProductVariant.query.options(
            selectinload(ProductVariant.group).selectinload(ProductGroup.variants)
        )
        .filter(ProductVariant.id == variant_id)
        .first()
    )
    if variant is None:
        return None
    group = variant.group
    product = variant_dict(variant)
    product.update(
        {
            "name": group.name,
            "price": _price(group),
            "description": group.description or "",
            "category": group.category,
            "status": group.status,
        }
    )
    siblings = []
    for v in group.variants:
        item = variant_dict(v)
        item["status"] = group.status
        siblings.append(item)
    return {"product": product, "variants": siblings}
