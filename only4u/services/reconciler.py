# only4u/services/reconciler.py
"""
Diff the colour rows an admin submitted against the rows already stored for
a product group.

``reconcile`` is a plain set difference on variant ids; ``resolve_images``
then decides, per surviving row, which image URLs end up in the database.
Neither function touches the database or the image store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from only4u.errors import InvalidVariant


@dataclass
class VariantInput:
    id: str
    color: str
    stock: int
    image_url: str | None = None
    hover_image_url: str | None = None
    main_file: Any = None
    hover_file: Any = None

    @property
    def has_main_file(self) -> bool:
        return self.main_file is not None

    @property
    def has_hover_file(self) -> bool:
        return self.hover_file is not None


@dataclass
class ReconcilePlan:
    group_id: str
    to_insert: list[VariantInput] = field(default_factory=list)
    to_update: list[VariantInput] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)

    def action_for(self, variant_id: str) -> str | None:
        if any(v.id == variant_id for v in self.to_insert):
            return "insert"
        if any(v.id == variant_id for v in self.to_update):
            return "update"
        if variant_id in self.to_delete:
            return "delete"
        return None


@dataclass
class ResolvedVariant:
    id: str
    group_id: str
    color: str
    stock: int
    image_url: str
    hover_image_url: str
    position: int
    action: str  # "insert" | "update"

    def row(self) -> dict:
        return {
            "id": self.id,
            "variant_group_id": self.group_id,
            "color": self.color,
            "image_url": self.image_url,
            "hover_image_url": self.hover_image_url,
            "stock": self.stock,
            "position": self.position,
        }


def reconcile(group_id: str, desired_variants: Iterable[VariantInput], existing_variant_ids: Iterable[str]) -> ReconcilePlan:
    desired = list(desired_variants)
    existing = list(existing_variant_ids)
    existing_set = set(existing)
    desired_ids = {v.id for v in desired}

    plan = ReconcilePlan(group_id=group_id)
    for v in desired:
        if v.id in existing_set:
            plan.to_update.append(v)
        else:
            plan.to_insert.append(v)
    plan.to_delete = [vid for vid in existing if vid not in desired_ids]
    return plan


def resolve_images(
    plan: ReconcilePlan,
    desired_order: Iterable[VariantInput],
    uploaded: Mapping[tuple[str, str], str],
    previous: Mapping[str, tuple[str | None, str | None]] | None = None,
) -> list[ResolvedVariant]:
    """
    Pick the final image URLs for every inserted/updated variant.

    `uploaded` maps (variant_id, role) to the URL of a freshly stored file,
    `previous` maps variant_id to the (image_url, hover_image_url) already
    persisted. Raises InvalidVariant if any row ends up incomplete; nothing
    is returned partially.
    """
    previous = previous or {}
    resolved: list[ResolvedVariant] = []
    for position, v in enumerate(desired_order):
        action = plan.action_for(v.id)
        if action not in ("insert", "update"):
            continue

        if action == "update":
            prev_main, prev_hover = previous.get(v.id, (None, None))
        else:
            # new rows may point at images uploaded earlier through the batch endpoint
            prev_main, prev_hover = v.image_url, v.hover_image_url

        main_url = uploaded.get((v.id, "main")) or prev_main
        if (v.id, "hover") in uploaded:
            hover_url = uploaded[(v.id, "hover")]
        elif prev_hover and prev_hover != prev_main:
            hover_url = prev_hover
        else:
            hover_url = main_url

        color = (v.color or "").strip()
        if not color or not main_url or not isinstance(v.stock, int) or v.stock < 0:
            raise InvalidVariant(f"Variant {v.id} must have color, main image, and non-negative stock")

        resolved.append(
            ResolvedVariant(
                id=v.id,
                group_id=plan.group_id,
                color=color,
                stock=v.stock,
                image_url=main_url,
                hover_image_url=hover_url,
                position=position,
                action=action,
            )
        )
    return resolved
