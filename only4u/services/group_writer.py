# only4u/services/group_writer.py
from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError

from only4u.errors import (
    DuplicateName,
    GroupNotFound,
    PersistenceError,
    SchemaError,
    ValidationError,
)
from only4u.extensions import db
from only4u.models import CATEGORIES, STATUSES, ProductGroup


MAX_PRICE = Decimal("1e8")  # Numeric(10, 2)


def _to_price(val) -> Decimal:
    try:
        price = Decimal(str(val).strip())
        if not price.is_finite():
            raise ValidationError("Price must be a positive number")
        price = price.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a positive number")
    if price <= 0 or price >= MAX_PRICE:
        raise ValidationError("Price must be a positive number")
    return price


def validate_group_fields(name, price, category, status) -> tuple[str, Decimal]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    price_dec = _to_price(price)
    if category not in CATEGORIES:
        raise ValidationError(f"Invalid category: {category}")
    if status not in STATUSES:
        raise ValidationError(f"Invalid status: {status}")
    return name, price_dec


def check_unique_name(name: str, exclude_group_id: str | None = None) -> None:
    q = ProductGroup.query.filter(ProductGroup.name == name)
    if exclude_group_id:
        q = q.filter(ProductGroup.variant_group_id != exclude_group_id)
    if q.first() is not None:
        raise DuplicateName()


def _flush(action: str, group_id: str) -> None:
    try:
        db.session.flush()
    except IntegrityError as e:
        current_app.logger.warning("[GROUP] %s %s hit integrity error: %s", action, group_id, e.orig)
        raise DuplicateName() from e
    except (OperationalError, ProgrammingError) as e:
        msg = str(e.orig).lower()
        current_app.logger.error("[GROUP] %s %s failed: %s", action, group_id, e.orig)
        if "column" in msg:
            raise SchemaError() from e
        raise PersistenceError(f"Failed to {action} product group: {e.orig}") from e
    except SQLAlchemyError as e:
        current_app.logger.exception("[GROUP] %s %s failed", action, group_id)
        raise PersistenceError(f"Failed to {action} product group: {e}") from e


def insert_group(identity, name, price, description, category, status, group_id: str | None = None) -> str:
    """Create the shared product record. Flushes into the open transaction, no commit."""
    name, price_dec = validate_group_fields(name, price, category, status)
    check_unique_name(name)

    group_id = group_id or str(uuid.uuid4())
    db.session.add(
        ProductGroup(
            variant_group_id=group_id,
            name=name,
            price=price_dec,
            description=(description or "").strip() or None,
            category=category,
            status=status,
        )
    )
    _flush("add", group_id)
    current_app.logger.info("[GROUP] added %s %r by %s", group_id, name, identity)
    return group_id


def update_group(identity, group_id: str, name, price, description, category, status) -> None:
    name, price_dec = validate_group_fields(name, price, category, status)
    group = db.session.get(ProductGroup, group_id)
    if group is None:
        raise GroupNotFound()
    check_unique_name(name, exclude_group_id=group_id)

    group.name = name
    group.price = price_dec
    group.description = (description or "").strip() or None
    group.category = category
    group.status = status
    _flush("update", group_id)
    current_app.logger.info("[GROUP] updated %s %r by %s", group_id, name, identity)


def delete_group(identity, group_id: str) -> None:
    """Remove a group and, through the cascade, its variants. No commit."""
    group = db.session.get(ProductGroup, group_id)
    if group is None:
        raise GroupNotFound()
    db.session.delete(group)
    _flush("delete", group_id)
    current_app.logger.info("[GROUP] deleted %s by %s", group_id, identity)
