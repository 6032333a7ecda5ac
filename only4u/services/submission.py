# only4u/services/submission.py
"""
Create / edit of a product group with its colour variants.

The admin form arrives as multipart data: the group fields, a JSON array of
variants (``[{id, color, stock, image_url?, hover_image_url?}]``) and one
``mainImage-<id>`` / ``hoverImage-<id>`` file per variant. It is parsed once
into a ``ProductSubmission`` and then walked through

    validating -> authorizing -> checking_uniqueness -> uploading_images
               -> writing_group -> reconciling_variants -> done

with ``failed`` reachable from every step. Group and variant rows are written
in one transaction; images stored by a failed run are removed again.
"""
from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from only4u.errors import (
    DuplicateName,
    GroupNotFound,
    InvalidVariant,
    PersistenceError,
    ShopError,
    ValidationError,
    VariantWriteError,
)
from only4u.extensions import db
from only4u.models import ProductGroup, ProductVariant
from only4u.services.authorization import require_admin
from only4u.services.group_writer import (
    check_unique_name,
    insert_group,
    update_group,
    validate_group_fields,
)
from only4u.services.image_store import ImageStore, StoredImage
from only4u.services.reconciler import VariantInput, reconcile, resolve_images

_VARIANT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,36}$")
_STOCK_RE = re.compile(r"^\d+$")


class SubmissionState(str, Enum):
    VALIDATING = "validating"
    AUTHORIZING = "authorizing"
    CHECKING_UNIQUENESS = "checking_uniqueness"
    UPLOADING_IMAGES = "uploading_images"
    WRITING_GROUP = "writing_group"
    RECONCILING_VARIANTS = "reconciling_variants"
    DONE = "done"
    FAILED = "failed"


# ========================= Typed payload =========================

def _to_stock(raw, variant_id) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid stock for variant {variant_id}")
    if isinstance(raw, int):
        stock = raw
    else:
        s = str(raw if raw is not None else "").strip()
        if not _STOCK_RE.match(s):
            raise ValidationError("All variants must have a color and non-negative stock")
        stock = int(s)
    if stock < 0:
        raise ValidationError("All variants must have a color and non-negative stock")
    return stock


def _file_or_none(files, key):
    fs = files.get(key) if files else None
    if fs is None or not getattr(fs, "filename", None):
        return None
    return fs


@dataclass
class ProductSubmission:
    name: str
    price: Decimal
    description: str
    category: str
    status: str
    variants: list[VariantInput] = field(default_factory=list)
    group_id: str | None = None

    @property
    def is_edit(self) -> bool:
        return self.group_id is not None

    @property
    def file_count(self) -> int:
        return sum(int(v.has_main_file) + int(v.has_hover_file) for v in self.variants)

    @classmethod
    def from_form(cls, form, files=None, group_id: str | None = None) -> "ProductSubmission":
        """Parse and validate the multipart form. Raises ValidationError, never touches the backend."""
        form = form or {}
        name = (form.get("name") or "").strip()
        price_raw = str(form.get("price") or "").strip()
        category = (form.get("category") or "").strip()
        status = (form.get("status") or "").strip()
        description = (form.get("description") or "").strip()

        if not name or not price_raw or not category or not status:
            raise ValidationError("Name, price, category, and status are required")
        name, price = validate_group_fields(name, price_raw, category, status)

        raw_variants = form.get("variants")
        try:
            parsed = json.loads(raw_variants) if isinstance(raw_variants, str) else raw_variants
        except ValueError:
            raise ValidationError("Invalid variants data")
        if not isinstance(parsed, list) or not parsed:
            raise ValidationError("At least one variant is required")

        variants: list[VariantInput] = []
        seen: set[str] = set()
        for item in parsed:
            if not isinstance(item, dict):
                raise ValidationError("Invalid variants data")
            vid = str(item.get("id") or "").strip()
            if not _VARIANT_ID_RE.match(vid):
                raise ValidationError("Every variant needs a valid id")
            if vid in seen:
                raise ValidationError(f"Duplicate variant id {vid}")
            seen.add(vid)

            color = str(item.get("color") or "").strip()
            if not color:
                raise ValidationError("All variants must have a color and non-negative stock")
            stock = _to_stock(item.get("stock"), vid)

            variants.append(
                VariantInput(
                    id=vid,
                    color=color,
                    stock=stock,
                    image_url=(str(item.get("image_url") or "").strip() or None),
                    hover_image_url=(str(item.get("hover_image_url") or "").strip() or None),
                    main_file=_file_or_none(files, f"mainImage-{vid}"),
                    hover_file=_file_or_none(files, f"hoverImage-{vid}"),
                )
            )

        if group_id is None:
            missing = [v.id for v in variants if not (v.has_main_file or v.image_url)]
            if missing:
                raise ValidationError(f"Main image is required for variant {missing[0]}")

        return cls(
            name=name,
            price=price,
            description=description,
            category=category,
            status=status,
            variants=variants,
            group_id=group_id,
        )


# ========================= Workflow =========================

@dataclass
class SubmissionResult:
    state: SubmissionState
    group_id: str | None = None
    error: ShopError | None = None
    failed_at: SubmissionState | None = None
    deleted_variant_ids: list[str] = field(default_factory=list)
    is_edit: bool = False

    @property
    def ok(self) -> bool:
        return self.state is SubmissionState.DONE

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return "Product updated successfully" if self.is_edit else "Product added successfully"


class ProductSubmissionWorkflow:
    def __init__(self, identity, store: ImageStore | None = None):
        self.identity = identity
        self.store = store or ImageStore.from_app()
        self.state = SubmissionState.VALIDATING
        self.group_id: str | None = None
        self._stored: list[StoredImage] = []

    @property
    def log(self):
        return current_app.logger

    def _enter(self, state: SubmissionState) -> None:
        self.log.info("[SUBMIT] %s -> %s (group=%s)", self.state.value, state.value, self.group_id)
        self.state = state

    # ── entry points ─────────────────────────────────────────────────────────

    def submit(self, form, files=None, group_id: str | None = None) -> SubmissionResult:
        self.state = SubmissionState.VALIDATING
        self.group_id = group_id
        try:
            submission = ProductSubmission.from_form(form, files, group_id=group_id)
        except ShopError as err:
            self.log.info("[SUBMIT] validation failed: %s", err.message)
            return self._failed(err, edit=group_id is not None)
        return self.run(submission)

    def run(self, submission: ProductSubmission) -> SubmissionResult:
        self.group_id = submission.group_id
        self._stored = []
        try:
            return self._run(submission)
        except ShopError as err:
            self._abort()
            self.log.warning("[SUBMIT] failed at %s: %s", self.state.value, err.message)
            return self._failed(err, edit=submission.is_edit)
        except Exception:
            self._abort()
            self.log.exception("[SUBMIT] unexpected error at %s", self.state.value)
            raise

    # ── steps ────────────────────────────────────────────────────────────────

    def _run(self, sub: ProductSubmission) -> SubmissionResult:
        self._enter(SubmissionState.AUTHORIZING)
        require_admin(self.identity)

        self._enter(SubmissionState.CHECKING_UNIQUENESS)
        existing: list[ProductVariant] = []
        if sub.is_edit:
            group = db.session.get(ProductGroup, sub.group_id)
            if group is None:
                raise GroupNotFound()
            existing = list(group.variants or [])
        check_unique_name(sub.name, exclude_group_id=sub.group_id)

        self._enter(SubmissionState.UPLOADING_IMAGES)
        if not sub.is_edit:
            self.group_id = str(uuid.uuid4())
        existing_ids = [v.id for v in existing]
        plan = reconcile(self.group_id, sub.variants, existing_ids)
        self._check_new_variants(plan.to_insert)
        uploaded = self._upload_images(sub)

        self._enter(SubmissionState.WRITING_GROUP)
        if sub.is_edit:
            update_group(self.identity, self.group_id, sub.name, sub.price, sub.description, sub.category, sub.status)
        else:
            insert_group(
                self.identity, sub.name, sub.price, sub.description, sub.category, sub.status,
                group_id=self.group_id,
            )

        self._enter(SubmissionState.RECONCILING_VARIANTS)
        previous = {v.id: (v.image_url, v.hover_image_url) for v in existing}
        resolved = resolve_images(plan, sub.variants, uploaded, previous)
        by_id = {v.id: v for v in existing}
        dropped_paths: list[str] = []
        try:
            for vid in plan.to_delete:
                row = by_id[vid]
                dropped_paths.extend(
                    p for p in (self.store.path_from_url(row.image_url), self.store.path_from_url(row.hover_image_url)) if p
                )
                db.session.delete(row)
            for rv in resolved:
                if rv.action == "update":
                    row = by_id[rv.id]
                    row.color = rv.color
                    row.stock = rv.stock
                    row.image_url = rv.image_url
                    row.hover_image_url = rv.hover_image_url
                    row.position = rv.position
                else:
                    db.session.add(ProductVariant(**rv.row()))
            db.session.flush()
        except IntegrityError as e:
            raise VariantWriteError(f"Failed to save variant: {e.orig}") from e
        except SQLAlchemyError as e:
            raise VariantWriteError(f"Failed to save variant: {e}") from e

        try:
            db.session.commit()
        except IntegrityError as e:
            # lost the race against another admin using the same name
            raise DuplicateName() from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save product: {e}") from e

        # old objects go only once the rows no longer point at them
        kept = {p for rv in resolved for p in (self.store.path_from_url(rv.image_url), self.store.path_from_url(rv.hover_image_url)) if p}
        replaced = [p for stored in self._stored for p in stored.stale]
        for path in dict.fromkeys(dropped_paths + replaced):
            if path not in kept:
                self.store.delete(path)

        self._enter(SubmissionState.DONE)
        self.log.info(
            "[SUBMIT] done group=%s inserted=%d updated=%d deleted=%d",
            self.group_id, len(plan.to_insert), len(plan.to_update), len(plan.to_delete),
        )
        return SubmissionResult(
            state=SubmissionState.DONE,
            group_id=self.group_id,
            deleted_variant_ids=list(plan.to_delete),
            is_edit=sub.is_edit,
        )

    def _check_new_variants(self, to_insert: list[VariantInput]) -> None:
        """New rows need an image and an id no other group already owns."""
        for v in to_insert:
            if not (v.has_main_file or v.image_url):
                raise InvalidVariant(f"Main image is required for variant {v.id}")
        ids = [v.id for v in to_insert]
        if ids and ProductVariant.query.filter(ProductVariant.id.in_(ids)).first() is not None:
            raise InvalidVariant("Variant id already belongs to another product")

    def _upload_images(self, sub: ProductSubmission) -> dict[tuple[str, str], str]:
        self.store.check_batch_size(sub.file_count)
        # all files are checked before the first one is stored
        for v in sub.variants:
            for fs in (v.main_file, v.hover_file):
                if fs is not None:
                    self.store.check_image(fs)

        uploaded: dict[tuple[str, str], str] = {}
        for v in sub.variants:
            for role, fs in (("main", v.main_file), ("hover", v.hover_file)):
                if fs is None:
                    continue
                stored = self.store.upload(self.identity, self.group_id, v.id, role, fs)
                self._stored.append(stored)
                uploaded[(v.id, role)] = stored.url
        return uploaded

    # ── failure handling ─────────────────────────────────────────────────────

    def _abort(self) -> None:
        db.session.rollback()
        for stored in self._stored:
            if stored.created:
                self.store.delete(stored.path)
        if self._stored:
            self.log.info("[SUBMIT] compensated %d stored image(s)", sum(1 for s in self._stored if s.created))
        self._stored = []

    def _failed(self, err: ShopError, edit: bool) -> SubmissionResult:
        failed_at = self.state
        self.state = SubmissionState.FAILED
        return SubmissionResult(
            state=SubmissionState.FAILED,
            group_id=self.group_id,
            error=err,
            failed_at=failed_at,
            is_edit=edit,
        )


def submit_product(identity, form, files=None, group_id: str | None = None) -> SubmissionResult:
    return ProductSubmissionWorkflow(identity).submit(form, files, group_id=group_id)
