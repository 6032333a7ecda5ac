# only4u/api/routes/upload_routes.py
from __future__ import annotations

import json

from flask import Blueprint, jsonify, request

from only4u.auth.identity import require_identity
from only4u.errors import ValidationError
from only4u.services.authorization import require_admin
from only4u.services.image_store import ROLES, ImageStore

api_upload = Blueprint("api_upload", __name__, url_prefix="/api")


def _collect_images() -> list:
    """`images`, `images[]` and indexed `images[N]` keys, in that order."""
    files = list(request.files.getlist("images")) + list(request.files.getlist("images[]"))
    indexed = sorted(
        (k for k in request.files.keys() if k.startswith("images[") and k != "images[]"),
        key=lambda k: int(k[7:-1]) if k[7:-1].isdigit() else 0,
    )
    for key in indexed:
        files.extend(request.files.getlist(key))
    return [f for f in files if f is not None and f.filename]


def _variant_ids() -> list[str] | None:
    raw = request.form.getlist("variantIds")
    if not raw:
        return None
    if len(raw) == 1 and raw[0].strip().startswith("["):
        try:
            parsed = json.loads(raw[0])
        except ValueError:
            raise ValidationError("Invalid variantIds")
        if not isinstance(parsed, list):
            raise ValidationError("Invalid variantIds")
        raw = parsed
    elif len(raw) == 1 and "," in raw[0]:
        raw = raw[0].split(",")
    return [str(v).strip() for v in raw]


@api_upload.post("/upload-product-image")
def upload_product_image():
    identity = require_identity()
    require_admin(identity)

    images = _collect_images()
    if not images:
        return jsonify({"error": "No images provided"}), 400

    product_id = (request.form.get("productId") or "").strip()
    if not product_id:
        return jsonify({"error": "Product ID is required"}), 400

    role = (request.form.get("role") or "main").strip()
    if role not in ROLES:
        return jsonify({"error": f"Invalid image role: {role}"}), 400

    store = ImageStore.from_app()
    stored = store.upload_batch(identity, product_id, images, asset_ids=_variant_ids(), role=role)
    return jsonify({"message": "Images uploaded successfully", "images": [s.to_dict() for s in stored]}), 201
