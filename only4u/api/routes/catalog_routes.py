from __future__ import annotations

from flask import Blueprint, jsonify, request

from only4u.services.catalog import get_product, list_products, normalize_category

api_catalog = Blueprint("api_catalog", __name__, url_prefix="/api/catalog")


@api_catalog.get("")
def catalog():
    # both filters optional, unknown values give an empty list
    category = request.args.get("category") or None
    status = request.args.get("status") or None
    return jsonify(list_products(category=category, status=status)), 200


@api_catalog.get("/sale")
def sale():
    return jsonify(list_products(status="on_sale")), 200


@api_catalog.get("/category/<string:category>")
def by_category(category: str):
    slug = normalize_category(category)
    if slug is None:
        return jsonify({"error": "Category not found"}), 404
    return jsonify(list_products(category=slug)), 200


@api_catalog.get("/product/<string:variant_id>")
def product_detail(variant_id: str):
    detail = get_product(variant_id)
    if detail is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(detail), 200
