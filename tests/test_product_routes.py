import json

import pytest

from only4u.extensions import db
from only4u.models import ProductGroup, ProductVariant


def _form(upload, variants=None, name="Red Dress", **extra):
    variants = variants or [{"id": "var-a", "color": "Red", "stock": 5}]
    data = {
        "name": name,
        "price": "49.90",
        "category": "dress",
        "status": "new",
        "description": "Summer dress",
        "variants": json.dumps(variants),
    }
    for v in variants:
        data[f"mainImage-{v['id']}"] = upload(f"{v['id']}.png")
    data.update(extra)
    return data


@pytest.fixture
def created(admin_client, upload):
    resp = admin_client.post(
        "/api/products",
        data=_form(upload, [
            {"id": "var-a", "color": "Red", "stock": 5},
            {"id": "var-b", "color": "Blue", "stock": 1},
        ]),
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["variant_group_id"]


class TestCreate:
    def test_admin_creates_product(self, app, admin_client, upload):
        resp = admin_client.post("/api/products", data=_form(upload), content_type="multipart/form-data")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["message"] == "Product added successfully"
        with app.app_context():
            group = db.session.get(ProductGroup, body["variant_group_id"])
            assert group is not None
            assert [v.id for v in group.variants] == ["var-a"]

    def test_anonymous_gets_401(self, client, upload):
        resp = client.post("/api/products", data=_form(upload), content_type="multipart/form-data")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Unauthorized"

    def test_customer_gets_403(self, user_client, upload):
        resp = user_client.post("/api/products", data=_form(upload), content_type="multipart/form-data")
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Forbidden: Admin access required"

    def test_validation_error_is_400(self, admin_client, upload):
        data = _form(upload, [{"id": "var-a", "color": "Red", "stock": "-1"}])
        resp = admin_client.post("/api/products", data=data, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["state"] == "validating"

    @pytest.mark.parametrize("price", ["1e30", "100000000"])
    def test_out_of_range_price_is_400(self, app, admin_client, upload, price):
        resp = admin_client.post("/api/products", data=_form(upload, price=price), content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Price must be a positive number"
        with app.app_context():
            assert ProductGroup.query.count() == 0

    def test_non_image_upload_is_400(self, admin_client, upload):
        data = _form(upload)
        data["mainImage-var-a"] = upload("notes.txt", content_type="text/plain", data=b"hello")
        resp = admin_client.post("/api/products", data=data, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Only image files are allowed"

    def test_duplicate_name_is_400(self, admin_client, created, upload):
        data = _form(upload, [{"id": "var-z", "color": "Red", "stock": 5}])
        resp = admin_client.post("/api/products", data=data, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Product name must be unique"


class TestEdit:
    def test_missing_id(self, admin_client, upload):
        resp = admin_client.patch("/api/products", data=_form(upload), content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing variant_group_id"

    def test_unknown_group_is_404(self, admin_client, upload):
        resp = admin_client.patch("/api/products?id=nope", data=_form(upload), content_type="multipart/form-data")
        assert resp.status_code == 404

    def test_edit_removes_absent_variants(self, app, admin_client, created):
        data = {
            "name": "Red Dress",
            "price": "39.90",
            "category": "dress",
            "status": "on_sale",
            "description": "",
            "variants": json.dumps([{"id": "var-a", "color": "Red", "stock": 3}]),
        }
        resp = admin_client.patch(f"/api/products?id={created}", data=data, content_type="multipart/form-data")
        assert resp.status_code == 200, resp.get_json()
        assert resp.get_json()["message"] == "Product updated successfully"
        with app.app_context():
            assert db.session.get(ProductVariant, "var-b") is None
            assert db.session.get(ProductVariant, "var-a").stock == 3
            assert db.session.get(ProductGroup, created).status == "on_sale"


class TestAdminReads:
    def test_list_requires_login(self, client):
        assert client.get("/api/products").status_code == 401

    def test_list_requires_admin(self, user_client):
        assert user_client.get("/api/products").status_code == 403

    def test_list_sorted(self, admin_client, created, upload):
        admin_client.post(
            "/api/products",
            data=_form(upload, [{"id": "var-c", "color": "Tan", "stock": 1}], name="Alpha Coat", price="10"),
            content_type="multipart/form-data",
        )
        names = [g["name"] for g in admin_client.get("/api/products?sortBy=name&sortOrder=asc").get_json()]
        assert names == ["Alpha Coat", "Red Dress"]
        by_price = admin_client.get("/api/products?sortBy=price&sortOrder=desc").get_json()
        assert [g["price"] for g in by_price] == ["49.90", "10.00"]

    def test_group_for_edit_form(self, admin_client, created):
        resp = admin_client.get(f"/api/products/group/{created}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["name"] == "Red Dress"
        assert [v["id"] for v in body["variants"]] == ["var-a", "var-b"]
        assert admin_client.get("/api/products/group/nope").status_code == 404


class TestDelete:
    def test_delete_group_and_images(self, app, admin_client, created, stored_files):
        assert stored_files()
        resp = admin_client.delete(f"/api/products?id={created}")
        assert resp.status_code == 200
        with app.app_context():
            assert db.session.get(ProductGroup, created) is None
            assert ProductVariant.query.count() == 0
        assert stored_files() == []

    def test_delete_requires_admin(self, user_client, created):
        assert user_client.delete(f"/api/products?id={created}").status_code == 403

    def test_delete_unknown(self, admin_client):
        assert admin_client.delete("/api/products?id=nope").status_code == 404
