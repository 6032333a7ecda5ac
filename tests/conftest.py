import io
import json
import os
import uuid

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from only4u.app import create_app
from only4u.config import Config
from only4u.extensions import db
from only4u.models import User

ADMIN_EMAIL = "admin@only4u.test"
USER_EMAIL = "customer@only4u.test"
PASSWORD = "correct-horse"


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        MAIL_SUPPRESS_SEND = True
        MAIL_DEFAULT_SENDER = "shop@only4u.test"
        BCRYPT_LOG_ROUNDS = 4

    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for calling services directly (no request involved)."""
    with app.app_context():
        yield app


def _create_user(app, email, role="user"):
    with app.app_context():
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            role=role,
            first_name="Ada",
            last_name="Lovelace",
            company="Acme",
            phone="+420 123 456",
            address="Main 1",
            city="Prague",
            zip_code="11000",
            country="CZ",
        )
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def admin_id(app):
    return _create_user(app, ADMIN_EMAIL, role="admin")


@pytest.fixture
def user_id(app):
    return _create_user(app, USER_EMAIL)


@pytest.fixture
def client(app):
    return app.test_client()


def _login(app, email):
    c = app.test_client()
    resp = c.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return c


@pytest.fixture
def admin_client(app, admin_id):
    return _login(app, ADMIN_EMAIL)


@pytest.fixture
def user_client(app, user_id):
    return _login(app, USER_EMAIL)


# ── images ───────────────────────────────────────────────────────────────────

def _image_bytes(color=(200, 30, 30), size=(32, 32), fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return _image_bytes


@pytest.fixture
def make_image():
    """FileStorage the way request.files hands it to the services."""

    def factory(name="red.png", color=(200, 30, 30), size=(32, 32), content_type="image/png", data=None):
        payload = data if data is not None else _image_bytes(color, size)
        return FileStorage(stream=io.BytesIO(payload), filename=name, content_type=content_type)

    return factory


@pytest.fixture
def upload(image_bytes):
    """Tuple the Flask test client turns into a multipart file part."""

    def factory(name="red.png", color=(200, 30, 30), content_type="image/png", data=None):
        payload = data if data is not None else image_bytes(color)
        return (io.BytesIO(payload), name, content_type)

    return factory


@pytest.fixture
def stored_files(app):
    """Relative paths of everything currently in the upload folder."""

    def collect():
        root = app.config["UPLOAD_FOLDER"]
        found = []
        for dirpath, _, filenames in os.walk(root):
            for name in filenames:
                found.append(os.path.relpath(os.path.join(dirpath, name), root).replace(os.sep, "/"))
        return sorted(found)

    return collect


@pytest.fixture
def product_form():
    def factory(variants, name="Red Dress", price="49.90", category="dress", status="new", description="Summer dress"):
        return {
            "name": name,
            "price": price,
            "category": category,
            "status": status,
            "description": description,
            "variants": json.dumps(variants),
        }

    return factory
