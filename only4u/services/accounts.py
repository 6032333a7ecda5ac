# only4u/services/accounts.py
from __future__ import annotations

import re
import smtplib
import time
import uuid
from dataclasses import dataclass, fields

from flask import current_app
from sqlalchemy.exc import IntegrityError

from only4u.api.utils.email import send_email
from only4u.errors import PersistenceError, Unauthenticated, UserExists, ValidationError
from only4u.extensions import db
from only4u.models import User
from only4u.services.image_store import ImageStore, file_ext

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

REQUIRED_PROFILE_FIELDS = ("first_name", "email", "company", "phone", "address", "city", "zip_code", "country")


def _truthy(v) -> bool:
    if isinstance(v, bool):
        return v
    return str(v or "").strip().lower() in ("1", "true", "on", "yes")


def _clean(v) -> str | None:
    s = str(v).strip() if v is not None else ""
    return s or None


@dataclass
class ProfileData:
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    subscribe: bool = False
    company: str | None = None
    website: str | None = None
    phone: str | None = None
    address: str | None = None
    apartment: str | None = None
    city: str | None = None
    zip_code: str | None = None
    country: str | None = None
    state: str | None = None

    @classmethod
    def from_mapping(cls, data) -> "ProfileData":
        """Accepts snake_case keys and the camelCase ones the signup form posts."""
        data = data or {}

        def pick(snake, camel=None):
            if snake in data:
                return data.get(snake)
            return data.get(camel) if camel else None

        return cls(
            first_name=_clean(pick("first_name", "firstName")),
            last_name=_clean(pick("last_name", "lastName")),
            email=(_clean(pick("email")) or "").lower() or None,
            subscribe=_truthy(pick("subscribe")),
            company=_clean(pick("company")),
            website=_clean(pick("website")),
            phone=_clean(pick("phone")),
            address=_clean(pick("address")),
            apartment=_clean(pick("apartment")),
            city=_clean(pick("city")),
            zip_code=_clean(pick("zip_code", "zipCode")),
            country=_clean(pick("country")),
            state=_clean(pick("state")),
        )

    def validate(self, missing_message: str = "Missing required fields") -> None:
        if any(not getattr(self, f) for f in REQUIRED_PROFILE_FIELDS):
            raise ValidationError(missing_message)
        if not EMAIL_RE.match(self.email):
            raise ValidationError("Invalid email format")

    def apply_to(self, user: User) -> None:
        for f in fields(self):
            setattr(user, f.name, getattr(self, f.name))


def _email_taken(email: str, exclude_user_id: str | None = None) -> bool:
    q = User.query.filter(User.email == email)
    if exclude_user_id:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def send_welcome_mail(user: User) -> bool:
    subject = current_app.config.get("WELCOME_MAIL_SUBJECT", "Welcome")
    body = (
        f"Hi {user.first_name},\n\n"
        "your Only4U account is ready. You can sign in with this e-mail address.\n"
    )
    try:
        send_email(subject, user.email, body)
        current_app.logger.info("[SIGNUP] welcome mail sent to %s", user.email)
        return True
    except (smtplib.SMTPException, OSError):
        current_app.logger.exception("[SIGNUP] welcome mail to %s failed (ignored)", user.email)
        return False


def signup(form, business_license, store: ImageStore | None = None) -> User:
    profile = ProfileData.from_mapping(form)
    password = form.get("password") or ""
    if not password or business_license is None or not getattr(business_license, "filename", None):
        raise ValidationError("Missing required fields")
    profile.validate()
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if _email_taken(profile.email):
        raise UserExists()

    store = store or ImageStore.from_app()
    user_id = str(uuid.uuid4())
    bucket = current_app.config.get("LICENSES_BUCKET", "business-licenses")
    license_path = f"{user_id}/license-{int(time.time() * 1000)}{file_ext(business_license)}"
    store.store_file(user_id, bucket, license_path, business_license)

    user = User(id=user_id, role="user", business_license=license_path)
    profile.apply_to(user)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        store.delete(license_path, bucket)
        current_app.logger.warning("[SIGNUP] insert for %s failed: %s", profile.email, e.orig)
        raise UserExists() from e
    except Exception:
        db.session.rollback()
        store.delete(license_path, bucket)
        raise

    current_app.logger.info("[SIGNUP] created user %s (%s)", user.id, user.email)
    send_welcome_mail(user)
    return user


def authenticate(email: str | None, password: str | None) -> User | None:
    email = (email or "").strip().lower()
    if not email or not password:
        return None
    user = User.query.filter_by(email=email).first()
    if user and user.check_password(password):
        return user
    return None


def get_profile(identity) -> dict:
    user = db.session.get(User, str(identity)) if identity else None
    if user is None:
        raise Unauthenticated("User not authenticated")
    return user.profile_dict()


def update_profile(identity, data) -> dict:
    user = db.session.get(User, str(identity)) if identity else None
    if user is None:
        raise Unauthenticated("User not authenticated")

    profile = ProfileData.from_mapping(data)
    profile.validate(missing_message="Please fill out all required fields")
    if _email_taken(profile.email, exclude_user_id=user.id):
        raise UserExists("Email is already used by another account")

    profile.apply_to(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise PersistenceError(f"Failed to update profile: {e.orig}") from e
    current_app.logger.info("[PROFILE] updated %s", user.id)
    return user.profile_dict()
