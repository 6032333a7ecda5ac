# only4u/models/user.py
from datetime import datetime
from only4u.extensions import db, bcrypt
from flask_login import UserMixin

PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "subscribe",
    "company",
    "website",
    "phone",
    "address",
    "apartment",
    "city",
    "zip_code",
    "country",
    "state",
)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=True)
    subscribe = db.Column(db.Boolean, nullable=False, default=False)
    company = db.Column(db.String(200), nullable=False)
    website = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    apartment = db.Column(db.String(100), nullable=True)
    city = db.Column(db.String(100), nullable=False)
    zip_code = db.Column(db.String(20), nullable=False)
    country = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=True)
    business_license = db.Column(db.String(512), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # --- Password handling ---------------------------------------------------
    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.generate_password_hash(password).decode("utf-8")

    def check_password(self, password: str) -> bool:
        try:
            return bcrypt.check_password_hash(self.password_hash, password)
        except ValueError:
            # malformed hash in the row
            return False

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def profile_dict(self) -> dict:
        return {field: getattr(self, field) for field in PROFILE_FIELDS}

    def get_id(self):
        return str(self.id)

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
