from datetime import datetime
from only4u.extensions import db

CATEGORIES = ("dress", "pants", "shirt", "jacket", "accessory")
STATUSES = ("new", "best_selling", "sold_out", "on_sale")


class ProductGroup(db.Model):
    __tablename__ = "product_groups"

    variant_group_id = db.Column(db.String(36), primary_key=True)
    # DB level unique index is the real guard; the app check only gives a nicer message
    name = db.Column(db.String(150), nullable=False, unique=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False, default="new", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    variants = db.relationship(
        "ProductVariant",
        back_populates="group",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductVariant.position",
    )

    @property
    def is_browsable(self) -> bool:
        """A group only shows up in the shop once it has at least one variant."""
        return bool(self.variants)

    def __repr__(self) -> str:
        return f"<ProductGroup {self.name}>"
