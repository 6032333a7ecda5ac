from datetime import datetime
from only4u.extensions import db


class ProductVariant(db.Model):
    __tablename__ = "products"

    # client generated uuid, stable across edits
    id = db.Column(db.String(36), primary_key=True)
    variant_group_id = db.Column(
        db.String(36),
        db.ForeignKey("product_groups.variant_group_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    color = db.Column(db.String(64), nullable=False)
    image_url = db.Column(db.String(512), nullable=False)
    hover_image_url = db.Column(db.String(512), nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)
    # order of the colour rows in the admin form; the first one is the card image
    position = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    group = db.relationship("ProductGroup", back_populates="variants")

    @property
    def hover_or_main_url(self) -> str:
        return self.hover_image_url or self.image_url

    def __repr__(self) -> str:  # pragma: no cover - debug aid
        return f"<ProductVariant {self.color} ({self.stock})>"
