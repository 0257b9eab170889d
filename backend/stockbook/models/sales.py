from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z

CASH_SALE_NAME = "Cash Sale"
PAYMENT_TYPES = ("cash", "credit")


class Sale(db.Model):
    """
    Sale transaction with its embedded lines.

    SNAPSHOTS: customer_name (and each line's name/price) are copied at write
    time and never re-derived from the current Customer/InventoryItem rows.

    REFERENCES: customer_id is a non-owning reference (no foreign key);
    NULL means a cash sale.

    payment_type is NULL when no payment was recorded with the sale.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_customer_date", "customer_id", "date"),
        db.Index("ix_sales_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, nullable=True)
    customer_name = db.Column(db.String(255), nullable=False, default=CASH_SALE_NAME)

    total_cents = db.Column(db.Integer, nullable=False)
    payment_type = db.Column(db.String(16), nullable=True)

    # Transaction date (business date), distinct from record timestamps
    date = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_cash_sale(self) -> bool:
        return self.customer_id is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [line.to_dict() for line in self.lines],
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "total_cents": self.total_cents,
            "payment_type": self.payment_type,
            "date": to_utc_z(self.date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class SaleLine(db.Model):
    """Individual line items on a sale (value copies owned by the sale)."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    # Non-owning reference; the item may be deleted later
    item_id = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "total_cents": self.total_cents,
        }
