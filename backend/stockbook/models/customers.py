from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    Sales reference customers by id without a foreign key: a customer may be
    deleted while historical sales keep their customer_name snapshot.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    street = db.Column(db.String(255), nullable=False, default="")
    city = db.Column(db.String(128), nullable=False, default="")
    state = db.Column(db.String(128), nullable=False, default="")
    postal_code = db.Column(db.String(32), nullable=False, default="")

    mobile_number = db.Column(db.String(10), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": {
                "street": self.street,
                "city": self.city,
                "state": self.state,
                "postal_code": self.postal_code,
            },
            "mobile_number": self.mobile_number,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
