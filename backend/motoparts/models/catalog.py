from __future__ import annotations

from ..extensions import db
from motoparts.time_utils import to_utc_z


class Category(db.Model):
    """Product category (e.g. "KAMPAS REM", "BUSI")."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Brand(db.Model):
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


MOTORCYCLE_TYPES = ("Matic", "Manual")


class Motorcycle(db.Model):
    """
    Motorcycle make/model that parts can be fitted to.

    type is the transmission family used by the shop to group models;
    it is optional because older rows were imported without it.
    """
    __tablename__ = "motorcycles"
    __table_args__ = (
        db.CheckConstraint(
            "type IS NULL OR type IN ('Matic', 'Manual')",
            name="ck_motorcycles_type",
        ),
        db.Index("ix_motorcycles_manufacturer_model", "manufacturer", "model"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    manufacturer = db.Column(db.String(120), nullable=False)
    model = db.Column(db.String(120), nullable=True)
    type = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    compatible_products = db.relationship(
        "Product",
        secondary="product_motorcycle_compatibility",
        order_by="Product.id",
        lazy=True,
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Motorcycle id={self.id} manufacturer={self.manufacturer!r} model={self.model!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "type": self.type,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Part on the shelf.

    current_stock is a mutable counter: it is changed by direct edits and by
    the transaction workflow (see services/transaction_service.py), which is
    the only writer that keeps it consistent with the transaction ledger.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_brand", "category_id", "brand_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False, index=True)
    motorcycle_id = db.Column(
        db.Integer,
        db.ForeignKey("motorcycles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    size = db.Column(db.String(120), nullable=True)

    # Whole currency units (Rupiah)
    buy_price = db.Column(db.Integer, nullable=True)
    sell_price = db.Column(db.Integer, nullable=True)

    note = db.Column(db.String(255), nullable=True)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_threshold = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))
    motorcycle = db.relationship("Motorcycle", foreign_keys=[motorcycle_id])

    compatible_motorcycles = db.relationship(
        "Motorcycle",
        secondary="product_motorcycle_compatibility",
        order_by="[Motorcycle.manufacturer, Motorcycle.model]",
        lazy=True,
        viewonly=True,
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) <= (self.min_threshold or 0)

    def __repr__(self) -> str:
        return f"<Product id={self.id} category_id={self.category_id} brand_id={self.brand_id} stock={self.current_stock}>"

    def to_dict(self, *, include_associations: bool = True) -> dict:
        data = {
            "id": self.id,
            "categoryId": self.category_id,
            "brandId": self.brand_id,
            "motorcycleId": self.motorcycle_id,
            "size": self.size,
            "buyPrice": self.buy_price,
            "sellPrice": self.sell_price,
            "note": self.note,
            "currentStock": self.current_stock,
            "minThreshold": self.min_threshold,
            "isLowStock": self.is_low_stock,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_associations:
            data["category"] = self.category.to_dict() if self.category else None
            data["brand"] = self.brand.to_dict() if self.brand else None
            data["motorcycle"] = self.motorcycle.to_dict() if self.motorcycle else None
        return data


class ProductMotorcycleCompatibility(db.Model):
    """Which motorcycles a part fits. One row per (product, motorcycle) pair."""
    __tablename__ = "product_motorcycle_compatibility"
    __table_args__ = (
        db.UniqueConstraint("product_id", "motorcycle_id", name="product_motorcycle_unique"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    motorcycle_id = db.Column(
        db.Integer,
        db.ForeignKey("motorcycles.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "motorcycleId": self.motorcycle_id,
            "createdAt": to_utc_z(self.created_at),
        }
