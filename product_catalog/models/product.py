from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint

from product_catalog.database import Base

PRODUCT_ID_MIN = 100000
PRODUCT_ID_MAX = 999999


class Product(Base):
    """
    Product model representing a catalog entry.

    Attributes:
        product_id: Six-digit identifier assigned at creation
        name: Product name
        description: Short product description
        price: Unit price (must be positive)
        stock_available: Units in stock (never negative)
        category: Catalog category
        created_at: Timestamp when product was created (UTC)
        updated_at: Timestamp of the last mutation (UTC)
    """
    __tablename__ = "Products"

    product_id = Column("ProductId", Integer, primary_key=True, autoincrement=False)
    name = Column("Name", String(50), nullable=False, index=True)
    description = Column("Description", String(100), nullable=False)
    price = Column("Price", Numeric(18, 2), nullable=False)
    stock_available = Column("StockAvailable", Integer, nullable=False, default=0)
    category = Column("Category", String(50), nullable=False)
    created_at = Column("CreatedAt", DateTime(timezone=True), nullable=False)
    updated_at = Column("UpdatedAt", DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint('"Price" > 0', name="check_price_positive"),
        CheckConstraint('"StockAvailable" >= 0', name="check_stock_non_negative"),
        CheckConstraint(
            f'"ProductId" BETWEEN {PRODUCT_ID_MIN} AND {PRODUCT_ID_MAX}',
            name="check_product_id_six_digits",
        ),
    )

    def __repr__(self):
        return f"<Product(product_id={self.product_id}, name='{self.name}', stock={self.stock_available})>"
