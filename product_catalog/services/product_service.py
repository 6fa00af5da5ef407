from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime, timezone
from typing import Optional, List
import logging
import random

from product_catalog.config import get_settings
from product_catalog.models.product import Product, PRODUCT_ID_MIN, PRODUCT_ID_MAX
from product_catalog.schemas.product import AddProductRequest, UpdateProductRequest

logger = logging.getLogger(__name__)


class ProductNotFoundError(Exception):
    """Exception raised when the requested product doesn't exist."""
    pass


class InvalidQuantityError(Exception):
    """Exception raised when a stock adjustment quantity is zero or negative."""
    pass


class InsufficientStockError(Exception):
    """Exception raised when there's not enough stock to fulfill a decrement."""
    pass


class PersistenceError(Exception):
    """Exception raised when the database fails underneath a product operation."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductService:
    """
    Service class for Product CRUD and stock operations.

    Every database failure is rolled back and re-raised as PersistenceError
    carrying a readable cause. Nothing here retries except product ID
    allocation, which is bounded by PRODUCT_ID_MAX_ATTEMPTS.

    STOCK ADJUSTMENTS:
    ==================
    Stock is changed with a single conditional UPDATE:

        UPDATE "Products"
        SET "StockAvailable" = "StockAvailable" - :quantity
        WHERE "ProductId" = :id AND "StockAvailable" >= :quantity

    so two concurrent decrements can never drive stock below zero. If the
    statement matches no row the stock was insufficient and nothing changed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.max_id_attempts = get_settings().PRODUCT_ID_MAX_ATTEMPTS

    def create(self, product_data: AddProductRequest) -> Product:
        """
        Create a new product with a unique six-digit ID.

        IDs are sampled at random. Known collisions are skipped before insert;
        a collision that slips in between the check and the insert surfaces as
        an IntegrityError and the loop samples again. Any other IntegrityError
        (a CHECK constraint, say) fails at once.

        Args:
            product_data: Product creation data

        Returns:
            Created product instance

        Raises:
            PersistenceError: If no free ID was found or the insert failed
        """
        for attempt in range(1, self.max_id_attempts + 1):
            product_id = self._generate_product_id()

            try:
                if self.db.get(Product, product_id) is not None:
                    logger.warning(f"Product ID {product_id} already taken (attempt {attempt})")
                    continue

                now = _utcnow()
                product = Product(
                    product_id=product_id,
                    name=product_data.name,
                    description=product_data.description,
                    price=product_data.price,
                    stock_available=product_data.stock_available,
                    category=product_data.category,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(product)
                self.db.commit()
                self.db.refresh(product)
            except IntegrityError as e:
                self.db.rollback()
                if not self._id_taken(product_id):
                    # a constraint other than the primary key
                    logger.error(f"Error creating product: {e}")
                    raise PersistenceError("Error while adding product.") from e
                logger.warning(f"Product ID {product_id} collided on insert (attempt {attempt})")
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error creating product: {e}")
                raise PersistenceError("Error while adding product.") from e

            logger.info(f"Product #{product.product_id} created: {product.name}")
            return product

        raise PersistenceError(
            f"Could not allocate a unique product ID after {self.max_id_attempts} attempts."
        )

    def get_all(self) -> List[Product]:
        """Get every product, oldest first."""
        try:
            return (
                self.db.query(Product)
                .order_by(Product.created_at, Product.product_id)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error fetching products: {e}")
            raise PersistenceError("Error while fetching all products.") from e

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """
        Get a product by ID.

        Returns:
            Product instance or None if not found
        """
        try:
            return self._find(product_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error fetching product #{product_id}: {e}")
            raise PersistenceError("Error while fetching product by ID.") from e

    def update(self, product_id: int, product_data: UpdateProductRequest) -> Optional[Product]:
        """
        Overwrite the editable fields of an existing product.

        Args:
            product_id: ID of product to update
            product_data: Replacement values for every editable field

        Returns:
            Updated product or None if not found
        """
        try:
            product = self._find(product_id)

            if not product:
                return None

            for field, value in product_data.model_dump().items():
                setattr(product, field, value)
            product.updated_at = _utcnow()

            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating product #{product_id}: {e}")
            raise PersistenceError("Error while updating the product.") from e

        logger.info(f"Product #{product_id} updated")
        return product

    def delete(self, product_id: int) -> Optional[Product]:
        """
        Delete a product.

        Returns:
            The removed product, or None if not found
        """
        try:
            product = self._find(product_id)

            if not product:
                return None

            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting product #{product_id}: {e}")
            raise PersistenceError("Error while deleting the product.") from e

        logger.info(f"Product #{product_id} deleted")
        return product

    def decrement_stock(self, product_id: int, quantity: int) -> Product:
        """
        Remove units from stock.

        Raises:
            ProductNotFoundError: If product doesn't exist
            InvalidQuantityError: If quantity is not positive
            InsufficientStockError: If quantity exceeds the current stock
            PersistenceError: If the database fails
        """
        try:
            self._require(product_id)
            self._check_quantity(quantity)

            updated = (
                self.db.query(Product)
                .filter(
                    Product.product_id == product_id,
                    Product.stock_available >= quantity,
                )
                .update(
                    {
                        Product.stock_available: Product.stock_available - quantity,
                        Product.updated_at: _utcnow(),
                    },
                    synchronize_session=False,
                )
            )

            if updated == 0:
                self.db.rollback()
                raise InsufficientStockError("Insufficient stock available.")

            self.db.commit()
            product = self._require(product_id)
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error decrementing stock for product #{product_id}: {e}")
            raise PersistenceError("Error while decrementing Stock Available.") from e

        logger.info(f"Product #{product_id} stock decremented by {quantity} to {product.stock_available}")
        return product

    def add_stock(self, product_id: int, quantity: int) -> Product:
        """
        Add units to stock.

        Raises:
            ProductNotFoundError: If product doesn't exist
            InvalidQuantityError: If quantity is not positive
            PersistenceError: If the database fails
        """
        try:
            self._require(product_id)
            self._check_quantity(quantity)

            updated = (
                self.db.query(Product)
                .filter(Product.product_id == product_id)
                .update(
                    {
                        Product.stock_available: Product.stock_available + quantity,
                        Product.updated_at: _utcnow(),
                    },
                    synchronize_session=False,
                )
            )

            if updated == 0:
                # deleted between the existence check and the update
                self.db.rollback()
                raise ProductNotFoundError(f"Product with ID {product_id} not found")

            self.db.commit()
            product = self._require(product_id)
            self.db.refresh(product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding stock for product #{product_id}: {e}")
            raise PersistenceError("Error while adding the Stocks.") from e

        logger.info(f"Product #{product_id} stock increased by {quantity} to {product.stock_available}")
        return product

    def _find(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.product_id == product_id).first()

    def _id_taken(self, product_id: int) -> bool:
        try:
            return self.db.get(Product, product_id) is not None
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Error while adding product.") from e

    def _require(self, product_id: int) -> Product:
        product = self._find(product_id)
        if not product:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")
        return product

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantityError("Quantity must be greater than zero.")

    @staticmethod
    def _generate_product_id() -> int:
        return random.randint(PRODUCT_ID_MIN, PRODUCT_ID_MAX)
