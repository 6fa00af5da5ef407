from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session
import logging

from product_catalog.api.deps import READ_ROLES, WRITE_ROLES, require_roles
from product_catalog.database import get_db
from product_catalog.services.product_service import (
    ProductService,
    ProductNotFoundError,
    InvalidQuantityError,
    InsufficientStockError,
    PersistenceError
)
from product_catalog.schemas.product import (
    AddProductRequest,
    UpdateProductRequest,
    ProductResponse,
    StockMessage
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/Product", tags=["Product"])

INTERNAL_ERROR = "Internal server error"


def _not_found(product_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Product with ID {product_id} not found"
    )


def _internal_error(e: PersistenceError) -> HTTPException:
    logger.error(f"Persistence failure: {e}", exc_info=e)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=INTERNAL_ERROR
    )


@router.get(
    "",
    response_model=list[ProductResponse],
    summary="List all products",
    description="Get every product in the catalog.",
    dependencies=[Depends(require_roles(READ_ROLES))]
)
def list_products(db: Session = Depends(get_db)):
    """Get all products. Requires the Reader role."""
    service = ProductService(db)

    try:
        return service.get_all()
    except PersistenceError as e:
        raise _internal_error(e)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    dependencies=[Depends(require_roles(READ_ROLES))]
)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Get a product by ID. Requires the Reader role."""
    service = ProductService(db)

    try:
        product = service.get_by_id(product_id)
    except PersistenceError as e:
        raise _internal_error(e)

    if not product:
        raise _not_found(product_id)

    return product


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a product. Its six-digit ID is generated by the service.",
    dependencies=[Depends(require_roles(WRITE_ROLES))]
)
def create_product(
    product_data: AddProductRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Create a new product.

    - **name**: Up to 50 characters (required)
    - **description**: Up to 100 characters (required)
    - **price**: Must be positive (required)
    - **stockAvailable**: Must be non-negative (required)
    - **category**: Up to 50 characters (required)

    The Location header points at the new product.
    """
    service = ProductService(db)

    try:
        product = service.create(product_data)
    except PersistenceError as e:
        raise _internal_error(e)

    response.headers["Location"] = str(
        request.url_for("get_product", product_id=product.product_id)
    )
    return product


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Replace the editable fields of a product.",
    dependencies=[Depends(require_roles(WRITE_ROLES))]
)
def update_product(
    product_id: int,
    product_data: UpdateProductRequest,
    db: Session = Depends(get_db)
):
    """Update a product. A missing product is never created."""
    service = ProductService(db)

    try:
        product = service.update(product_id, product_data)
    except PersistenceError as e:
        raise _internal_error(e)

    if not product:
        raise _not_found(product_id)

    return product


@router.delete(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Delete a product",
    description="Delete a product by ID and echo the removed product.",
    dependencies=[Depends(require_roles(WRITE_ROLES))]
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """Delete a product."""
    service = ProductService(db)

    try:
        product = service.delete(product_id)
    except PersistenceError as e:
        raise _internal_error(e)

    if not product:
        raise _not_found(product_id)

    return product


@router.put(
    "/decrement-stock/{product_id}/{quantity}",
    response_model=StockMessage,
    summary="Decrement stock",
    description="Remove units from stock. Fails without changes when stock is insufficient.",
    dependencies=[Depends(require_roles(WRITE_ROLES))]
)
def decrement_stock(
    product_id: int,
    quantity: int,
    db: Session = Depends(get_db)
):
    """Decrement the stock of a product by `quantity`."""
    service = ProductService(db)

    try:
        service.decrement_stock(product_id, quantity)
    except ProductNotFoundError:
        raise _not_found(product_id)
    except (InvalidQuantityError, InsufficientStockError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PersistenceError as e:
        raise _internal_error(e)

    return StockMessage(message="Stock decremented successfully.")


@router.put(
    "/add-to-stock/{product_id}/{quantity}",
    response_model=StockMessage,
    summary="Add to stock",
    description="Add units to the stock of a product.",
    dependencies=[Depends(require_roles(WRITE_ROLES))]
)
def add_to_stock(
    product_id: int,
    quantity: int,
    db: Session = Depends(get_db)
):
    """Increase the stock of a product by `quantity`."""
    service = ProductService(db)

    try:
        service.add_stock(product_id, quantity)
    except ProductNotFoundError:
        raise _not_found(product_id)
    except InvalidQuantityError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PersistenceError as e:
        raise _internal_error(e)

    return StockMessage(message="Stock added successfully.")
