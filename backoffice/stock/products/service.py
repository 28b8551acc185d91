from sqlalchemy.orm import Session

from backoffice.errors import NotFoundError
from backoffice.stock.products.models import Product


def get_product(db: Session, product_id: str):
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_or_404(db: Session, product_id: str) -> Product:
    product = get_product(db, product_id)
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found.")
    return product


# --------------------------
# Internal: warehouse stock mutation
# --------------------------
def change_warehouse_stock(db: Session, product: Product, quantity: int) -> Product:
    """Add (positive) or remove (negative) units from the warehouse pool. No commit."""
    product.stock = (product.stock or 0) + quantity
    db.flush()
    return product
