from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from storefront.core.audit import log_event
from storefront.core.rbac import SHOP_ADMIN, require_roles
from storefront.db.session import get_db
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.product import ProductCreate, ProductOut

router = APIRouter(prefix="/products", tags=["products"])


def product_out(p: Product) -> ProductOut:
    return ProductOut(
        id=str(p.id),
        name=p.name,
        description=p.description,
        price=p.price,
        stock=p.stock,
        is_available=p.is_available,
        is_pre_order=p.is_pre_order,
        created_at=p.created_at,
    )


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    p = Product(**payload.model_dump())
    db.add(p)
    db.flush()

    log_event(
        db=db,
        actor=current_user,
        action="PRODUCT_CREATED",
        entity_type="product",
        entity_id=p.id,
        metadata={"name": p.name, "stock": p.stock},
    )

    db.commit()
    db.refresh(p)
    return product_out(p)


@router.get("", response_model=list[ProductOut])
def list_products(
    available_only: bool = Query(default=True),
    db: Session = Depends(get_db),
):
    q = db.query(Product)
    if available_only:
        q = q.filter(Product.is_available.is_(True))
    return [product_out(p) for p in q.order_by(Product.name.asc()).all()]
