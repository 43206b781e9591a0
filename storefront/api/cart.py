from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.core.lookup import get_or_404, parse_uuid_or_404
from storefront.core.security import get_current_user
from storefront.db.session import get_db
from storefront.models.cart_item import CartItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.cart import CartItemAdd, CartItemOut

router = APIRouter(prefix="/cart", tags=["cart"])


def cart_item_out(c: CartItem) -> CartItemOut:
    return CartItemOut(
        id=str(c.id),
        product_id=str(c.product_id),
        product_name=c.product.name,
        quantity=c.quantity,
        size=c.size,
        unit_price=c.product.price,
    )


@router.get("", response_model=list[CartItemOut])
def get_cart(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = (
        db.query(CartItem)
        .filter(CartItem.user_id == user.id)
        .order_by(CartItem.created_at.asc())
        .all()
    )
    return [cart_item_out(c) for c in rows]


@router.post("", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartItemAdd,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    product = get_or_404(db, Product, payload.product_id, "Product")
    if not product.is_available:
        raise HTTPException(status_code=409, detail="Product is not available")

    existing = (
        db.query(CartItem)
        .filter(
            CartItem.user_id == user.id,
            CartItem.product_id == product.id,
            CartItem.size == payload.size if payload.size is not None else CartItem.size.is_(None),
        )
        .one_or_none()
    )
    quantity = payload.quantity + (existing.quantity if existing else 0)

    # advisory; the authoritative check happens at order creation
    if not product.is_pre_order and product.stock is not None and product.stock < quantity:
        raise HTTPException(status_code=409, detail="Insufficient stock")

    if existing:
        existing.quantity = quantity
        item = existing
    else:
        item = CartItem(user_id=user.id, product_id=product.id, quantity=quantity, size=payload.size)
        db.add(item)

    db.commit()
    db.refresh(item)
    return cart_item_out(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_cart(
    item_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    item = db.get(CartItem, parse_uuid_or_404(item_id, "Cart item"))
    if not item or item.user_id != user.id:
        raise HTTPException(status_code=404, detail="Cart item not found")
    db.delete(item)
    db.commit()
