from storefront.models.audit_event import AuditEvent
from storefront.models.cart_item import CartItem
from storefront.models.event_product import EventProduct
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.rbac import Role, UserRole
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User

__all__ = [ "AuditEvent", "CartItem", "EventProduct",
           "Order", "OrderItem", "Product", "Role", "UserRole",
           "ShopEvent", "User" ]
