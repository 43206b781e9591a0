from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.admin_orders import router as admin_orders_router
from storefront.api.audit import router as audit_router
from storefront.api.cart import router as cart_router
from storefront.api.checkout import router as checkout_router
from storefront.api.events import router as events_router
from storefront.api.health import router as health_router
from storefront.api.products import router as products_router
from storefront.api.root import router as root_router
from storefront.core.config import settings
from storefront.core.logging import configure_logging

configure_logging()

app = FastAPI(title="Storefront")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_router)
app.include_router(health_router)
app.include_router(products_router)
app.include_router(events_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(admin_orders_router)
app.include_router(audit_router)
