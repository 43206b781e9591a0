from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Storefront Backend",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
    }
