from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config import settings
from shared.config.database import engine, Base
from shared.errors import register_error_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.user_service import models as user_models
from services.menu_service import models as menu_models
from services.order_service import models as order_models
from services.payment_service import models as payment_models

from services.user_service.router import public_router as auth_router, router as users_admin_router
from services.menu_service.router import public_router as menu_router, router as menu_admin_router
from services.order_service.router import checkout_router, router as orders_admin_router

app = FastAPI(
    title="Restaurant Ordering API",
    version="1.0.0",
    description="Public catalog, checkout and back-office management for a single restaurant.",
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, settings.SERVICE_NAME)

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- ERROR TAXONOMY ---
register_error_handlers(app)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

@app.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "restaurant", "status": "running"}

app.include_router(auth_router)
app.include_router(menu_router)
app.include_router(checkout_router)
app.include_router(users_admin_router)
app.include_router(menu_admin_router)
app.include_router(orders_admin_router)

if not settings.IMAGE_STORE_URL and settings.MEDIA_URL.startswith("/"):
    # Local image store: serve uploaded menu images directly
    Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
    app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT), name="media")
