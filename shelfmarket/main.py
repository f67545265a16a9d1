import logging

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .lifecycle import TRANSITIONS
from .routers import (
    checkout,
    companies,
    coupons,
    invoices,
    orders,
    services,
    support,
    transfer_forms,
    users,
    wallets,
)
from .routers.common import not_found

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="shelfmarket")

app.include_router(companies.router)
app.include_router(checkout.router)
app.include_router(coupons.router)
app.include_router(orders.router)
app.include_router(invoices.router)
app.include_router(services.router)
app.include_router(services.orders_router)
app.include_router(transfer_forms.router)
app.include_router(wallets.router)
app.include_router(support.router)
app.include_router(users.router)


@app.get("/api/ping")
def ping() -> dict:
    return {"message": "pong"}


@app.get("/api/health")
def health(db: Session = Depends(get_db)) -> dict:
    db.execute(text("SELECT 1"))
    return {"status": "ok"}


@app.get("/api/transitions/{entity}")
def transitions(entity: str):
    rules = TRANSITIONS.get(entity)
    if rules is None:
        return not_found("Entity")
    return {status: sorted(targets) for status, targets in rules.items()}
