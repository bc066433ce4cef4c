# checkout/main.py
from fastapi import FastAPI
import uvicorn

from checkout.data.database import Base, engine
from checkout.api.routers import carts, health, orders, payments, products, users
from checkout.utils.logging import get_logger

#import wszystkich modeli PRZED create_all
import checkout.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db() -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    logger.info("Database tables created")


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
