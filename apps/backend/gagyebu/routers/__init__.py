"""Router aggregation: mount feature routers under ``/api``."""

from fastapi import FastAPI

from . import households, transactions


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    app.include_router(households.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")
