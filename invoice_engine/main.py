from fastapi import FastAPI

from invoice_engine.api import company, health, reminders, totals
from invoice_engine.core.logging_setup import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Invoice Engine", version="0.1.0")

    # Routers
    app.include_router(health.router, tags=["health"])
    app.include_router(totals.router, tags=["totals"])
    app.include_router(reminders.router, tags=["reminders"])
    app.include_router(company.router, prefix="/company", tags=["company"])

    return app


app = create_app()
