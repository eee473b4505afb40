"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from quotedesk.api.routes import router
from quotedesk.config.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield


app = FastAPI(title="quotedesk", version="0.1.0", lifespan=lifespan)
app.include_router(router)
