from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging import configure_logging
from .routers import register_routers
from .routers.transactions import DUPLICATE_HEADER

configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

# CORS (프론트엔드 연결)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[DUPLICATE_HEADER],
)


@app.get("/health")
def health():
    return {"status": "ok"}


register_routers(app)
