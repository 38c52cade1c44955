import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playoffs.database import init_db
from playoffs.routes import playoffs

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Playoff Bracket API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Playoff generation, advancement, view and delete
app.include_router(playoffs.router, prefix="/api", tags=["playoffs"])


@app.on_event("startup")
def on_startup():
    init_db()  # imports models and creates tables
    logger.info("Registered %d routes", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Playoff Bracket API", "status": "healthy"}
