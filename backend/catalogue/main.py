# backend/catalogue/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .database import engine
from . import models
from .api import catalogues, orders, sessions, settings as settings_api
from .config import settings
from .services.sessions import session_registry
from .utils.logging import db_logger

# Create all tables on startup
models.Base.metadata.create_all(bind=engine)
db_logger.info("Database tables ready", extra={"tables": sorted(models.Base.metadata.tables)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Abandon in-flight page loads of every open browsing session
    session_registry.close_all()


app = FastAPI(title="Catalogue Ordering API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Content store: uploaded catalogues are served from here
app.mount("/storage", StaticFiles(directory=str(settings.STORAGE_PATH)), name="storage")

app.include_router(catalogues.router)
app.include_router(sessions.router)
app.include_router(orders.router)
app.include_router(settings_api.router)

@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Expose-Headers"] = "Content-Type, Content-Length, Content-Disposition"
    return response

@app.get("/")
async def root():
    return {"message": "Catalogue Ordering API is running"}
