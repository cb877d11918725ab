from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.db.database import engine, Base
from app.db import models  # noqa: F401  registers the tables on Base.metadata
from app.config import API_TITLE, API_DESCRIPTION, VERSION
from app.config.environment import APP_ENV
from app.config.logging import setup_logging
from app.controllers.auth_controller import router as auth_router
from app.controllers.user_controller import router as user_router
from app.controllers.movie_controller import router as movie_router
from app.controllers.review_controller import router as review_router
from app.controllers.admin_controller import router as admin_router
from app.controllers.errors import ServiceHTTPException, service_http_exception_handler

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=VERSION
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceHTTPException, service_http_exception_handler)

# include controllers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(movie_router)
app.include_router(review_router)
app.include_router(admin_router)


def init_db():
    Base.metadata.create_all(bind=engine)


@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"{API_TITLE} {VERSION} started ({APP_ENV})")


@app.get("/")
async def root():
    return {"message": API_TITLE}


@app.get("/health")
def health_check():
    return {"status": "healthy"}
