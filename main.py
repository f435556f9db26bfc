# -*- coding: utf-8 -*-
"""
Main FastAPI application of the tutoring center administration backend.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.background import BackgroundTask

from tutorcenter.config import settings
from tutorcenter.database import engine, Base, SessionLocal
from tutorcenter.models import student, tutor_class, enrollment, payment, generation_status
from tutorcenter.routes import payments_fastapi, system_fastapi
from tutorcenter.services.payment_scheduler import GenerationCheckState, run_scheduled_check


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("tutorcenter")

# Create tables on startup
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully")
except Exception as e:
    logger.error(f"Error creating tables: {e}")


env = settings.ENVIRONMENT

app = FastAPI(
    title="Tutoring Center API",
    description="Administrative API for a tutoring center: enrollments and monthly payments",
    version="1.0.0",
    docs_url="/docs" if env != "production" else None,
    redoc_url="/redoc" if env != "production" else None,
    openapi_url="/openapi.json" if env != "production" else None
)

origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",
    "http://localhost",
    "http://127.0.0.1",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session factory and "last checked" state used by the monthly check
app.state.session_factory = SessionLocal
app.state.generation_check_state = GenerationCheckState()


@app.middleware("http")
async def payment_generation_check(request: Request, call_next):
    """
    At most once per interval, checks after the response is sent that the
    current month has been billed. The request is never delayed or failed by it.
    """
    response = await call_next(request)
    if request.app.state.generation_check_state.should_check():
        response.background = BackgroundTask(run_scheduled_check, request.app.state.session_factory)
        logger.info("Triggered payment generation check")
    return response


# Routers
app.include_router(payments_fastapi.router, prefix="/api/v1/payments")
app.include_router(system_fastapi.router, prefix="/api/v1/system/payments")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Tutoring Center API",
        "documentation": "/docs",
        "endpoints": [
            {"payments": "/api/v1/payments"},
            {"generation": "/api/v1/payments/generate"},
            {"system": "/api/v1/system/payments"}
        ]
    }
