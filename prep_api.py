"""
CSS/PMS Prep API — Main Application
FastAPI application for the exam-preparation backend.
Manages subjects, topics and study materials, quizzes, essays, and AI-assisted content generation.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth.security import hash_password
from database.database import engine, Base, SessionLocal
from database.models import User, UserRole
from generation.exceptions import GenerationServiceUnconfigured
from generation.llm_client import GenerationClient
from routers import subjects, topics, materials, essays, quiz, ai, admin
from routers import auth as auth_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s  %(levelname)s  %(name)s  %(message)s",
)
log = logging.getLogger("prep_api")


def _seed_defaults():
    """Create the default admin account if no admin exists yet."""
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        return

    db = SessionLocal()
    try:
        if db.query(User).filter(User.role == UserRole.ADMIN).count() == 0:
            db.add(User(
                email=email,
                hashed_password=hash_password(password),
                full_name="Admin",
                role=UserRole.ADMIN,
                is_active=True,
            ))
            db.commit()
            log.info(f"Default admin created: {email}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables + seed defaults + build the Gemini client (if a key is set)."""
    Base.metadata.create_all(bind=engine)
    _seed_defaults()
    try:
        app.state.generation_client = GenerationClient.from_env()
    except GenerationServiceUnconfigured as e:
        log.warning(f"AI generation disabled: {e}")
        app.state.generation_client = None
    yield
    if app.state.generation_client is not None:
        await app.state.generation_client.aclose()


app = FastAPI(
    title="CSS/PMS Prep API",
    description="Study content, quizzes, essays and AI-generated MCQs for CSS/PMS aspirants",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(auth_router.router)        # /auth/*

# Study content
app.include_router(subjects.router)
app.include_router(topics.router)
app.include_router(materials.router)

# Candidate activity
app.include_router(essays.router)
app.include_router(quiz.router)

# AI generation + admin
app.include_router(ai.router)
app.include_router(admin.router)


@app.get("/")
def root():
    return {
        "name": "CSS/PMS Prep API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "auth": "/auth",
            "subjects": "/subjects",
            "topics": "/topics",
            "materials": "/materials",
            "quiz": "/quiz",
            "ai": "/ai",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "css-prep-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8001")))
