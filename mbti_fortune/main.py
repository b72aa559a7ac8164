import os
import logging
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]

# Load environment variables from .env file
load_dotenv(REPO_ROOT / ".env")

from mbti_fortune.errors import install_error_handlers
from mbti_fortune.routes.fortune_routes import router as fortune_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

FRONTEND_DIR = Path(os.getenv("FRONTEND_DIR", REPO_ROOT / "frontend"))

app = FastAPI(title="MBTI Fortune Teller", version="0.1.0")

app.include_router(fortune_router)
install_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def index():
    return FileResponse(FRONTEND_DIR / "index.html")


@app.get("/app.js")
def app_js():
    return FileResponse(FRONTEND_DIR / "app.js", media_type="application/javascript")


@app.get("/health")
def health():
    return {"ok": True}
