import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]
load_dotenv(BASE_DIR / ".env")

DB_PATH = Path(os.getenv("DATABASE_PATH", str(BASE_DIR / "camino_seguro.db")))
SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
TOKEN_EXPIRE_HOURS = int(os.getenv("TOKEN_EXPIRE_HOURS", "720"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@caminoseguro.pe")
AUTHORITY_EMAIL = os.getenv("AUTHORITY_EMAIL", "autoridad@caminoseguro.pe")
SEED_PASSWORD = os.getenv("ADMIN_PASSWORD", "password123")

DB_PATH.parent.mkdir(parents=True, exist_ok=True)
