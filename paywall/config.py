import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

DATABASE_URL = os.getenv("DATABASE_URL")

PAKASIR_BASE_URL = os.getenv("PAKASIR_BASE_URL", "https://app.pakasir.com").rstrip("/")
PAKASIR_PROJECT = os.getenv("PAKASIR_PROJECT", "movie18")
PAKASIR_TIMEOUT = float(os.getenv("PAKASIR_TIMEOUT", "20"))

CLIENT_ID_COOKIE = os.getenv("CLIENT_ID_COOKIE", "movie_user_id")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# Secrets are read at call time so tests and reloads pick up env changes.
def pakasir_api_key():
    return os.getenv("PAKASIR_API_KEY")


def webhook_secret():
    return os.getenv("PAKASIR_WEBHOOK_SECRET")


def jwt_secret():
    return os.getenv("JWT_SECRET")


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
