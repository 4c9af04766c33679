import os

# The app reads these at import time; real values come from .env in deployments.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_paywall.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAKASIR_API_KEY", "test-api-key")
