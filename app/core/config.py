import os
from pathlib import Path

from dotenv import load_dotenv

# ✅ Load .env from project root
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./milan.db")

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
VENDOR_VERIFY_TOKEN_HOURS = int(os.getenv("VENDOR_VERIFY_TOKEN_HOURS", "24"))

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "bdt")

# ✅ Email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Milan <noreply@milan.app>")

# ✅ Uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

# ✅ Frontend / CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Run Alembic migrations at startup instead of create_all
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# Seconds between sweeps that expire lapsed vendor subscriptions (0 disables)
SUBSCRIPTION_SWEEP_SECONDS = int(os.getenv("SUBSCRIPTION_SWEEP_SECONDS", "3600"))
