"""
Storefront - Centralized Configuration
=======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")

    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)

    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")
OTP_SECRET = os.getenv("OTP_SECRET")

if not all([SECRET_KEY, OTP_SECRET]):
    print("[ERROR] Critical: Security keys missing in .env (SECRET_KEY, OTP_SECRET)")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES") or 60 * 24)  # 24 hours

AUTH_COOKIE_NAME = "access_token"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "strict")


# ==========================================
# 💳 Payment Gateway
# ==========================================
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "paystack")
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT") or 15)
CURRENCY = os.getenv("CURRENCY", "NGN")


# ==========================================
# ✉️ Mail (password reset codes)
# ==========================================
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@storefront.local")


# ==========================================
# 📁 File Upload
# ==========================================
STATIC_DIR = os.getenv("STATIC_DIR", "public")
STATIC_URL_PREFIX = "/public"
UPLOAD_SUBDIR = "uploads"
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB
DEFAULT_IMAGE_MAX_SIZE = (800, 800)


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OTP Settings
OTP_LENGTH = 6
OTP_EXPIRE_MINUTES = 10

# Catalog
LOW_STOCK_THRESHOLD = 10
MAX_PAGE_SIZE = 100

# Base URL for callbacks
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")
