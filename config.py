"""
Application configuration, read once from the environment at import time.
"""

import os

STORE_NAME = os.getenv("STORE_NAME", "Artisan Store")
PRIMARY_CURRENCY = os.getenv("PRIMARY_CURRENCY", "INR")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8000"))

# Security
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Sample catalog and the bootstrap admin account
SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "1") == "1"
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@artisanstore.shop")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
DEMO_USER_EMAIL = os.getenv("DEMO_USER_EMAIL", "user@artisanstore.shop")
DEMO_USER_PASSWORD = os.getenv("DEMO_USER_PASSWORD", "user123")

# Email
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@artisanstore.shop")
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
