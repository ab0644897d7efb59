from pathlib import Path
from dotenv import load_dotenv
import os


ROOT_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(ROOT_DIR / ".env")

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "clinic_db")

# Tokens are issued by the portal's auth service; this service only verifies them
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Session times without an offset are wall-clock times at the clinic
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Colombo")
CURRENCY_PREFIX = os.getenv("CURRENCY_PREFIX", "Rs.")

# Cancellation refund policy
REFUND_POLICY_VERSION = os.getenv("REFUND_POLICY_VERSION", "2024-01")
REFUND_FULL_REFUND_HOURS = float(os.getenv("REFUND_FULL_REFUND_HOURS", "24"))
REFUND_FULL_PERCENTAGE = int(os.getenv("REFUND_FULL_PERCENTAGE", "100"))
# Tier from the start of the session up to the full-refund threshold
REFUND_PARTIAL_PERCENTAGE = int(os.getenv("REFUND_PARTIAL_PERCENTAGE", "60"))

DOCUMENTATION_LOOKBACK_DAYS = int(os.getenv("DOCUMENTATION_LOOKBACK_DAYS", "7"))
DOCUMENTATION_REMINDER_INTERVAL_HOURS = int(os.getenv("DOCUMENTATION_REMINDER_INTERVAL_HOURS", "24"))

SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
FROM_EMAIL = os.getenv("FROM_EMAIL", "Clinic <no-reply@clinic.lk>")
NOTIFY_PROVIDER = os.getenv("NOTIFY_PROVIDER", "email")
