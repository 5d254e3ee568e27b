import os
from datetime import timedelta
from dotenv import load_dotenv


load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY"))
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "fallback-jwt")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///studently.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")
    FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
    AUDIT_LOG_FILE = os.getenv("AUDIT_LOG_FILE", os.path.join("logs", "audit.log"))
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_TOKEN_LOCATION = ["headers"]  # Authorization: Bearer <token>

    # Daily state thresholds on minutes_present / total_minutes
    ATTENDANCE_FULL_DAY_RATIO = float(os.getenv("ATTENDANCE_FULL_DAY_RATIO", "1.0"))
    ATTENDANCE_HALF_DAY_RATIO = float(os.getenv("ATTENDANCE_HALF_DAY_RATIO", "0.5"))
