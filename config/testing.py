import os

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_HOURS = 1

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance_test"),
    "pool_size": 2,
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
ADMIN_NAME = "Administrator"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"

DEFAULT_STUDENT_PASSWORD = "password123"

FRONTEND_URL = "http://localhost:5173"
CORS_ORIGINS = [FRONTEND_URL]
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads/avatars")

SMTP_HOST = ""
SMTP_PORT = 587
SMTP_USERNAME = ""
SMTP_PASSWORD = ""
SMTP_USE_TLS = False
MAIL_SENDER = "Class Attendance <no-reply@example.com>"
