from dotenv import load_dotenv
import os

load_dotenv()  # Loads variables from .env

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "database").strip().lower()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///linkportal.db")
DATA_DIR = os.getenv("DATA_DIR", "data")
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
REMEMBER_ME_EXPIRE_MINUTES = int(os.getenv("REMEMBER_ME_EXPIRE_MINUTES", 60 * 24 * 30))
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
PROTECTED_USERNAME = os.getenv("PROTECTED_USERNAME", ADMIN_USERNAME)
API_PREFIX = os.getenv("API_PREFIX", "/api").rstrip("/")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"^https://.*\.vercel\.app$")

SUGGESTED_CATEGORIES = [
    "Official",
    "Internal",
    "Support",
    "Resources",
    "Tools",
    "Social",
    "Development",
    "Finance",
]

def parse_cors_origins(value: str):
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]
