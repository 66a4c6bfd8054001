import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Default to local SQLite for dev/tests; override via env in Docker/Prod
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./tasktrail.db")

JWT_SECRET = os.environ.get("JWT_SECRET", "dev-only-secret-change-me-0123456789abcdef")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
JWT_SECRET_MIN_LENGTH = 32
ACCESS_TOKEN_EXPIRE_MINUTES = float(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60))
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 10))

S3_ENDPOINT = os.environ.get("S3_ENDPOINT", "http://localhost:9000")
S3_PUBLIC_ENDPOINT = os.environ.get("S3_PUBLIC_ENDPOINT", S3_ENDPOINT)
S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY", "")
S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY", "")
S3_BUCKET = os.environ.get("S3_BUCKET", "tasks")
S3_REGION = os.environ.get("S3_REGION", "us-east-1")

MAX_UPLOAD_SIZE = int(os.environ.get("MAX_UPLOAD_SIZE", 5 * 1024 * 1024))

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]
PORT = int(os.environ.get("PORT", 3000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Audit entries are append-only unless explicitly opened up for manual repair
AUDIT_LOG_MUTABLE = _env_bool("AUDIT_LOG_MUTABLE", False)


def validate_settings():
    """Fail fast on settings the service cannot run safely without."""
    if len(JWT_SECRET or "") < JWT_SECRET_MIN_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET must be at least {JWT_SECRET_MIN_LENGTH} characters long"
        )
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is required")
