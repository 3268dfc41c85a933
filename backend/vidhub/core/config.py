# vidhub/core/config.py
from __future__ import annotations

import os
import re
from datetime import timedelta
from urllib.parse import quote_plus

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(value: str) -> timedelta:
    """
    Parse an expiry string such as "15m", "10d", "1h", "30s" or "900".
    A bare number is seconds.
    """
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    seconds = int(amount) * _DURATION_UNITS[unit.lower()]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


class Settings:
    def __init__(self) -> None:
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod | test
        if self.ENV != "prod":
            # Load .env only outside prod so deployed config can't be influenced by local files.
            load_dotenv()

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
        self.DB_HOST = os.getenv("DB_HOST", "")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "")
        self.DB_APP_USER = os.getenv("DB_APP_USER", "")
        self.DB_APP_PASSWORD = os.getenv("DB_APP_PASSWORD", "")
        self.DB_SSLMODE = os.getenv("DB_SSLMODE", "require").strip().lower()
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.DB_CONNECT_TIMEOUT_SECONDS = int(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", "10"))

        # ----------------------------
        # Auth / JWT
        # ----------------------------
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "")
        self.JWT_ACCESS_EXPIRY = os.getenv("JWT_ACCESS_EXPIRY", "15m")
        self.JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")
        self.JWT_REFRESH_EXPIRY = os.getenv("JWT_REFRESH_EXPIRY", "10d")

        self.COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")
        self.COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN", "") or None

        # ----------------------------
        # Password policy / one-time codes
        # ----------------------------
        self.PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))
        self.VERIFICATION_CODE_TTL_MINUTES = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "15"))

        # ----------------------------
        # CORS
        # ----------------------------
        dev_defaults = [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        if self.ENV == "prod":
            self.CORS_ORIGINS = merge_unique(cors_from_env)
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env + dev_defaults)

        # ----------------------------
        # Email delivery
        # ----------------------------
        self.EMAIL_ENABLED = str_to_bool(os.getenv("EMAIL_ENABLED"), default=False)
        self.EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "resend").strip().lower()
        self.FROM_EMAIL = os.getenv("FROM_EMAIL", "onboarding@resend.dev")
        self.RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")

        self.SMTP_HOST = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
        self.SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_USE_TLS = str_to_bool(os.getenv("SMTP_USE_TLS", "true"), default=True)

        # ----------------------------
        # Media storage (S3)
        # ----------------------------
        self.AWS_REGION = os.getenv("AWS_REGION", "")
        self.S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "")
        self.S3_PREFIX = os.getenv("S3_PREFIX", "media").strip().strip("/")
        self.MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "").strip().rstrip("/")
        self.MAX_VIDEO_BYTES = int(os.getenv("MAX_VIDEO_BYTES", str(100 * 1024 * 1024)))
        self.MAX_THUMBNAIL_BYTES = int(os.getenv("MAX_THUMBNAIL_BYTES", str(5 * 1024 * 1024)))

        # ----------------------------
        # Rate limiting
        # ----------------------------
        self.ENABLE_RATE_LIMITING = str_to_bool(os.getenv("ENABLE_RATE_LIMITING", "false"))

        self._validate_prod()

    def _validate_prod(self) -> None:
        if self.ENV != "prod":
            return

        missing: list[str] = []

        if not self.JWT_ACCESS_SECRET:
            missing.append("JWT_ACCESS_SECRET")
        if not self.JWT_REFRESH_SECRET:
            missing.append("JWT_REFRESH_SECRET")
        if not self.DATABASE_URL:
            for key in ("DB_HOST", "DB_NAME", "DB_APP_USER", "DB_APP_PASSWORD"):
                if not getattr(self, key):
                    missing.append(key)
        if not self.CORS_ORIGINS:
            missing.append("CORS_ORIGINS")

        if self.JWT_ACCESS_SECRET and self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ in prod")

        cors_joined = ",".join(self.CORS_ORIGINS)
        if "localhost" in cors_joined or "127.0.0.1" in cors_joined:
            raise RuntimeError("CORS_ORIGINS contains localhost/dev origins in prod")

        if missing:
            raise RuntimeError(f"Missing required prod env vars: {', '.join(missing)}")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_ACCESS_EXPIRY)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_REFRESH_EXPIRY)

    @property
    def verification_code_ttl(self) -> timedelta:
        return timedelta(minutes=max(1, self.VERIFICATION_CODE_TTL_MINUTES))

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        encoded_password = quote_plus(self.DB_APP_PASSWORD)
        return (
            f"postgresql+psycopg2://{self.DB_APP_USER}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?sslmode={self.DB_SSLMODE}"
        )

    def require_jwt_secrets(self) -> None:
        if not self.JWT_ACCESS_SECRET or not self.JWT_ACCESS_SECRET.strip():
            raise RuntimeError("JWT_ACCESS_SECRET must be set")
        if not self.JWT_REFRESH_SECRET or not self.JWT_REFRESH_SECRET.strip():
            raise RuntimeError("JWT_REFRESH_SECRET must be set")
        # Fail at startup rather than on the first login.
        parse_duration(self.JWT_ACCESS_EXPIRY)
        parse_duration(self.JWT_REFRESH_EXPIRY)
