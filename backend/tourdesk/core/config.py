from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from pathlib import Path
import json

DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
LOOPBACK_HOSTS = ("http://localhost:", "http://127.0.0.1:")

def split_list(value: Optional[str]) -> List[str]:
    """Comma/space separated string or JSON array -> list of non-empty strings."""
    s = (value or "").strip()
    if s.startswith("[") and s.endswith("]"):
        try:
            loaded = json.loads(s)
        except ValueError:
            loaded = None
        if isinstance(loaded, list):
            return [str(e).strip() for e in loaded if str(e).strip()]
    return [e for e in s.replace(" ", ",").split(",") if e]

class Settings(BaseSettings):
    app_name: str = Field(default="TourDesk API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # JWT
    secret_key: str = Field(default="devsecret", alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Role assignment at registration and CORS, kept raw and split on access
    admin_emails_raw: Optional[str] = Field(default=None, alias="ADMIN_EMAILS")
    vadmin_emails_raw: Optional[str] = Field(default=None, alias="VADMIN_EMAILS")
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS")

    # Dev seed accounts
    seed_admin_email: Optional[str] = Field(default=None, alias="SEED_ADMIN_EMAIL")
    seed_admin_password: Optional[str] = Field(default=None, alias="SEED_ADMIN_PASSWORD")
    seed_vadmin_email: Optional[str] = Field(default=None, alias="SEED_VADMIN_EMAIL")
    seed_vadmin_password: Optional[str] = Field(default=None, alias="SEED_VADMIN_PASSWORD")

    # Public approval / seat selection links
    approval_link_days: int = Field(default=7, alias="APPROVAL_LINK_DAYS")
    selection_throttle_seconds: float = Field(default=2.0, alias="SELECTION_THROTTLE_SECONDS")
    housekeeping_interval_seconds: int = Field(default=300, alias="HOUSEKEEPING_INTERVAL_SECONDS")

    # Manifest branding
    agency_name: str = Field(default="RODA BEM TURISMO", alias="AGENCY_NAME")
    agency_tagline: str = Field(default="Agência de Viagens e Turismo", alias="AGENCY_TAGLINE")
    agency_footer: str = Field(default="RODA BEM TURISMO | contato@rodabemturismo.com", alias="AGENCY_FOOTER")

    class Config:
        # backend/.env regardless of CWD
        env_file = str(Path(__file__).resolve().parents[2] / ".env")
        case_sensitive = False
        populate_by_name = True

    @property
    def is_dev(self) -> bool:
        return self.env.lower() in {"dev", "development"}

    @property
    def is_prod(self) -> bool:
        return self.env.lower() == "prod"

    @property
    def admin_emails(self) -> List[str]:
        return [e.lower() for e in split_list(self.admin_emails_raw)]

    @property
    def vadmin_emails(self) -> List[str]:
        return [e.lower() for e in split_list(self.vadmin_emails_raw)]

    @property
    def cors_origins(self) -> List[str]:
        origins = split_list(self.cors_origins_raw)
        if not origins:
            return list(DEV_ORIGINS)
        # a loopback origin is allowed under both names
        extra = set()
        for origin in origins:
            for prefix in LOOPBACK_HOSTS:
                if origin.startswith(prefix):
                    port = origin[len(prefix):]
                    extra.update(f"{p}{port}" for p in LOOPBACK_HOSTS)
        return sorted(set(origins) | extra)

settings = Settings()  # type: ignore
