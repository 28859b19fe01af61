from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./bugtracker.db"
    api_prefix: str = "/api/v1"

    jwt_secret: str = "dev-secret"
    jwt_expires_days: int = 30

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    # SMTP. Mail is disabled unless both user and password are set.
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = ""
    smtp_starttls: bool = True
    app_base_url: str = "http://localhost:5173"

    # DB bootstrap (dev only)
    auto_db_bootstrap: bool = False

    admin_email: str = ""
    admin_password: str = ""
    admin_name: str = "Administrator"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allow_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
