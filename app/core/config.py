from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # postgresql+asyncpg://... in production, sqlite+aiosqlite:///... for tests
    DATABASE_URL: str

    # If DEV and you hit SSL cert issues with the pooler, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True
    SQL_ECHO: bool = False

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    ENV: str = "dev"  # "dev" or "prod"

    # --- ROLE EDITOR ---
    ROLE_AUTOSAVE_DELAY_SECONDS: float = 0.8

    # Seed the built-in roles for this store on startup (optional)
    SEED_STORE_ID: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
