from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "Gagyebu Backend"
    ENV: str = "dev"

    # 기본 SQLite 파일 DB (apps/backend/gagyebu.sqlite3 절대경로)
    _default_db_path = Path(__file__).resolve().parents[2] / "gagyebu.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    TIMEZONE: str = "Asia/Seoul"
    LOG_LEVEL: str = "INFO"

    # 중복 거래 감지 기본값 (요청별로 덮어쓸 수 있음)
    DUPLICATE_AMOUNT_TOLERANCE: float = 0.02
    DUPLICATE_DATE_TOLERANCE: int = 3
    DUPLICATE_DESCRIPTION_THRESHOLD: float = 0.7
    DUPLICATE_SMART_DETECTION: bool = True
    # 0이면 전체 이력과 비교
    DUPLICATE_LOOKBACK_DAYS: int = 0

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="GAGYEBU_", case_sensitive=False)


settings = Settings()
