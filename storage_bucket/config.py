from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Local Storage Bucket API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    LOG_LEVEL: str = "INFO"

    # Database settings
    DATABASE_URL: str = "sqlite:///./storage.db"

    # Storage settings
    UPLOAD_DIR: str = "./uploads"
    MAX_FILE_SIZE: int = 100 * 1024 * 1024  # bytes
    MAX_FILES_PER_UPLOAD: int = 10

    # CORS settings
    CORS_ORIGINS: list[str] = ["*"]

    # Rate limiting settings
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # Dashboard auth settings
    AUTH_ENABLED: bool = False
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD_HASH: str = ""
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 12 * 60

    # "env_file": ".env"：從.env檔案讀取環境變數
    # "extra": "ignore"：環境變數裡有、但Settings類別沒定義的欄位直接忽略
    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
