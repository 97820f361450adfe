from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Server Front API"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./serverfront.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    base_path: str = "/core/v1"
    public_base_url: str = "http://localhost:3005"

    # Blob storage for assessment uploads
    upload_bucket: str = "test-gnc-data"
    upload_dir: str = "./uploads"

    # Placeholder adjudication until manual review exists
    auto_adjudicate: bool = True
    rating_min: int = 1
    rating_max: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()
