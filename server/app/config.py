from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "PLY Decoder"
    data_dir: Path = Path(__file__).parent.parent / "data"
    max_upload_size_mb: int = 512
    decode_workers: int = 2
    log_level: str = "INFO"
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = {"env_prefix": "PLYDECODE_"}

    @property
    def ply_dir(self) -> Path:
        return self.data_dir / "ply"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


settings = Settings()
