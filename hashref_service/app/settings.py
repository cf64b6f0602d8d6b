from __future__ import annotations

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HASHREF_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    service_name: str = "hashref-service"
    host: str = "0.0.0.0"
    port: int = 8090
    api_token: str = "dev-hashref-token"
    workspace_root: str = "."
    max_read_lines: int = Field(default=2000, ge=1)
    max_read_bytes: int = Field(default=500_000, ge=1)
    # 해시 테이블이 있는 파일에 old_string 편집을 거부할지 여부예요.
    enforce_hash_protocol: bool = True
    expand_line_ranges: bool = True
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip().upper()
        return "INFO"

    @model_validator(mode="after")
    def _warn_insecure_token(self) -> "Settings":
        """개발용 기본 토큰이 프로덕션에서 그대로 쓰이지 않도록 경고를 남겨요."""
        import logging

        _log = logging.getLogger("hashref_service.settings")
        if self.api_token in {"dev-hashref-token", ""}:
            _log.warning("HASHREF_API_TOKEN이 기본값이에요. 프로덕션 환경에서는 반드시 교체해야 해요.")
        return self


settings = Settings()
