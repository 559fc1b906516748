"""Runtime settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, HttpUrl, ValidationError

from mailrelay.utils.env import get_bool_env, get_str_env


class RuntimeSettings(BaseModel):
    telegram_api_base: HttpUrl = Field(default="https://api.telegram.org")
    mail_provider_base: HttpUrl = Field(default="https://firemail.com.br/api")
    bot_token: Optional[str] = None
    store_path: Path = Field(default=Path("data.json"))
    store_key: Optional[str] = None
    audit_log_path: Path = Field(default=Path("artifacts/audit.log"))
    scan_interval_seconds: float = Field(default=4.0, gt=0)
    poll_interval_seconds: float = Field(default=0.8, gt=0)
    poll_timeout_seconds: int = Field(default=20, ge=0)
    http_timeout_seconds: float = Field(default=15.0, gt=0)
    preview_length: int = Field(default=400, ge=0)
    random_name_length: int = Field(default=10, ge=4, le=30)
    auto_scan_default: bool = True

    @classmethod
    def from_file(cls, path: Path) -> "RuntimeSettings":
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid runtime settings file {path}: {exc}") from exc
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid runtime settings: {exc}") from exc
        if not settings.store_path.is_absolute():
            settings.store_path = (path.parent / settings.store_path).resolve()
        if not settings.audit_log_path.is_absolute():
            settings.audit_log_path = (path.parent / settings.audit_log_path).resolve()
        return settings

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "RuntimeSettings":
        """Load settings from an optional YAML file, then apply environment overrides."""
        settings = cls.from_file(path) if path is not None else cls()
        updates = {}
        token = get_str_env("BOT_TOKEN")
        if token:
            updates["bot_token"] = token
        store_key = get_str_env("MAILRELAY_STORE_KEY")
        if store_key:
            updates["store_key"] = store_key
        audit_path = get_str_env("MAILRELAY_AUDIT_LOG")
        if audit_path:
            updates["audit_log_path"] = Path(audit_path)
        if os.getenv("MAILRELAY_AUTO_SCAN") is not None:
            updates["auto_scan_default"] = get_bool_env("MAILRELAY_AUTO_SCAN", default=True)
        return settings.model_copy(update=updates) if updates else settings

    def require_bot_token(self) -> str:
        if not self.bot_token:
            raise ValueError("BOT_TOKEN is not set; export it or add bot_token to the config file")
        return self.bot_token
