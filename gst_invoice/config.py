"""Runtime configuration for the CLI and API.

All settings can be overridden via environment variables with the prefix
``GST_INVOICE_`` (e.g. ``GST_INVOICE_LOG_LEVEL=DEBUG``) or a ``.env`` file.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GST_INVOICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Persistence
    storage_path: Path = Field(
        default=Path("invoices.json"),
        description="JSON file holding saved invoices for all users",
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Signed-in user; saving and history require one",
    )

    # New draft defaults
    seller_name: str = Field(default="Your Business Name")
    default_state: str = Field(default="Maharashtra")
    invoice_prefix: str = Field(default="INV-")
    default_notes: str = Field(default="Thank you for your business.")
    default_terms: str = Field(default="Payment due within 15 days.")

    # Share links
    share_base_url: str = Field(
        default="http://localhost:8000/",
        description="Base URL the '#data=' fragment is appended to",
    )
    share_url_limit: int = Field(
        default=8000,
        description="Longest share link accepted, in characters",
    )


def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
