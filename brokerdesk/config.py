"""Configuration management for the BrokerDesk service."""
from functools import lru_cache
from typing import Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading (BROKERDESK_*)."""

    model_config = SettingsConfigDict(
        env_prefix="BROKERDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="BrokerDesk Claims & Approvals", description="Service title")
    version: str = Field(default="1.0.0")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Organisation
    organization_id: str = Field(default="default-org")
    organization_name: str = Field(default="", description="Claim numbers are prefixed with its first 3 letters")
    default_actor: str = Field(default="system", description="Actor recorded when a request names none")

    # Notification contacts, JSON objects when set from the environment
    approver_contacts: Dict[str, str] = Field(default_factory=dict, description="Approver role id -> email")
    adjuster_contacts: Dict[str, str] = Field(default_factory=dict, description="Adjuster user id -> email")

    # Actionable insight thresholds (days)
    idle_after_days: int = Field(default=3, ge=1)
    registered_sla_days: int = Field(default=2, ge=1)
    investigating_sla_days: int = Field(default=5, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
