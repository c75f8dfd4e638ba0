"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time, timedelta
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import WorkingHours
from .domain.timezones import is_valid_timezone

CONFIG_PATH_ENV = "CONSULTSLOT_CONFIG"

# Secrets may be kept out of the YAML file and supplied through the environment.
SECRET_ENV_VARS = {
    ("calendar", "client_secret"): "GRAPH_CLIENT_SECRET",
    ("notifications", "brevo_api_key"): "BREVO_API_KEY",
    ("crm", "jotform_api_key"): "JOTFORM_API_KEY",
}


class CalendarConfig(BaseModel):
    """Microsoft Graph app registration and the mailbox that takes bookings."""
    client_id: str = ""
    tenant_id: str = ""
    client_secret: str = ""
    resource_id: str = ""  # Mailbox address of the calendar owner

    def get_authority_url(self) -> str:
        """Get the formatted authority URL."""
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    def is_configured(self) -> bool:
        return all((self.client_id, self.tenant_id, self.client_secret, self.resource_id))


class BusinessHoursConfig(BaseModel):
    """Working hours and slot layout in the business timezone."""
    timezone: str = "Asia/Kuala_Lumpur"
    start_time: time = time(hour=9, minute=0)
    end_time: time = time(hour=17, minute=0)
    slot_duration_minutes: int = 20
    step_minutes: int = 30
    max_range_days: int = 31

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the business timezone is a known IANA name."""
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: '{value}'")
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def reject_sexagesimal(cls, value):
        """YAML 1.1 reads unquoted ``17:00`` as the integer 1020."""
        if isinstance(value, int):
            raise ValueError("times must be quoted strings such as '17:00'")
        return value

    @field_validator("slot_duration_minutes", "step_minutes", "max_range_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and limits are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "BusinessHoursConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self

    def get_working_hours(self) -> WorkingHours:
        return WorkingHours(
            start_time=self.start_time,
            end_time=self.end_time,
            timezone=self.timezone,
        )

    def get_slot_duration(self) -> timedelta:
        return timedelta(minutes=self.slot_duration_minutes)

    def get_step_interval(self) -> timedelta:
        return timedelta(minutes=self.step_minutes)


class BookingConfig(BaseModel):
    """Limits applied to calls made while booking."""
    call_timeout_seconds: float = 30.0

    @field_validator("call_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("call_timeout_seconds must be greater than zero")
        return value


class NotificationConfig(BaseModel):
    """Brevo credentials and sender identities."""
    brevo_api_key: Optional[str] = None
    sender_email: Optional[str] = None
    sender_name: str = "SEO-ku Consulting"
    system_sender_name: str = "SEO-ku Booking System"
    operator_email: Optional[str] = None
    brand_name: str = "SEO-ku"
    logo_url: Optional[str] = None

    def is_configured(self) -> bool:
        return bool(self.brevo_api_key and self.sender_email)


class CrmConfig(BaseModel):
    """Jotform credentials for the CRM submission."""
    jotform_api_key: Optional[str] = None
    form_id: Optional[str] = None
    base_url: str = "https://api.jotform.com"

    def is_configured(self) -> bool:
        return bool(self.jotform_api_key and self.form_id)


class AppConfig(BaseModel):
    """Application configuration."""
    calendar: CalendarConfig = Field(default_factory=CalendarConfig)
    business: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    crm: CrmConfig = Field(default_factory=CrmConfig)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Secret values missing from the file are taken from the environment
        (``GRAPH_CLIENT_SECRET``, ``BREVO_API_KEY``, ``JOTFORM_API_KEY``).

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**apply_env_overrides(data))


def apply_env_overrides(data: dict) -> dict:
    """Fill unset secret fields from their environment variables."""
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in data.items()}

    for (section, key), env_var in SECRET_ENV_VARS.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        section_data = merged.setdefault(section, {})
        if isinstance(section_data, dict) and not section_data.get(key):
            section_data[key] = value

    return merged


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)

    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
