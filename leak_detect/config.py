"""
Configuration for leak detection.

Uses ``pydantic_settings.BaseSettings`` for environment variable
and ``.env`` file binding, type coercion, and validation.
"""

from __future__ import annotations

import pydantic
import pydantic_settings

from leak_detect.models import leaks

DEFAULT_FILL_EMAIL = "leak-detector@example.com"
DEFAULT_FILL_PASSWORD = "The--P4ssw0rd.L3ak-Det3ct"


class FillValues(pydantic_settings.BaseSettings):
    """Values the crawler typed into the page's fields.

    Attributes:
        email: Value entered into email fields.
        password: Value entered into password fields.
    """

    model_config = pydantic_settings.SettingsConfigDict(
        populate_by_name=True, env_file=".env", extra="ignore"
    )

    email: str = pydantic.Field(
        default=DEFAULT_FILL_EMAIL, validation_alias="LEAK_DETECT_FILL_EMAIL"
    )
    password: str = pydantic.Field(
        default=DEFAULT_FILL_PASSWORD, validation_alias="LEAK_DETECT_FILL_PASSWORD"
    )

    def secrets(self) -> list[leaks.TrackedSecret]:
        """Return the tracked secrets in report order (password first)."""
        return [
            leaks.TrackedSecret(type="password", value=self.password),
            leaks.TrackedSecret(type="email", value=self.email),
        ]

    def validate_config(self) -> str | None:
        """Return an error message when the values cannot be told apart."""
        if not self.email or not self.password:
            return "Both LEAK_DETECT_FILL_EMAIL and LEAK_DETECT_FILL_PASSWORD must be non-empty"
        if self.email == self.password:
            return "The fill email and password must differ, or leaks cannot be attributed"
        return None


class StreamSettings(pydantic_settings.BaseSettings):
    """Settings for reading protocol streams such as response bodies.

    Attributes:
        timeout_ms: Overall deadline for reading one stream, or
            ``None`` to wait indefinitely.
    """

    model_config = pydantic_settings.SettingsConfigDict(
        populate_by_name=True, env_file=".env", extra="ignore"
    )

    timeout_ms: int | None = pydantic.Field(
        default=30000, validation_alias="LEAK_DETECT_STREAM_TIMEOUT_MS", gt=0
    )
