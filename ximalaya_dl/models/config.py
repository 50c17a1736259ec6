"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_OUTPUT_DIR = "./downloads"


class DownloadConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Authentication
    cookie: str = Field(default="", repr=False)

    # Download Settings
    output_dir: str = DEFAULT_OUTPUT_DIR
    max_attempts: int = 3
    retry_delay: float = 0.0

    # Internal fields not loaded from INI file
    config_path: str = Field(default="", repr=False)
    start: Optional[int] = Field(default=None, repr=False)

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: str) -> str:
        if not v:
            raise ValueError("Output directory cannot be empty.")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        """Ensures a reasonable retry budget."""
        if v < 1 or v > 10:
            raise ValueError("Max attempts must be between 1 and 10.")
        return v

    @field_validator("retry_delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Retry delay cannot be negative.")
        return v

    @field_validator("start")
    @classmethod
    def validate_start(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Start index is 1-based and must be at least 1.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "start"}
        return {key for key in cls.model_fields if key not in internal_fields}
