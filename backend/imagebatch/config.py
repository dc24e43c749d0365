from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from imagebatch.core.constants import (
    BATCH_GROUP_SIZE,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_PDF_IMAGE_QUALITY,
    MARGIN_SIZES_MM,
    MAX_FILE_SIZE,
)


class Settings(BaseSettings):
    # Application
    app_name: str = Field(default="Image Batch Converter", description="Application name")
    env: str = Field(
        default="development", description="Environment (development/production/testing)"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging Configuration
    json_logs: bool = Field(default=False, description="Render logs as JSON lines")
    logging_enabled: bool = Field(
        default=False, description="Enable rotating file logging"
    )
    log_dir: str = Field(default="./logs", description="Directory for log files")
    max_log_size_mb: int = Field(
        default=10, description="Maximum size of each log file in MB"
    )
    log_backup_count: int = Field(
        default=3, description="Number of backup log files to keep"
    )

    # Batch Processing
    batch_group_size: int = Field(
        default=BATCH_GROUP_SIZE,
        ge=1,
        description="Items converted concurrently before the next group starts",
    )
    jpeg_quality: float = Field(
        default=DEFAULT_JPEG_QUALITY, description="JPEG quality on a 0-1 scale"
    )

    # Document Assembly
    pdf_image_quality: float = Field(
        default=DEFAULT_PDF_IMAGE_QUALITY,
        description="Quality of images embedded in PDF pages (0-1)",
    )
    default_margin: Literal["none", "small", "big"] = Field(
        default="small", description="Default page margin"
    )
    default_orientation: Literal["portrait", "landscape"] = Field(
        default="portrait", description="Default page orientation"
    )

    # Output
    archive_collision_policy: Literal["suffix", "overwrite"] = Field(
        default="suffix",
        description="How duplicate archive entry names are resolved",
    )
    output_dir: str = Field(
        default="./converted", description="Directory downloads are written to"
    )

    # Ingestion
    max_file_size: int = Field(
        default=MAX_FILE_SIZE, description="Max input file size in bytes (50MB)"
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v):
        allowed = ["development", "production", "testing"]
        if v not in allowed:
            raise ValueError(f"env must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("jpeg_quality", "pdf_image_quality")
    @classmethod
    def validate_quality(cls, v):
        if not 0 < v <= 1:
            raise ValueError("quality must be within (0, 1]")
        return v

    @field_validator("default_margin")
    @classmethod
    def validate_margin(cls, v):
        if v not in MARGIN_SIZES_MM:
            raise ValueError(f"default_margin must be one of {list(MARGIN_SIZES_MM)}")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="IMAGEBATCH_",
        extra="ignore",
    )


settings = Settings()
