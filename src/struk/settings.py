"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Store details (name, address, paper size, logo) are not configured here;
they come from the settings store at render time.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PrinterSettings(BaseSettings):
    """Command encoding and delivery."""

    model_config = SettingsConfigDict(env_prefix="STRUK_PRINTER_", extra="ignore")

    transport: Literal["bridge", "serial"] = "bridge"

    # Custom URI scheme handled by the printer bridge app
    bridge_scheme: str = "rawbt"

    # Text code page
    encoding: str = "cp437"

    # ~1.25x the 24-dot character height
    line_spacing_dots: int = Field(default=30, ge=0, le=255)

    final_feed_lines: int = Field(default=3, ge=0, le=255)
    partial_cut: bool = True

    # Direct serial delivery
    serial_port: str = "/dev/serial0"
    serial_baudrate: int = 9600


class LogoSettings(BaseSettings):
    """Logo processing for the printed receipt."""

    model_config = SettingsConfigDict(env_prefix="STRUK_LOGO_", extra="ignore")

    max_height: int = Field(default=180, ge=8)

    # None selects the threshold automatically (Otsu)
    threshold: Optional[int] = Field(default=None, ge=0, le=255)

    outline: bool = True
    outline_thickness: int = Field(default=1, ge=1, le=2)
    feed_lines: int = Field(default=1, ge=0, le=255)
    decode_timeout: float = 10.0

    # GS v 0 density mode (0 normal, 1 double width, 2 double height, 3 both)
    raster_mode: int = Field(default=0, ge=0, le=3)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="STRUK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Receipt label language
    language: Literal["id", "en"] = "id"

    printer: PrinterSettings = Field(default_factory=PrinterSettings)
    logo: LogoSettings = Field(default_factory=LogoSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
