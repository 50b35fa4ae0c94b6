"""
Configuration settings for the page snapshot engine.
Uses Pydantic Settings for environment variable management.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Literal
from pathlib import Path


class BrowserSettings(BaseSettings):
    """Browser-specific configuration."""

    headless: bool = Field(default=True, description="Run browser in headless mode")
    viewport_width: int = Field(default=1280, description="Browser viewport width")
    viewport_height: int = Field(default=720, description="Browser viewport height")
    timeout_ms: int = Field(default=30000, description="Default timeout in milliseconds")
    slow_mo: int = Field(default=0, description="Slow down operations by this amount (ms)")
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="domcontentloaded",
        description="Load state awaited after navigation"
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="Custom user agent string"
    )

    class Config:
        env_prefix = "BROWSER_"


class LayoutSettings(BaseSettings):
    """Geometry thresholds used when linearizing a page into text."""

    line_height: float = Field(default=20.0, description="Nominal text line height in pixels")
    newline_gap_factor: float = Field(
        default=1.2,
        description="Vertical gap, in line heights, beyond which items start a new row"
    )
    horizontal_backtrack: float = Field(
        default=50.0,
        description="Leftward jump past the previous item's right edge that starts a new row"
    )

    class Config:
        env_prefix = "LAYOUT_"


class DiffSettings(BaseSettings):
    """Snapshot diff selection configuration."""

    strategy: Literal["word", "patch"] = Field(default="word", description="Default differ backend")
    numeric_ratio: float = Field(
        default=0.5,
        description="Fall back to the full snapshot when more than this share of changed lines are digits"
    )
    fragment_min_lines: int = Field(
        default=10,
        description="Changed-line count above which a diff of only short lines counts as fragmented"
    )
    fragment_max_line_length: int = Field(
        default=10,
        description="Lines shorter than this count as fragments"
    )
    context_lines: int = Field(default=3, description="Context lines for the unified patch strategy")
    no_change_text: str = Field(default="No changes detected", description="Sentinel for unchanged pages")

    class Config:
        env_prefix = "DIFF_"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_dir: Path = Field(default=Path("logs"), description="Log directory")

    class Config:
        env_prefix = "LOG_"


class Settings(BaseSettings):
    """Main settings aggregator."""

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
