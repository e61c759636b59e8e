"""Configuration management for stmtflow."""

import logging
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Personal names seen in the friends/transfer rule of the expense taxonomy.
# Users override this with their own contacts through TRANSFER_CONTACTS.
DEFAULT_TRANSFER_CONTACTS = [
    "pagar",
    "rahul",
    "sandip",
    "nilesh",
    "shubham",
    "kirti",
    "sujit",
    "pawar",
    "manoj",
    "faeem",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upload limits
    max_file_size_bytes: int = 10 * 1024 * 1024

    # Provider used when the caller does not name one
    default_provider: str = "PHONEPE"

    # Names that mark a UPI payment as a personal transfer
    transfer_contacts: list[str] = DEFAULT_TRANSFER_CONTACTS

    # How many spreadsheet rows are inspected for a provider banner / header row
    spreadsheet_sniff_rows: int = 10

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Data directory (SQLite duplicate lookup lives here)
    data_dir: Path = Path.home() / ".stmtflow"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database path."""
        return self.data_dir / "stmtflow.db"

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def log_config(self) -> None:
        """Print the effective configuration."""
        print("\n" + "=" * 60)
        print("CONFIGURATION LOADED")
        print("=" * 60)
        print(f"Max File Size:       {self.max_file_size_bytes} bytes")
        print(f"Default Provider:    {self.default_provider}")
        print(f"Transfer Contacts:   {len(self.transfer_contacts)} names")
        print(f"Sniff Rows:          {self.spreadsheet_sniff_rows}")
        print(f"Log Level:           {self.log_level}")
        print(f"Data Directory:      {self.data_dir}")
        print(f"Database:            {self.db_path}")
        print("=" * 60 + "\n")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for hosts that embed the engine."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Global settings instance
settings = Settings()
