"""Configuration management for Budgeteer.

Reads configuration from ~/.config/budgeteer.toml and creates default config if needed.
"""

import secrets
from pathlib import Path
from dataclasses import dataclass, field
from typing import List
import tomllib
import tomli_w

DEFAULT_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Personal",
]


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    access_token_secret: str
    refresh_token_secret: str
    access_token_ttl_minutes: int = 15
    refresh_token_ttl_days: int = 7
    jwt_algorithm: str = "HS256"
    bcrypt_rounds: int = 10
    default_categories: List[str] = field(
        default_factory=lambda: list(DEFAULT_CATEGORIES)
    )

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values and freshly generated signing keys."""
        home = Path.home()
        base_dir = home / "data" / "budgeteer"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="budgeteer.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            access_token_secret=secrets.token_urlsafe(32),
            refresh_token_secret=secrets.token_urlsafe(32),
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "budgeteer.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.

    Raises:
        ValueError: If the auth section is missing a signing key or both
            token kinds share the same key.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    # Load existing config
    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse with defaults for any missing values
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "budgeteer"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "budgeteer.db")

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    auth_config = data.get("auth", {})
    access_token_secret = auth_config.get("access_token_secret", "")
    refresh_token_secret = auth_config.get("refresh_token_secret", "")
    if not access_token_secret or not refresh_token_secret:
        raise ValueError(
            f"Both auth.access_token_secret and auth.refresh_token_secret must be set in {config_path}"
        )
    if access_token_secret == refresh_token_secret:
        raise ValueError("Access and refresh tokens must use different secrets")

    categories_config = data.get("categories", {})
    default_categories = categories_config.get("defaults", list(DEFAULT_CATEGORIES))

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        access_token_secret=access_token_secret,
        refresh_token_secret=refresh_token_secret,
        access_token_ttl_minutes=auth_config.get("access_token_ttl_minutes", 15),
        refresh_token_ttl_days=auth_config.get("refresh_token_ttl_days", 7),
        jwt_algorithm=auth_config.get("jwt_algorithm", "HS256"),
        bcrypt_rounds=auth_config.get("bcrypt_rounds", 10),
        default_categories=default_categories,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Convert config to TOML structure
    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "auth": {
            "access_token_secret": config.access_token_secret,
            "refresh_token_secret": config.refresh_token_secret,
            "access_token_ttl_minutes": config.access_token_ttl_minutes,
            "refresh_token_ttl_days": config.refresh_token_ttl_days,
            "jwt_algorithm": config.jwt_algorithm,
            "bcrypt_rounds": config.bcrypt_rounds,
        },
        "categories": {
            "defaults": list(config.default_categories),
        },
    }

    # Write TOML file
    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
