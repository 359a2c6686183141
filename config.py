"""Configuration management for Smeta.

Reads configuration from ~/.config/smeta.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    archive_enabled: bool
    archive_dir: Path
    db_timeout: float = 5.0
    default_category: str = "Прочее"
    import_max_rows: int = 100000
    enable_reset: bool = False
    llm_enabled: bool = False
    llm_provider: Optional[str] = None
    llm_openai_api_key: str = ""
    llm_openai_model: Optional[str] = None

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "smeta"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="smeta.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            archive_enabled=True,
            archive_dir=base_dir / "archives",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "smeta.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling in defaults.

    Args:
        data: Dictionary as returned by tomllib.load.

    Returns:
        Config object.
    """
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", defaults.db_filename)
    db_timeout = float(db_config.get("timeout", defaults.db_timeout))

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    archive_config = data.get("archive", {})
    archive_enabled = archive_config.get("enabled", True)
    archive_dir = Path(archive_config.get("archive_dir", base_dir / "archives"))

    import_config = data.get("imports", {})
    default_category = import_config.get(
        "default_category", defaults.default_category
    )
    import_max_rows = int(import_config.get("max_rows", defaults.import_max_rows))

    llm_config = data.get("llm", {})
    openai_config = llm_config.get("openai", {})

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        archive_enabled=archive_enabled,
        archive_dir=archive_dir,
        db_timeout=db_timeout,
        default_category=default_category,
        import_max_rows=import_max_rows,
        enable_reset=data.get("enable_reset", False),
        llm_enabled=llm_config.get("enabled", False),
        llm_provider=llm_config.get("provider"),
        llm_openai_api_key=openai_config.get("api_key", ""),
        llm_openai_model=openai_config.get("model"),
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "enable_reset": config.enable_reset,
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "timeout": config.db_timeout,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "archive": {
            "enabled": config.archive_enabled,
            "archive_dir": str(config.archive_dir),
        },
        "imports": {
            "default_category": config.default_category,
            "max_rows": config.import_max_rows,
        },
        "llm": {
            "enabled": config.llm_enabled,
            "openai": {"api_key": config.llm_openai_api_key},
        },
    }
    # TOML has no null; omit unset optional values
    if config.llm_provider:
        data["llm"]["provider"] = config.llm_provider
    if config.llm_openai_model:
        data["llm"]["openai"]["model"] = config.llm_openai_model

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
