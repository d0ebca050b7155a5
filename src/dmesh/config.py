"""Configuration for the data mesh toolkit."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping


logger = logging.getLogger(__name__)

# Per-user configuration home
CONFIG_DIR = Path("~/.fedramp-data-mesh")
CONFIG_FILE_NAME = "config.yaml"

# Environment overrides: variable -> (section, attribute)
ENV_OVERRIDES = {
    "DATAMESH_AWS_REGION": ("aws", "region"),
    "DATAMESH_AWS_PROFILE": ("aws", "profile"),
    "DATAMESH_AWS_ACCOUNT_ID": ("aws", "account_id"),
    "DATAMESH_DEFAULT_ROLE": ("aws", "default_role"),
}


@dataclass
class AwsConfig:
    """Cloud account and credential settings."""
    region: str = "us-east-1"
    profile: str = ""
    account_id: str = ""
    default_role: str = ""

    # SSO token cache written by `aws sso login`
    sso_cache_dir: str = "~/.aws/sso/cache"

    # Seconds to wait for the credential broker
    broker_timeout_seconds: float = 30.0

    @property
    def partition(self) -> str:
        """ARN partition for the configured region."""
        if self.region.startswith("us-gov-"):
            return "aws-us-gov"
        if self.region.startswith("cn-"):
            return "aws-cn"
        return "aws"


@dataclass
class CatalogConfig:
    """Metadata catalog settings."""
    # Table parameter whose presence marks a data product
    marker_key: str = "data_product"

    # Format assumed when a table declares none
    default_format: str = "iceberg"

    # Glue catalog id (None = the caller's account)
    catalog_id: str | None = None


@dataclass
class EngineConfig:
    """Embedded query engine settings."""
    database: str = ":memory:"
    extensions: list[str] = field(default_factory=lambda: ["httpfs"])


@dataclass
class AuditConfig:
    """Access audit settings."""
    enabled: bool = True
    sink: str = "log"  # log | file
    file_path: str = "~/.fedramp-data-mesh/logs/audit.jsonl"


@dataclass
class LoggingConfig:
    """Log output settings."""
    level: str = "WARNING"
    log_dir: str = "~/.fedramp-data-mesh/logs"
    file_logging: bool = False


@dataclass
class Config:
    """Main configuration container."""
    aws: AwsConfig = field(default_factory=AwsConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    s3_data_lake: str = ""
    schema_registry_url: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            aws=AwsConfig(**data.get("aws", {})),
            catalog=CatalogConfig(**data.get("catalog", {})),
            engine=EngineConfig(**data.get("engine", {})),
            audit=AuditConfig(**data.get("audit", {})),
            logging=LoggingConfig(**data.get("logging", {})),
            s3_data_lake=data.get("s3_data_lake", ""),
            schema_registry_url=data.get("schema_registry_url", ""),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """Write config to a YAML file, creating parent directories."""
        import yaml
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info(f"Configuration written to {path}")

    def with_env_overrides(self, environ: Mapping[str, str]) -> Config:
        """Apply DATAMESH_* environment overrides in place and return self."""
        for var, (section, attr) in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                setattr(getattr(self, section), attr, value)
        return self


def default_config_path() -> Path:
    return (CONFIG_DIR / CONFIG_FILE_NAME).expanduser()


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Load configuration.

    Reads the YAML file at `path` (default ~/.fedramp-data-mesh/config.yaml)
    if it exists, otherwise starts from defaults, then applies environment
    overrides. An explicitly given path that does not exist is an error.
    """
    environ = os.environ if environ is None else environ

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = default_config_path()

    if config_path.exists():
        logger.debug(f"Loading configuration from {config_path}")
        config = Config.from_yaml(config_path)
    else:
        config = Config()

    return config.with_env_overrides(environ)
