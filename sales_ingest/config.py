"""Configuration management for sales-ingest."""

from dataclasses import dataclass, field
from pathlib import Path

from sales_ingest.exceptions import ConfigurationError
from sales_ingest.models.enums import FileType

DEFAULT_SQLITE_URL = "sqlite:///data/property_sales.db"
FILE_TYPES = tuple(t.value for t in FileType)
LOG_FORMATS = ("standard", "json")


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "property_sales"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class DatabaseConfig:
    """Storage location.

    ``url`` is either ``sqlite:///<path>``, a bare filesystem path, or a
    ``postgresql://`` connection string.
    """

    url: str = DEFAULT_SQLITE_URL

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith(("postgresql://", "postgres://"))

    @property
    def sqlite_path(self) -> Path | None:
        """Filesystem path of the SQLite database, or None for Postgres."""
        if self.is_postgres:
            return None
        if self.url.startswith("sqlite:///"):
            return Path(self.url[len("sqlite:///"):])
        return Path(self.url)


@dataclass
class IngestConfig:
    """Source discovery and parsing options."""

    source_extension: str = ".dat"
    preview_length: int = 100
    default_file_type: str = "weekly"

    def __post_init__(self) -> None:
        if self.default_file_type not in FILE_TYPES:
            raise ConfigurationError(
                f"default_file_type must be one of {FILE_TYPES}, got {self.default_file_type!r}"
            )
        if self.preview_length <= 0:
            raise ConfigurationError("preview_length must be positive")


@dataclass
class ExportConfig:
    """JSON export configuration."""

    output_dir: Path = field(default_factory=lambda: Path("public/data/sales"))
    pretty_json: bool = True
    recent_months: int = 6

    def __post_init__(self) -> None:
        if self.recent_months <= 0:
            raise ConfigurationError("recent_months must be positive")


@dataclass
class SalesIngestConfig:
    """Main configuration for sales-ingest."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}"
            )

    @classmethod
    def from_env(cls) -> "SalesIngestConfig":
        """Create config from environment variables."""
        import os

        if os.getenv("SALES_DB_BACKEND", "sqlite").lower() == "postgres":
            try:
                port = int(os.getenv("POSTGRES_PORT", "5432"))
            except ValueError as e:
                raise ConfigurationError(f"POSTGRES_PORT must be an integer: {e}") from e

            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=port,
                database=os.getenv("POSTGRES_DB", "property_sales"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            )
            database = DatabaseConfig(url=postgres.connection_string)
        else:
            database = DatabaseConfig(url=os.getenv("SALES_DB_URL", DEFAULT_SQLITE_URL))

        try:
            recent_months = int(os.getenv("RECENT_MONTHS", "6"))
        except ValueError as e:
            raise ConfigurationError(f"RECENT_MONTHS must be an integer: {e}") from e

        export = ExportConfig(
            output_dir=Path(os.getenv("EXPORT_DIR", "public/data/sales")),
            pretty_json=os.getenv("PRETTY_JSON", "true").lower() == "true",
            recent_months=recent_months,
        )

        ingest = IngestConfig(
            default_file_type=os.getenv("DEFAULT_FILE_TYPE", "weekly"),
        )

        return cls(
            database=database,
            ingest=ingest,
            export=export,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
