"""
ConfigManager: Centralized settings loader for the project setup tools.

Implements a Singleton that loads and validates configuration from YAML using
Pydantic, supports environment variable overrides, caches results with a TTL,
and provides hot-reload via reload().

Google-style docstrings and type hints are used throughout.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


DEFAULT_GIST_ID = "68ad5a0baafe72ead567d29e15f37784"
DEFAULT_GIST_USER = "KnightWhoSaysNi"
DEFAULT_REGISTRY_URL = "https://packages.unity.com"


# ---------------------------------------------------------------------------
# Pydantic models for schema validation
# ---------------------------------------------------------------------------


class CatalogConfig(BaseModel):
    """Where the curated package catalog lives.

    Attributes:
        gist_id: Id of the GitHub gist holding the catalog document.
        gist_user: Owner of the gist.
        url: Explicit catalog URL; takes precedence over the gist fields.
        timeout: HTTP timeout in seconds.
    """

    gist_id: str = DEFAULT_GIST_ID
    gist_user: str = DEFAULT_GIST_USER
    url: Optional[str] = None
    timeout: float = Field(default=15.0, gt=0)


class RegistryConfig(BaseModel):
    """Package registry used to resolve versions of newly added packages."""

    url: str = DEFAULT_REGISTRY_URL
    timeout: float = Field(default=15.0, gt=0)


class ReconcilerConfig(BaseModel):
    """Tick interval and timeouts (in seconds) of the package reconciler."""

    tick_interval: float = Field(default=0.1, gt=0)
    listing_timeout: float = Field(default=120.0, gt=0)
    commit_timeout: float = Field(default=600.0, gt=0)


class FolderEntry(BaseModel):
    """One parent folder and its children."""

    name: str = Field(min_length=1)
    children: List[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration for the app."""

    level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    file: Path = Path("logs") / "unity_project_setup.log"


class Settings(BaseModel):
    """Top-level configuration structure."""

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    folders: Optional[List[FolderEntry]] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def catalog_url(self) -> str:
        """Return the effective catalog URL."""

        if self.catalog.url:
            return self.catalog.url
        from .packages.catalog import gist_raw_url

        return gist_raw_url(self.catalog.gist_id, self.catalog.gist_user)


# ---------------------------------------------------------------------------
# Defaults and helpers
# ---------------------------------------------------------------------------


def _default_settings(base_dir: Path) -> Settings:
    """Build default settings.

    Args:
        base_dir: Directory relative paths are resolved against (the working directory).

    Returns:
        Settings: Default configuration object.
    """

    settings = Settings()
    settings.logging = LoggingConfig(file=base_dir / "logs" / "unity_project_setup.log")
    return settings


def _resolve_relative(base: Path, p: Path) -> Path:
    """Resolve path relative to base if not absolute."""

    return p if p.is_absolute() else (base / p).resolve()


# ---------------------------------------------------------------------------
# ConfigManager (Singleton with TTL cache and hot reload)
# ---------------------------------------------------------------------------


class ConfigManager:
    """Singleton manager for application configuration.

    Responsibilities:
    - Locate and load YAML configuration (config/settings.yaml),
    - Validate structure via Pydantic models,
    - Apply environment variable overrides,
    - Cache config with TTL to avoid frequent disk IO,
    - Support hot reload via reload().

    Environment overrides supported (strings/numbers):
    - UPS_CONFIG_FILE: explicit path to YAML file.
    - CATALOG_URL, CATALOG_TIMEOUT, REGISTRY_URL
    - TICK_INTERVAL, LISTING_TIMEOUT, COMMIT_TIMEOUT
    - LOG_LEVEL, LOG_FILE
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._initialized = False
                cls._instance = instance
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._logger = logging.getLogger(__name__)

        self._explicit_file: Optional[Path] = None

        self._cache_ttl_seconds: int = 60
        self._cache_timestamp: float = 0.0
        self._cached_settings: Optional[Settings] = None

    # ------------------------------ Public API ------------------------------

    def get(self) -> Settings:
        """Return current settings, reloading if TTL expired.

        Returns:
            Settings: Validated and possibly overridden configuration.
        """

        now = time.time()
        if self._cached_settings and (now - self._cache_timestamp) < self._cache_ttl_seconds:
            return self._cached_settings

        settings = self._load_and_validate()
        self._cached_settings = settings
        self._cache_timestamp = now
        return settings

    def reload(self) -> Settings:
        """Force a reload of the configuration.

        Returns:
            Settings: Freshly loaded configuration.
        """

        self._logger.debug("Reloading configuration from disk and environment overrides.")
        self._cache_timestamp = 0.0
        self._cached_settings = None
        return self.get()

    def use_config_file(self, path: Optional[str | Path]) -> Settings:
        """Load configuration from an explicit file and return it.

        Args:
            path: YAML file to use, or None to go back to the default lookup.

        Returns:
            Settings: Configuration loaded from the new location.
        """

        self._explicit_file = Path(path) if path else None
        return self.reload()

    # ----------------------------- Helper methods ---------------------------

    def get_config_file(self) -> Path:
        """Get the configuration file path currently in effect.

        Returns:
            Path: Explicit file, UPS_CONFIG_FILE, or config/settings.yaml under
            the working directory.
        """

        if self._explicit_file is not None:
            return self._explicit_file
        env = os.getenv("UPS_CONFIG_FILE")
        if env:
            return Path(env)
        return Path.cwd() / "config" / "settings.yaml"

    # ----------------------------- Internal logic ---------------------------

    def _load_and_validate(self) -> Settings:
        """Load YAML settings, apply env overrides, validate and resolve paths.

        Returns:
            Settings: Validated settings. Errors fall back to defaults.
        """

        # Relative paths follow the directory the tool is run from
        base_dir = Path.cwd()
        config_file = self.get_config_file()
        data = None
        if config_file.exists():
            try:
                with config_file.open("r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
                self._logger.debug("Loaded configuration file: %s", config_file)
            except (OSError, yaml.YAMLError) as e:
                self._logger.warning(
                    "Failed to load YAML config (%s). Falling back to defaults. Error: %s",
                    config_file,
                    e,
                )
        else:
            self._logger.debug("Config file not found: %s. Using default configuration.", config_file)

        try:
            if data is None:
                settings = _default_settings(base_dir)
            else:
                settings = Settings.model_validate(data)
                settings.logging = LoggingConfig(
                    level=settings.logging.level,
                    file=_resolve_relative(base_dir, settings.logging.file),
                )
        except ValidationError as ve:
            self._logger.warning("Invalid configuration schema. Using defaults. Details: %s", ve)
            settings = _default_settings(base_dir)

        settings = self._apply_env_overrides(settings, base_dir)
        self._logger.debug(
            "Active config -> catalog: %s, registry: %s",
            settings.catalog_url(),
            settings.registry.url,
        )
        return settings

    def _apply_env_overrides(self, settings: Settings, base_dir: Path) -> Settings:
        """Apply environment variable overrides to settings.

        Args:
            settings: Settings object to derive the overridden copy from.
            base_dir: Directory a relative LOG_FILE is resolved against.

        Returns:
            Settings: New settings with overrides applied.
        """

        def _float_env(name: str, default: float) -> float:
            v = os.getenv(name)
            if v is None:
                return default
            try:
                value = float(v)
            except ValueError:
                self._logger.warning("Invalid number for %s: %s (ignored)", name, v)
                return default
            if value <= 0:
                self._logger.warning("Non-positive value for %s: %s (ignored)", name, v)
                return default
            return value

        catalog = settings.catalog.model_copy(
            update={
                "url": os.getenv("CATALOG_URL") or settings.catalog.url,
                "timeout": _float_env("CATALOG_TIMEOUT", settings.catalog.timeout),
            }
        )
        registry = settings.registry.model_copy(
            update={"url": os.getenv("REGISTRY_URL") or settings.registry.url}
        )
        reconciler = ReconcilerConfig(
            tick_interval=_float_env("TICK_INTERVAL", settings.reconciler.tick_interval),
            listing_timeout=_float_env("LISTING_TIMEOUT", settings.reconciler.listing_timeout),
            commit_timeout=_float_env("COMMIT_TIMEOUT", settings.reconciler.commit_timeout),
        )

        log_level = (os.getenv("LOG_LEVEL") or settings.logging.level).upper()
        log_file = Path(os.getenv("LOG_FILE") or settings.logging.file)
        try:
            logging_cfg = LoggingConfig(level=log_level, file=_resolve_relative(base_dir, log_file))
        except ValidationError:
            self._logger.warning("Invalid LOG_LEVEL: %s (ignored)", log_level)
            logging_cfg = LoggingConfig(
                level=settings.logging.level, file=_resolve_relative(base_dir, log_file)
            )

        return Settings(
            catalog=catalog,
            registry=registry,
            reconciler=reconciler,
            folders=settings.folders,
            logging=logging_cfg,
        )
