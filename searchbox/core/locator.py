"""
Process-wide access to the configured SearchBase.

Rules:
    - ``sl.init(searchbase)`` must run before any connector that relies on
      the locator is mounted. Calling it again while configured raises.
    - ``sl.reset()`` tears the locator down (tests, application shutdown).
      It does not shut the SearchBase down; its owner does that.
    - Reading ``sl.searchbase`` while unconfigured raises
      SearchBaseNotConfiguredError.

Prefer passing the SearchBase explicitly (or through a SearchBaseProvider);
the locator exists for hosts that cannot thread it through their views.
"""
from typing import Optional
from loguru import logger

from .config import ConfigManager
from .errors import ConfigurationError, SearchBaseNotConfiguredError
from .logging import setup_logging
from .registry import SearchBase


class ServiceLocator:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ServiceLocator, cls).__new__(cls)
            cls._instance.is_ready = False
            cls._instance._searchbase = None
            cls._instance.config = ConfigManager()
        return cls._instance

    def init(
        self,
        searchbase: SearchBase,
        config_path: Optional[str] = None,
        configure_logging: bool = False,
    ):
        if self.is_ready:
            raise ConfigurationError("ServiceLocator is already initialized; call reset() first")
        if searchbase is None:
            raise SearchBaseNotConfiguredError("sl.init() requires a SearchBase")

        self.config = searchbase.config or ConfigManager(config_path)
        if searchbase.config is None:
            searchbase.config = self.config
        self._searchbase = searchbase

        if configure_logging:
            general = self.config.data.general
            setup_logging(general.debug_mode, general.log_dir)
            # Reactive binding: Config -> logging
            self.config.on_changed.connect(self._on_config_change)

        self.is_ready = True
        logger.info("ServiceLocator initialized")

    def reset(self):
        """Tear down the locator so it can be initialized again."""
        self.config.on_changed.disconnect(self._on_config_change)
        self._searchbase = None
        self.config = ConfigManager()
        self.is_ready = False

    @property
    def searchbase(self) -> SearchBase:
        if not self.is_ready or self._searchbase is None:
            raise SearchBaseNotConfiguredError()
        return self._searchbase

    def _on_config_change(self, section, key, value):
        if section == "general" and key in ("debug_mode", "log_dir"):
            general = self.config.data.general
            setup_logging(general.debug_mode, general.log_dir)


# Global access
sl = ServiceLocator()
