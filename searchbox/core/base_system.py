from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import ConfigManager


class BaseSystem(ABC):
    """
    Abstract Base Class for long-lived systems (the SearchBase store).
    Ensures consistent async initialization/shutdown and access to the
    application ConfigManager.

    Systems can be used as async context managers:
        async with SearchBase(backend) as searchbase:
            ...
    """
    def __init__(self, config: Optional['ConfigManager'] = None):
        self.config = config
        self._is_ready = False

    @abstractmethod
    async def initialize(self):
        """
        Async initialization logic.
        Should be called once before the system is used by bindings.
        """
        self._is_ready = True

    @abstractmethod
    async def shutdown(self):
        """
        Cleanup logic (e.g. cancelling in-flight work).
        """
        self._is_ready = False

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    async def __aenter__(self):
        """Async context manager entry: Initialize system."""
        if not self._is_ready:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit: Shutdown system."""
        if self._is_ready:
            await self.shutdown()
