"""Base service class for application services."""

from abc import ABC, abstractmethod

from rootfs.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ServiceBase(ABC):
    """Lifecycle and logging shared by rootfs services.

    Subclasses implement ``initialize`` and ``cleanup``; ``async with``
    runs both around the block.
    """

    def __init__(self):
        self.logger = logger.bind(service=self.__class__.__name__)

    @abstractmethod
    async def initialize(self) -> None:
        """Acquire whatever the service needs before its first call."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release everything ``initialize`` or later calls acquired."""

    async def __aenter__(self):
        await self.initialize()
        self.logger.debug("service_initialized")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()
        self.logger.debug("service_cleaned_up")
