from typing import Dict, List, Type, TypeVar
from loguru import logger

from .config import ConfigManager
from .base_system import BaseSystem

T = TypeVar("T", bound=BaseSystem)


class ServiceLocator:
    """
    Process-wide registry of systems.

    Systems are started in registration order (dependencies first) and
    stopped in reverse order.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ServiceLocator, cls).__new__(cls)
            cls._instance.is_ready = False
            cls._instance._systems = {}
            cls._instance._order = []
        return cls._instance

    def init(self, config_path: str):
        if self.is_ready: return

        self.config = ConfigManager(config_path)
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._order: List[BaseSystem] = []

        self.is_ready = True

    def register_system(self, system_cls: Type[T]) -> T:
        """Instantiate and register a system (and its dependencies) once."""
        existing = self._systems.get(system_cls)
        if existing is not None:
            return existing

        for dep in getattr(system_cls, "depends_on", []):
            self.register_system(dep)

        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        self._order.append(instance)
        logger.debug(f"Registered system: {system_cls.__name__}")
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        try:
            return self._systems[system_cls]
        except KeyError:
            raise KeyError(f"System not registered: {system_cls.__name__}") from None

    async def start_all(self):
        for system in self._order:
            if not system.is_ready:
                logger.info(f"Starting {system.__class__.__name__}")
                await system.initialize()

    async def stop_all(self):
        for system in reversed(self._order):
            if system.is_ready:
                logger.info(f"Stopping {system.__class__.__name__}")
                try:
                    await system.shutdown()
                except Exception as e:
                    logger.error(f"Failed to stop {system.__class__.__name__}: {e}")

    def reset(self):
        """Forget all systems and configuration (used between sessions and in tests)."""
        self._systems = {}
        self._order = []
        self.is_ready = False


# Global access
sl = ServiceLocator()
