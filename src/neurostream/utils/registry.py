"""
Registry Utility for Neurostream.

This module provides a registry pattern for looking up lattice topologies,
metric distances, neighborhood functions and models by the names used in
configuration files.
"""

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Registry:
    """
    A registry for registering and retrieving objects by name.

    This allows configuration files to refer to components by name
    without hard-coding imports or class names throughout the codebase.
    """

    def __init__(self, name: str):
        self._name = name
        self._registry: Dict[str, Any] = {}

    def register(self, name: str, obj: Optional[Any] = None) -> Callable:
        """
        Register an object in the registry.

        Can be used as a decorator or called directly.

        Args:
            name: Name to register under
            obj: Object to register (if not using as decorator)

        Returns:
            Decorator function or the registered object
        """
        def decorator(func_or_class: Any) -> Any:
            if name in self._registry:
                logger.warning(
                    f"Overriding existing registration for '{name}' in {self._name}"
                )

            self._registry[name] = func_or_class
            logger.debug(f"Registered '{name}' in {self._name}")
            return func_or_class

        if obj is not None:
            return decorator(obj)
        return decorator

    def get(self, name: str) -> Any:
        """
        Get a registered object by name.

        Raises:
            KeyError: If name is not registered
        """
        if name not in self._registry:
            available = list(self._registry.keys())
            raise KeyError(
                f"'{name}' not found in {self._name} registry. "
                f"Available: {available}"
            )

        return self._registry[name]

    def create(self, name: str, *args, **kwargs) -> Any:
        """Create an instance of a registered class."""
        cls = self.get(name)

        try:
            return cls(*args, **kwargs)
        except Exception as e:
            logger.error(f"Failed to create instance of '{name}': {e}")
            raise

    def list_available(self) -> list:
        """Get list of all registered names."""
        return list(self._registry.keys())

    def contains(self, name: str) -> bool:
        """Check if a name is registered."""
        return name in self._registry

    def __contains__(self, name: str) -> bool:
        return self.contains(name)

    def __len__(self) -> int:
        return len(self._registry)

    def __iter__(self):
        return iter(self._registry.keys())

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __repr__(self) -> str:
        return f"Registry('{self._name}', {len(self._registry)} items)"


LATTICE_REGISTRY = Registry("lattices")
DISTANCE_REGISTRY = Registry("distances")
NEIGHBORHOOD_REGISTRY = Registry("neighborhoods")
MODEL_REGISTRY = Registry("models")


def register_lattice(name: str):
    """Decorator for registering lattice topologies."""
    return LATTICE_REGISTRY.register(name)


def register_distance(name: str):
    """Decorator for registering metric distances."""
    return DISTANCE_REGISTRY.register(name)


def register_neighborhood(name: str):
    """Decorator for registering neighborhood functions."""
    return NEIGHBORHOOD_REGISTRY.register(name)


def register_model(name: str):
    """Decorator for registering self-organizing map implementations."""
    return MODEL_REGISTRY.register(name)


def create_lattice(name: str, *args, **kwargs):
    """Create a lattice instance."""
    return LATTICE_REGISTRY.create(name, *args, **kwargs)


def create_distance(name: str, *args, **kwargs):
    """Create a metric distance instance."""
    return DISTANCE_REGISTRY.create(name, *args, **kwargs)


def create_model(name: str, *args, **kwargs):
    """Create a model instance."""
    return MODEL_REGISTRY.create(name, *args, **kwargs)

