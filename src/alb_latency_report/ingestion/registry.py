"""
Source registry for log sources.

Provides registration and discovery of log source implementations.
"""

import logging
from typing import Any, Type

from .base import LogSource
from .exceptions import ProviderNotFoundError

logger = logging.getLogger(__name__)


class IngestionRegistry:
    """
    Registry for log sources.

    Usage:
        # Register using decorator
        @IngestionRegistry.register('aws_s3')
        class S3LogSource(LogSource):
            ...

        # Or register manually
        IngestionRegistry.register_source('aws_s3', S3LogSource)

        # Get source instance
        source = IngestionRegistry.get_source('aws_s3', bucket='my-logs')

        # List all sources
        names = IngestionRegistry.list_sources()
    """

    _sources: dict[str, Type[LogSource]] = {}

    @classmethod
    def register(cls, source_name: str):
        """
        Decorator to register a source class.

        Args:
            source_name: Source identifier for registry lookup

        Returns:
            Decorator function
        """

        def decorator(source_class: Type[LogSource]) -> Type[LogSource]:
            cls.register_source(source_name, source_class)
            return source_class

        return decorator

    @classmethod
    def register_source(cls, source_name: str, source_class: Type[LogSource]) -> None:
        """
        Register a source class.

        Args:
            source_name: Source identifier (e.g., 'aws_s3')
            source_class: Class implementing LogSource

        Raises:
            TypeError: If source_class doesn't inherit from LogSource
        """
        if not issubclass(source_class, LogSource):
            raise TypeError(
                f"Source class must inherit from LogSource, "
                f"got {source_class.__name__}"
            )

        source_name = source_name.lower()

        if source_name in cls._sources:
            logger.warning(f"Overwriting existing log source '{source_name}'")

        cls._sources[source_name] = source_class
        logger.debug(f"Registered log source: {source_name}")

    @classmethod
    def get_source(cls, source_name: str, **kwargs: Any) -> LogSource:
        """
        Get a source instance by name.

        Args:
            source_name: Source identifier
            **kwargs: Constructor arguments for the source

        Returns:
            Instantiated log source

        Raises:
            ProviderNotFoundError: If source is not registered
        """
        return cls.get_source_class(source_name)(**kwargs)

    @classmethod
    def get_source_class(cls, source_name: str) -> Type[LogSource]:
        """
        Get a source class by name (without instantiation).

        Raises:
            ProviderNotFoundError: If source is not registered
        """
        source_name = source_name.lower()

        if source_name not in cls._sources:
            raise ProviderNotFoundError(
                provider_name=source_name,
                available_providers=list(cls._sources.keys()),
            )

        return cls._sources[source_name]

    @classmethod
    def list_sources(cls) -> list[str]:
        """Return sorted list of registered source names."""
        return sorted(cls._sources.keys())

    @classmethod
    def is_source_registered(cls, source_name: str) -> bool:
        return source_name.lower() in cls._sources

    @classmethod
    def clear(cls) -> None:
        """
        Clear all registered sources.

        Primarily used for testing to reset registry state.
        """
        cls._sources.clear()
        logger.debug("Cleared log source registry")


# =============================================================================
# Convenience Functions
# =============================================================================


def get_source(source_name: str, **kwargs: Any) -> LogSource:
    """
    Get a source instance by name.

    Convenience function wrapping IngestionRegistry.get_source().
    """
    return IngestionRegistry.get_source(source_name, **kwargs)


def list_sources() -> list[str]:
    """List all registered source names."""
    return IngestionRegistry.list_sources()
