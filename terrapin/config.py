#! /usr/bin/env python3

"""Configuration shared by the stream, file and process layers."""

import typing as T

from dataclasses import dataclass, fields


@dataclass
class TerrapinConfig:
    """Global configuration for terrapin operations."""

    # Text codec used for files and subprocess pipes.
    encoding: str = 'utf-8'
    errors: str = 'strict'

    # Line terminator written by output operators and process feeders.
    newline: str = '\n'

    # Shell used for commands. ``None`` lets subprocess pick /bin/sh.
    shell_executable: T.Optional[str] = None

    # Seconds an abandoned process pipe waits for its feeder before
    # terminating the child.
    cancel_grace: float = 1.0

    _instance: T.ClassVar[T.Optional['TerrapinConfig']] = None

    @classmethod
    def get_instance(cls) -> 'TerrapinConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_defaults(cls, **kwargs: T.Any) -> None:
        """Set default configuration values.

        Unknown keys raise ``AttributeError`` instead of being ignored.
        """
        instance = cls.get_instance()
        for key, value in kwargs.items():
            if key not in {f.name for f in fields(cls)}:
                raise AttributeError(f'unknown config key: {key}')
            setattr(instance, key, value)

    @classmethod
    def reset(cls) -> None:
        """Restore every value to its default."""
        defaults = cls()
        instance = cls.get_instance()
        for f in fields(cls):
            setattr(instance, f.name, getattr(defaults, f.name))


# Global configuration instance
config = TerrapinConfig.get_instance()
