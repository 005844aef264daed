"""Base classes shared by configuration, logging and bisection models.

- Closeable Protocol for anything holding an open resource
- BaseCloseable, which closes Closeable fields in a cascade
- BaseConfig for sections loaded from YAML/env/CLI
- BaseState for runtime values

Kept apart from config.py and log.py so both can import it.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release held resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Works as a context manager. close() walks the model fields and
    calls close() on every child that implements it, carrying on past
    children that fail:

    Config.close() -> Logger.close() -> FileSink.close()
    """

    def close(self):
        """Close every Closeable field value.

        A child that raises is reported on stderr and the remaining
        children are still closed.
        """
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    # Keep going; the others still hold resources
                    msg = f"Warning: Error closing {field_name}: {e}"
                    print(msg, file=sys.stderr)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        """Close all children, also when the block raised."""
        self.close()
        return False  # Exceptions propagate


class BaseConfig(BaseCloseable):
    """Base for configuration sections.

    Marks a model as loaded from YAML/env/CLI rather than built at
    runtime.
    """
    pass


class BaseState(BaseCloseable):
    """Base for runtime state values.

    Marks a model as produced while the program runs (a bisect
    snapshot, for instance) rather than loaded from configuration.
    """
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
