"""Dependency Injection Container Module.

Usage:
------
    # Initialize at startup (call once from main.py)
    from penwise.core.container import initialize_container
    from penwise.core.config import settings
    initialize_container(settings)

    # In FastAPI deps.py
    from penwise.core import container as container_mod
    container_mod.container.usage_meter

    # In tests (construct directly with fakes, don't use global)
    from penwise.core.container import Container
    test_container = Container(payment_gateway=FakePaymentGateway(), ...)

Module structure:
-----------------
    container/
    ├── __init__.py      # This file - exports public API
    ├── container.py     # Container dataclass (serves)
    └── factory.py       # create_container() (builds)
"""

from typing import TYPE_CHECKING

from penwise.core.container.container import Container
from penwise.core.container.factory import create_container

if TYPE_CHECKING:
    from penwise.core.config import Settings

__all__ = ["Container", "create_container", "container", "initialize_container"]


container: Container | None = None
"""Global container instance.

Initialized via `initialize_container()` at application startup. Only
api/deps.py reads it; domain code receives dependencies as constructor
arguments.
"""


def initialize_container(settings: "Settings") -> None:
    """Initialize the global container. Call once at startup.

    Raises:
        RuntimeError: If called more than once (container already initialized)
    """
    global container

    if container is not None:
        raise RuntimeError(
            "Container already initialized. "
            "initialize_container() should only be called once at startup."
        )

    container = create_container(settings)


def reset_container() -> None:
    """Reset the global container to None. For testing only."""
    global container
    container = None
