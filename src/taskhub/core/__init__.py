"""Core taskhub components and abstractions."""

from taskhub.core.config import Settings
from taskhub.core.context import ActorContext
from taskhub.core.exceptions import *  # noqa: F403
from taskhub.core.exceptions import __all__ as exceptions__all__
from taskhub.core.types import *  # noqa: F403
from taskhub.core.types import __all__ as types__all__

__all__ = [
    "ActorContext",
    "Settings",
]

__all__ += exceptions__all__
__all__ += types__all__
