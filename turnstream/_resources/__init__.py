"""Resource namespaces for the assistant client."""

from .turns import Turns

__all__ = ["Turns"]
