"""Discovery providers and the client that filters their output."""

from .base import REQUIRED_FIELDS, DiscoveryProvider, parse_candidates  # noqa: F401
from .client import DiscoveryClient  # noqa: F401
from .sample import StaticDiscoveryProvider  # noqa: F401

__all__ = [
    "DiscoveryClient",
    "DiscoveryProvider",
    "REQUIRED_FIELDS",
    "StaticDiscoveryProvider",
    "parse_candidates",
]
