"""Factory helpers for constructing discovery providers from configuration."""
from __future__ import annotations

import importlib
from typing import Any, Dict, Mapping, Optional

from .config import ConfigurationError, EngineSettings, build_settings, provider_config
from .discovery import DiscoveryClient, DiscoveryProvider


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid provider class path '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Could not import provider module '{module_name}': {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def build_provider(config: Optional[Mapping[str, Any]] = None) -> DiscoveryProvider:
    """Instantiate the discovery provider named in the configuration file."""

    section = provider_config(config)
    options: Dict[str, Any] = section.get("options") or {}
    if not isinstance(options, dict):
        raise ConfigurationError("Provider 'options' must be a mapping")

    provider_cls = _load_class(section["class"])
    try:
        return provider_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for provider '{section['class']}': {exc}") from exc


def build_discovery_client(
    config: Optional[Mapping[str, Any]] = None,
    settings: Optional[EngineSettings] = None,
) -> DiscoveryClient:
    settings = settings or build_settings(config)
    return DiscoveryClient(build_provider(config), policy=settings.acceptance)
