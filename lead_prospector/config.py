"""Configuration helpers for the lead prospector."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ProspectorError
from .models import ModeProfile
from .validation import (
    DEFAULT_MIN_INTEGRITY,
    DEFAULT_MIN_PHONE_DIGITS,
    DEGENERATE_TAIL_DIGITS,
    AcceptancePolicy,
)

LOGGER = logging.getLogger(__name__)


class ConfigurationError(ProspectorError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

DEFAULT_MODE = "quantum"
DEFAULT_COUNTRY = "Brazil"
DEFAULT_SETTLE_DELAY = 0.5
DEFAULT_ACTIVITY_LOG_SIZE = 30
DEFAULT_STORE_PATH = "leads.json"
DEFAULT_PROVIDER_CLASS = "lead_prospector.discovery.openai_provider.OpenAIDiscoveryProvider"

DEFAULT_MODES: Dict[str, ModeProfile] = {
    "nano": ModeProfile(name="nano", model="gpt-4o-mini", batch_size=5, success_delay=2.0, failure_delay=15.0),
    "quantum": ModeProfile(name="quantum", model="gpt-4o", batch_size=10, success_delay=5.0, failure_delay=20.0),
    "neural": ModeProfile(name="neural", model="gpt-4.1", batch_size=10, success_delay=15.0, failure_delay=30.0),
}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid JSON: {exc}") from exc
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass(frozen=True)
class EngineSettings:
    """Everything the engine needs besides its collaborators."""

    modes: Dict[str, ModeProfile] = field(default_factory=lambda: dict(DEFAULT_MODES))
    acceptance: AcceptancePolicy = field(default_factory=AcceptancePolicy)
    default_mode: str = DEFAULT_MODE
    default_country: str = DEFAULT_COUNTRY
    settle_delay: float = DEFAULT_SETTLE_DELAY
    activity_log_size: int = DEFAULT_ACTIVITY_LOG_SIZE
    store_path: str = DEFAULT_STORE_PATH

    def profile(self, mode: str) -> Optional[ModeProfile]:
        return self.modes.get(mode)


def _section(config: Mapping[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Configuration section '{name}' must be a mapping")
    return value


def parse_modes(raw_modes: Mapping[str, Any]) -> Dict[str, ModeProfile]:
    """Overlay configured mode profiles onto the built-in defaults."""

    modes = dict(DEFAULT_MODES)
    for name, options in raw_modes.items():
        if not isinstance(options, dict):
            raise ConfigurationError(f"Mode '{name}' must be a mapping of options")
        base = modes.get(name)
        try:
            profile = ModeProfile(
                name=name,
                model=str(options.get("model", base.model if base else "")),
                batch_size=int(options.get("batch_size", base.batch_size if base else 10)),
                success_delay=float(options.get("success_delay", base.success_delay if base else 5.0)),
                failure_delay=float(options.get("failure_delay", base.failure_delay if base else 30.0)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Mode '{name}' has an invalid option: {exc}") from exc
        modes[name] = profile

    for profile in modes.values():
        if not profile.model:
            raise ConfigurationError(f"Mode '{profile.name}' does not name a model")
        if profile.batch_size < 1:
            raise ConfigurationError(f"Mode '{profile.name}' must request at least one lead")
        if profile.success_delay < 0:
            raise ConfigurationError(f"Mode '{profile.name}' has a negative success delay")
        if profile.failure_delay <= profile.success_delay:
            raise ConfigurationError(
                f"Mode '{profile.name}' failure delay ({profile.failure_delay:g}s) must be longer "
                f"than its success delay ({profile.success_delay:g}s)"
            )
    return modes


def parse_acceptance(raw: Mapping[str, Any]) -> AcceptancePolicy:
    try:
        policy = AcceptancePolicy(
            min_integrity=float(raw.get("min_integrity", DEFAULT_MIN_INTEGRITY)),
            min_phone_digits=int(raw.get("min_phone_digits", DEFAULT_MIN_PHONE_DIGITS)),
            require_full_name=bool(raw.get("require_full_name", False)),
            degenerate_tail_digits=int(raw.get("degenerate_tail_digits", DEGENERATE_TAIL_DIGITS)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid acceptance setting: {exc}") from exc
    if not 0 <= policy.min_integrity <= 100:
        raise ConfigurationError("acceptance.min_integrity must be between 0 and 100")
    if policy.min_phone_digits < 1:
        raise ConfigurationError("acceptance.min_phone_digits must be positive")
    if policy.degenerate_tail_digits < 0:
        raise ConfigurationError("acceptance.degenerate_tail_digits cannot be negative")
    return policy


def build_settings(config: Optional[Mapping[str, Any]] = None) -> EngineSettings:
    """Translate a raw configuration mapping into :class:`EngineSettings`."""

    config = config or {}
    engine = _section(config, "engine")
    store = _section(config, "store")
    modes = parse_modes(_section(config, "modes"))

    default_mode = str(engine.get("default_mode", DEFAULT_MODE))
    if default_mode not in modes:
        raise ConfigurationError(f"Default mode '{default_mode}' is not defined. Known modes: {sorted(modes)}")

    try:
        settle_delay = float(engine.get("settle_delay", DEFAULT_SETTLE_DELAY))
        log_size = int(engine.get("activity_log_size", DEFAULT_ACTIVITY_LOG_SIZE))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid engine setting: {exc}") from exc
    if log_size < 1:
        raise ConfigurationError("engine.activity_log_size must be positive")

    return EngineSettings(
        modes=modes,
        acceptance=parse_acceptance(_section(config, "acceptance")),
        default_mode=default_mode,
        default_country=str(engine.get("default_country", DEFAULT_COUNTRY)),
        settle_delay=settle_delay,
        activity_log_size=log_size,
        store_path=str(store.get("path", DEFAULT_STORE_PATH)),
    )


def provider_config(config: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return the provider section, falling back to the OpenAI provider."""

    section = _section(config or {}, "provider")
    if not section.get("class"):
        section = dict(section, **{"class": DEFAULT_PROVIDER_CLASS})
    else:
        LOGGER.debug("Using configured discovery provider %s", section["class"])
    return section
