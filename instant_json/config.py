# ==========================================
# CONFIGURATION
# ==========================================
import json
import os
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

from instant_json.errors import ConfigError

CONFIG_FILE = "instant_json.json"
USER_CONFIG_FILE = os.path.join("~", ".instant_json", "config.json")


class Settings(BaseModel):
    """Options shared by the registry and the reducer."""
    entry_rule: str = "root"
    parser: Literal["earley", "lalr"] = "earley"
    lexer: str = "auto"
    root_kind: Literal["container", "object"] = "container"
    decode_escapes: bool = True
    strict_tags: bool = False

    model_config = {"frozen": True, "extra": "forbid"}


def config_paths(path=None):
    """Candidate settings files, most specific first."""
    if path is not None:
        return [path]
    return [CONFIG_FILE, os.path.expanduser(USER_CONFIG_FILE)]


def load_settings(path=None) -> Settings:
    """Load settings from the first existing config file, or defaults.

    An explicit path must exist. Unreadable or invalid files raise ConfigError.
    """
    if path is not None and not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    for p in config_paths(path):
        if not os.path.exists(p):
            continue
        try:
            with open(p, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read config file {p}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {p} must contain a JSON object")
        try:
            return Settings(**data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid settings in {p}: {e.errors()[0]['msg']}",
                suggestion="Allowed keys: " + ", ".join(Settings.model_fields),
            ) from e
    return Settings()


def resolve_settings(settings: Optional[Settings] = None, **overrides) -> Settings:
    """Apply keyword overrides on top of settings (or the defaults)."""
    base = settings if settings is not None else Settings()
    if not overrides:
        return base
    try:
        return Settings(**{**base.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e.errors()[0]['msg']}") from e
