from __future__ import annotations

"""Per-deployment studio content: prompt profile and redaction rules.

Both default to the built-in Luminary values and can be replaced with JSON
files (``STUDIO_PROFILE_PATH``, ``REDACTION_RULES_PATH``) so one build
serves every studio.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from assistant.core.prompt import DEFAULT_PROFILE, StudioProfile
from assistant.errors import ConfigurationError
from assistant.relay import DEFAULT_RULES, RedactionRule
from config.settings import get_settings


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read {path}: {exc}") from exc


def load_studio_profile(path: Optional[str] = None) -> StudioProfile:
    if not path:
        return DEFAULT_PROFILE
    try:
        return StudioProfile.model_validate(_read_json(path))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid studio profile in {path}: {exc}") from exc


def load_redaction_rules(path: Optional[str] = None) -> List[RedactionRule]:
    """Rules file is a JSON list of ``{"pattern": ..., "replacement": ...}``."""
    if not path:
        return list(DEFAULT_RULES)
    try:
        return TypeAdapter(List[RedactionRule]).validate_python(_read_json(path))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid redaction rules in {path}: {exc}") from exc


@lru_cache(maxsize=1)
def get_studio_profile() -> StudioProfile:
    return load_studio_profile(get_settings().studio_profile_path)


@lru_cache(maxsize=1)
def get_redaction_rules() -> List[RedactionRule]:
    return load_redaction_rules(get_settings().redaction_rules_path)
