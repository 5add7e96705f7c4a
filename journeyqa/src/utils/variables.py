"""Scoped ``{{name}}`` variables with ``{{env:NAME}}`` expansion."""
from __future__ import annotations

import os
import re
from typing import Dict, Mapping, Optional


ENV_REFERENCE = re.compile(r"^\{\{env:(\w+)\}\}$")
PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

# Environment names containing any of these fragments are never expanded.
SENSITIVE_NAME_PARTS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "PASSWD", "CREDENTIAL", "PRIVATE")


class VariableError(ValueError):
    """Base class for variable resolution failures."""


class SensitiveVariableError(VariableError):
    pass


class MissingEnvironmentVariableError(VariableError):
    pass


class UndefinedVariableError(VariableError):
    pass


def is_sensitive_env_name(name: str) -> bool:
    upper = name.upper()
    return any(part in upper for part in SENSITIVE_NAME_PARTS)


def _expand_env(key: str, value: str) -> str:
    match = ENV_REFERENCE.match(value)
    if not match:
        return value
    env_name = match.group(1)
    if is_sensitive_env_name(env_name):
        raise SensitiveVariableError(
            f'Refusing to read sensitive environment variable "{env_name}" '
            f'(referenced by variable "{key}")'
        )
    env_value = os.environ.get(env_name)
    if env_value is None:
        raise MissingEnvironmentVariableError(
            f'Environment variable "{env_name}" is not set (referenced by variable "{key}")'
        )
    return env_value


def resolve_variables(
    yaml_vars: Optional[Mapping[str, str]] = None,
    override_vars: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Merge declared variables with overrides and expand env references.

    Overrides win on key collision.
    """
    merged: Dict[str, str] = {**(yaml_vars or {}), **(override_vars or {})}
    return {key: _expand_env(key, str(value)) for key, value in merged.items()}


def substitute_variables(text: str, variables: Mapping[str, str]) -> str:
    """Replace every ``{{name}}`` in ``text``; unknown names are an error."""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            raise UndefinedVariableError(f'Undefined variable "{{{{{name}}}}}" in text: {text}')
        return variables[name]

    return PLACEHOLDER.sub(_replace, text)
