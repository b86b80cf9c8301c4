"""Prompt template composition."""

import json
import logging
import random
import re
from collections.abc import Callable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}|]+)(?:\|([^}]+))?\}\}")

RANDOM_USER_ADJECTIVES = ("sick", "cool", "awesome", "amazing", "great")
RANDOM_USER_NOUNS = ("user", "person", "individual", "human", "being")

_MISSING = object()

Formatter = Callable[[Any], str]


def _get_nested_value(source: Any, path: list[str]) -> Any:
    """Walk ``source`` along ``path``.

    Mappings are walked by key, other objects by attribute.

    Returns:
        The value, or ``_MISSING`` when any step is absent.
    """
    current = source
    for key in path:
        if current is None or current is _MISSING:
            return _MISSING
        if isinstance(current, Mapping):
            current = current.get(key, _MISSING)
        else:
            current = getattr(current, key, _MISSING)
    return current


def format_value(value: Any) -> str:
    """Default stringification for template values.

    Args:
        value: Resolved value.

    Returns:
        ``""`` for None, comma-joined items for sequences, JSON for
        mappings, ``str(value)`` otherwise.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def compose_context(
    template: str,
    state: Mapping[str, Any],
    default_values: Mapping[str, Any] | None = None,
    formatters: Mapping[str, Formatter] | None = None,
) -> str:
    """Fill ``{{path}}`` / ``{{path|formatter}}`` placeholders.

    Each path is resolved against ``state`` first and ``default_values``
    second. Unresolved placeholders are kept verbatim and logged.

    Args:
        template: Template text.
        state: Primary values.
        default_values: Fallback values.
        formatters: Named formatting functions.

    Returns:
        The composed text.
    """
    defaults = default_values or {}
    named_formatters = formatters or {}

    def replace(match: re.Match[str]) -> str:
        variable = match.group(1)
        formatter_name = match.group(2)
        path = variable.strip().split(".")

        value = _get_nested_value(state, path)
        if value is _MISSING:
            value = _get_nested_value(defaults, path)

        if value is _MISSING:
            logger.warning(
                "Variable %s not found in state or default values", variable
            )
            return match.group(0)

        if formatter_name and formatter_name in named_formatters:
            return named_formatters[formatter_name](value)
        return format_value(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def compose_random_user(
    template: str,
    count: int,
    rng: random.Random | None = None,
) -> str:
    """Replace ``{{user1}}`` .. ``{{userN}}`` with random display names.

    Args:
        template: Template text.
        count: Number of user placeholders to fill.
        rng: Random source (module-level random if omitted).

    Returns:
        The template with user placeholders filled.
    """
    chooser = rng or random
    result = template
    for i in range(1, count + 1):
        name = f"{chooser.choice(RANDOM_USER_ADJECTIVES)} {chooser.choice(RANDOM_USER_NOUNS)}"
        result = result.replace(f"{{{{user{i}}}}}", name)
    return result
