"""Helpers for list/dict attributes persisted as JSON in Text fields."""

import json


def dumps_json(value) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def loads_json(value, default=None):
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return default
