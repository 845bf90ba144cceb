"""Form value parsing helpers shared across plugins."""

from __future__ import annotations

from typing import Any, List, Mapping

from .validation import ValidationError


FormDataLike = Mapping[str, Any] | Any


def _lookup(data: FormDataLike, key: str) -> Any:
    if data is None:
        return None
    getter = getattr(data, "get", None)
    if callable(getter):
        return getter(key)
    return data[key] if isinstance(data, Mapping) and key in data else None


def get_float(
    data: FormDataLike,
    key: str,
    default: float,
    *,
    field_name: str | None = None,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """Extract a float from *data* with validation.

    Missing or blank values fall back to ``default``. ``minimum`` and
    ``maximum`` bounds are optional and inclusive.
    """

    field_label = field_name or key
    raw = _lookup(data, key)
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        value = default
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid value for {field_label}") from exc

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_label} must be ≥ {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_label} must be ≤ {maximum}")

    return value


def get_int_list(data: FormDataLike, key: str, *, field_name: str | None = None) -> List[int] | None:
    """Extract a comma separated list of integers, or ``None`` when absent."""

    field_label = field_name or key
    raw = _lookup(data, key)
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return None
    values: List[int] = []
    for token in str(raw).replace(" ", "").split(","):
        if not token:
            continue
        try:
            values.append(int(token))
        except ValueError as exc:
            raise ValidationError(f"Invalid value for {field_label}") from exc
    return values


def get_bool(
    data: FormDataLike,
    key: str,
    default: bool = False,
    *,
    truthy: tuple[str, ...] = ("1", "true", "on", "yes"),
) -> bool:
    """Extract a boolean flag from *data*."""

    raw = _lookup(data, key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        return raw.strip().lower() in truthy
    return default


__all__ = ["get_float", "get_int_list", "get_bool"]
