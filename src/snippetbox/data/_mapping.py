"""Row-to-dataclass mapping with type coercion.

Converts raw rows (dicts) into frozen dataclasses using field
introspection. SQLite hands back strings for timestamps and ints for
booleans; fields annotated ``datetime``, ``int``, ``float``, ``bool``
or ``str`` are coerced to match.
"""

import dataclasses
import types
from datetime import UTC, datetime
from typing import Any, get_args, get_origin, get_type_hints


def _to_datetime(value: Any) -> datetime:
    parsed = datetime.fromisoformat(value) if isinstance(value, str) else datetime.fromtimestamp(value, UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


_COERCIBLE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
    datetime: _to_datetime,
}


def _build_coercion_map(cls: type) -> dict[str, type | None]:
    """``{field_name: target_type}``; ``None`` where no coercion applies."""
    hints = get_type_hints(cls)
    result: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name, f.type)
        # X | None coerces to X
        if get_origin(annotation) is types.UnionType:
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        result[f.name] = annotation if annotation in _COERCIBLE else None
    return result


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None or isinstance(value, target):
        return value
    return _COERCIBLE[target](value)


def map_row[T](cls: type[T], row: dict[str, Any]) -> T:
    """Map a dict row to a dataclass instance.

    Extra columns are ignored. Raises ``TypeError`` if *cls* is not a
    dataclass or required fields are missing from the row.
    """
    return map_rows(cls, [row])[0]


def map_rows[T](cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; snippetbox.data maps rows onto dataclasses only"
        raise TypeError(msg)

    coercion = _build_coercion_map(cls)
    return [
        cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})
        for row in rows
    ]
