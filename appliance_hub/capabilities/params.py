"""
Parameter validation against operation schemas.

Turns loosely typed caller input (JSON bodies, CLI strings) into the
normalized keyword arguments a capability method expects.
"""

import math
import re
from typing import Any, Mapping, Optional

from .exceptions import InvalidParameterError
from .registry import OperationDescriptor, ParamSpec, ParamType

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

_TRUE_STRINGS = {"true", "on", "yes", "1"}
_FALSE_STRINGS = {"false", "off", "no", "0"}


def to_snake_case(name: str) -> str:
    """Convert a camelCase schema or action name to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def validate_params(
    descriptor: OperationDescriptor,
    params: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """
    Validate and normalize parameters for an operation.

    Defaults are applied for missing values, unknown keys are rejected.
    Keys of the returned dict keep their schema (camelCase) names.

    Raises:
        InvalidParameterError: on the first parameter that fails
    """
    params = dict(params or {})
    known = {spec.name for spec in descriptor.params}
    unknown = sorted(set(params) - known)
    if unknown:
        raise InvalidParameterError(unknown[0], "unknown parameter")
    return _validate_fields(descriptor.params, params)


def _validate_fields(specs: tuple[ParamSpec, ...], values: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in specs:
        value = values.get(spec.name)
        if value is None or value == "":
            if spec.default is not None:
                result[spec.name] = spec.default
            elif spec.required:
                raise InvalidParameterError(spec.name, "is required")
            continue
        result[spec.name] = coerce_value(spec, value)
    return result


def coerce_value(spec: ParamSpec, value: Any) -> Any:
    """Coerce a single value to the parameter's declared type."""
    if spec.type == ParamType.BOOLEAN:
        return _coerce_boolean(spec, value)
    if spec.type == ParamType.NUMBER:
        return _coerce_number(spec, value)
    if spec.type == ParamType.STRING:
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            raise InvalidParameterError(spec.name, "must be a string")
        return str(value)
    if spec.type == ParamType.ENUM:
        return _coerce_enum(spec, value)
    if spec.type == ParamType.RGB:
        return _coerce_rgb(spec, value)
    if spec.type == ParamType.OBJECT:
        return _coerce_object(spec, value)
    raise InvalidParameterError(spec.name, f"unsupported type {spec.type!r}")


def _coerce_boolean(spec: ParamSpec, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise InvalidParameterError(spec.name, "must be a boolean")


def _coerce_number(spec: ParamSpec, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidParameterError(spec.name, "must be a number")
    if isinstance(value, str):
        try:
            number = int(value)
        except ValueError:
            try:
                number = float(value)
            except ValueError:
                raise InvalidParameterError(spec.name, "must be a number") from None
    elif isinstance(value, (int, float)):
        number = value
    else:
        raise InvalidParameterError(spec.name, "must be a number")

    if isinstance(number, float) and not math.isfinite(number):
        raise InvalidParameterError(spec.name, "must be a finite number")
    if spec.min is not None and number < spec.min:
        raise InvalidParameterError(spec.name, f"must be at least {spec.min}")
    if spec.max is not None and number > spec.max:
        raise InvalidParameterError(spec.name, f"must be at most {spec.max}")
    return number


def _coerce_enum(spec: ParamSpec, value: Any) -> Any:
    for choice in spec.choices:
        if value == choice.value and type(value) is not bool:
            return choice.value
        if isinstance(value, str):
            if value.strip().lower() == choice.name.lower() or value.strip() == str(choice.value):
                return choice.value
    allowed = ", ".join(str(c.value) for c in spec.choices)
    raise InvalidParameterError(spec.name, f"must be one of: {allowed}")


def _coerce_rgb(spec: ParamSpec, value: Any) -> tuple[int, int, int]:
    if isinstance(value, str):
        parts: list[Any] = [p.strip() for p in value.split(",")]
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        raise InvalidParameterError(spec.name, "must be an r,g,b triple")

    if len(parts) != 3:
        raise InvalidParameterError(spec.name, "must be an r,g,b triple")

    components = []
    for part in parts:
        if isinstance(part, bool):
            raise InvalidParameterError(spec.name, "components must be integers")
        try:
            component = int(part)
        except (TypeError, ValueError):
            raise InvalidParameterError(spec.name, "components must be integers") from None
        if not 0 <= component <= 255:
            raise InvalidParameterError(spec.name, "components must be between 0 and 255")
        components.append(component)
    return components[0], components[1], components[2]


def _coerce_object(spec: ParamSpec, value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidParameterError(spec.name, "must be an object")
    result = dict(value)
    if spec.properties:
        try:
            result.update(_validate_fields(spec.properties, value))
        except InvalidParameterError as e:
            raise InvalidParameterError(f"{spec.name}.{e.param}", e.reason) from e
    return result
