"""
Shared helpers for request validation.

Requests are validated in one pass: every missing or invalid field is
reported together instead of failing on the first one.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from chefcopilot.core.exceptions import InvalidInputError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Leading location parts FastAPI adds to say where a field came from
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def invalid_input_from_errors(errors: Iterable[Mapping[str, Any]]) -> InvalidInputError:
    """
    Collapse pydantic-style error dicts into one InvalidInputError.

    Missing fields are listed in ``missing_fields``; every other problem is
    described in the message as ``field: reason``.
    """
    missing: List[str] = []
    problems: List[str] = []

    for error in errors:
        name = _field_name(error.get("loc", ()))
        if error.get("type") == "missing":
            if name not in missing:
                missing.append(name)
        else:
            problems.append(f"{name}: {error.get('msg')}")

    parts = []
    if missing:
        parts.append(f"Missing required fields: {', '.join(missing)}")
    if problems:
        parts.append(f"Invalid fields: {'; '.join(problems)}")

    return InvalidInputError(". ".join(parts) or "Invalid request", missing_fields=missing)


def parse_request(model_cls: Type[ModelT], payload: Optional[Dict[str, Any]]) -> ModelT:
    """
    Validate ``payload`` against ``model_cls``.

    Raises:
        InvalidInputError: listing every missing field and every invalid one
    """
    try:
        return model_cls.model_validate(payload or {})
    except ValidationError as e:
        raise invalid_input_from_errors(e.errors()) from e
