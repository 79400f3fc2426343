"""
Shared Serialization Utilities.

Provides the JSON encoding used by state store backends. Values are encoded
to plain JSON on write and validated back into a requested type on read, so
a backend only ever holds opaque strings.

Usage:
    from agentmesh.utils.serialization import dumps_value, loads_value

    raw = dumps_value(conversation_state)
    state = loads_value(raw, ConversationState)

Version: 1.0.0
"""

import json
from datetime import datetime, date, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError


class SerializationError(Exception):
    """Raised when serialization or deserialization fails."""
    pass


T = TypeVar('T')


def _serialize_value(value: Any) -> Any:
    """
    Serialize a value to a JSON-compatible format.

    Handles:
    - datetime/date objects -> ISO format strings
    - timedelta -> seconds
    - Enum values -> underlying value
    - Pydantic models -> dict (via model_dump)
    - Objects with to_dict() method
    - Nested dicts, lists, tuples and sets

    Raises:
        SerializationError: If the value has no JSON representation
    """
    if value is None:
        return None
    elif isinstance(value, BaseModel):
        return value.model_dump(mode='json')
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, timedelta):
        return value.total_seconds()
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize_value(v) for v in value]
    elif hasattr(value, 'to_dict'):
        return _serialize_value(value.to_dict())
    elif isinstance(value, (str, int, float, bool)):
        return value
    raise SerializationError(
        f"Value of type {type(value).__name__} is not serializable"
    )


@lru_cache(maxsize=256)
def _adapter(value_type: Any) -> TypeAdapter:
    return TypeAdapter(value_type)


def dumps_value(value: Any) -> str:
    """
    Serialize a value to a JSON string.

    Raises:
        SerializationError: If serialization fails
    """
    try:
        return json.dumps(_serialize_value(value))
    except SerializationError:
        raise
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize to JSON: {e}") from e


def loads_value(raw: str, value_type: Type[T] = Any) -> T:
    """
    Deserialize a JSON string and validate it into value_type.

    Args:
        raw: JSON string produced by dumps_value
        value_type: Target type (pydantic model, builtin, typing generic, Any)

    Raises:
        SerializationError: If the payload is not valid JSON or does not
            validate against value_type
    """
    try:
        return _adapter(value_type).validate_json(raw)
    except ValidationError as e:
        raise SerializationError(
            f"Stored value does not match {getattr(value_type, '__name__', value_type)}: {e}"
        ) from e
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid JSON: {e}") from e


def coerce_value(value: Any, value_type: Type[T] = Any) -> T:
    """
    Validate an already-decoded value (e.g. a stored variable) into value_type.

    Raises:
        SerializationError: If the value does not validate against value_type
    """
    try:
        return _adapter(value_type).validate_python(value)
    except ValidationError as e:
        raise SerializationError(
            f"Value does not match {getattr(value_type, '__name__', value_type)}: {e}"
        ) from e
