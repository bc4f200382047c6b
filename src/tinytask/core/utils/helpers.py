"""
Helper utilities shared by the services
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Type, TypeVar, Union
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tinytask.core.errors import ValidationError

ModelType = TypeVar("ModelType", bound=BaseModel)


def pick_dict(data: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Pick keys from dictionary - pure utility function"""
    keys = set(keys)
    return {k: v for k, v in data.items() if k in keys}


def require_text(value: Optional[str], message: str) -> str:
    """
    Return the trimmed text or raise ValidationError when nothing is left

    Args:
        value: Raw caller value
        message: Error message used when the value is missing or blank

    Returns:
        The stripped string
    """
    if value is None or not isinstance(value, str):
        raise ValidationError(message)
    stripped = value.strip()
    if not stripped:
        raise ValidationError(message)
    return stripped


def optional_text(value: Optional[str]) -> Optional[str]:
    """Empty strings are stored as NULL"""
    return value or None


def coerce_model(model_class: Type[ModelType], data: Union[ModelType, Mapping[str, Any], None]) -> ModelType:
    """
    Accept either a model instance or a plain mapping

    Pydantic's own validation errors are re-raised as tinytask ValidationError
    so callers only deal with one taxonomy.

    Args:
        model_class: Target pydantic model
        data: Model instance, mapping of fields, or None for an empty model

    Returns:
        Instance of model_class
    """
    if isinstance(data, model_class):
        return data
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"Expected {model_class.__name__} or mapping, got {type(data).__name__}"
        )
    try:
        return model_class.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid {model_class.__name__}: {errors}") from e
