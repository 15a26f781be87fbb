"""
Payload validation on top of pydantic request models.

Services call validate_payload after the ownership check so a caller without
access never learns anything about the expected payload shape.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ErrorMap = Dict[str, List[str]]


def _describe(field_name: str, error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}
    label = field_name.replace("_", " ")

    if error_type == "confirmed":
        return f"The {label} field confirmation does not match."

    raw = error.get("input")
    blank = raw is None or (isinstance(raw, str) and not raw.strip())
    if error_type in ("missing", "required") or blank:
        return f"The {label} field is required."
    if error_type == "string_type":
        return f"The {label} field must be a string."
    if error_type == "string_too_short":
        return f"The {label} field must be at least {ctx.get('min_length')} characters."
    if error_type == "string_too_long":
        return f"The {label} field must not be greater than {ctx.get('max_length')} characters."
    if error_type == "enum":
        return f"The selected {label} is invalid."
    if error_type == "value_error" and "email" in field_name:
        return f"The {label} field must be a valid email address."
    return error.get("msg", f"The {label} field is invalid.")


def errors_from_exception(exc: ValidationError) -> ErrorMap:
    """
    Flatten a pydantic ValidationError into {field: [message, ...]}.

    Every violation is kept, not just the first one per payload.
    """
    errors: ErrorMap = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        ctx = error.get("ctx") or {}
        # Cross-field checks name the field they report under, e.g. the
        # password confirmation mismatch is filed under "password"
        if "field" in ctx:
            field_name = str(ctx["field"])
        elif loc:
            field_name = str(loc[0])
        else:
            field_name = "body"
        errors.setdefault(field_name, []).append(_describe(field_name, error))
    return errors


def validate_payload(
    schema: Type[ModelT], payload: Optional[Dict[str, Any]]
) -> Tuple[Optional[ModelT], ErrorMap]:
    """
    Validate a raw JSON payload against a request schema.

    Args:
        schema: pydantic model class describing the accepted fields
        payload: decoded JSON body (None is treated as an empty object)

    Returns:
        (model, {}) when valid, (None, errors) otherwise
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        logger.info(f"Rejected non-object payload for {schema.__name__}")
        return None, {"body": ["The request body must be a JSON object."]}

    try:
        model = schema.model_validate(payload)
    except ValidationError as e:
        errors = errors_from_exception(e)
        logger.info(f"Validation failed for {schema.__name__}: {sorted(errors)}")
        return None, errors

    return model, {}
