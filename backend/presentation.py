"""
Maps service results and framework errors onto the JSON envelope:

    {"success": bool, "message"?: str, "data"?: T, "errors"?: {field: [msg]}}
"""

import json
import logging
from typing import Any, Dict, Optional, Type

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas import Envelope, ErrorEnvelope, ValidationErrorEnvelope
from services.results import (
    InternalFault,
    NotFound,
    ServiceResult,
    Success,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

# Starlette renamed the 422 constant across releases
HTTP_422_UNPROCESSABLE = 422


def envelope(
    success: bool,
    message: Optional[str] = None,
    data: Any = None,
    errors: Optional[Dict[str, Any]] = None,
    include_data: bool = False,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if include_data or data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    return body


def serialize(data: Any, schema: Optional[Type[BaseModel]]) -> Any:
    """Serialize ORM entities (or lists of them) through a response schema."""
    if schema is None or data is None:
        return jsonable_encoder(data)
    if isinstance(data, list):
        return [schema.model_validate(item).model_dump(mode="json") for item in data]
    return schema.model_validate(data).model_dump(mode="json")


def render(result: ServiceResult, schema: Optional[Type[BaseModel]] = None) -> JSONResponse:
    """
    Turn a service result into an HTTP response.

    Success -> 200 (201 when it created something), NotFound -> 404,
    ValidationFailed -> 422, InternalFault -> 500 with a generic message.
    """
    if isinstance(result, Success):
        status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
        return JSONResponse(
            status_code=status_code,
            content=envelope(
                True,
                result.message,
                serialize(result.data, schema),
                include_data=result.data is not None,
            ),
        )

    if isinstance(result, NotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=envelope(False, result.message),
        )

    if isinstance(result, ValidationFailed):
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE,
            content=envelope(False, result.message, errors=result.errors),
        )

    if isinstance(result, InternalFault):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=envelope(False, result.message),
        )

    logger.error(f"Unknown service result type: {type(result).__name__}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(False, InternalFault().message),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(False, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: Dict[str, list] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        field_name = loc[0] if loc else "body"
        errors.setdefault(field_name, []).append(error.get("msg", "Invalid value"))

    logger.info(f"Request validation failed on {request.url.path}: {sorted(errors)}")
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE,
        content=envelope(False, ValidationFailed().message, errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(False, InternalFault().message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


async def json_payload(request: Request) -> Any:
    """
    Decode the request body as JSON without validating its shape.

    Shape validation belongs to the services, after the ownership check. An
    empty body decodes to None; a body that is not JSON is a 422.
    """
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "The request body must be valid JSON.", "input": None}]
        )


def _inline_refs(node: Any, defs: Dict[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            return _inline_refs(defs[ref.split("/")[-1]], defs)
        return {key: _inline_refs(value, defs) for key, value in node.items() if key != "$defs"}
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    return node


def request_body(model: Type[BaseModel], required: bool = True) -> Dict[str, Any]:
    """
    Build `openapi_extra` documenting a request schema that the route does not
    validate itself.
    """
    schema = model.model_json_schema()
    schema = _inline_refs(schema, schema.get("$defs", {}))
    return {
        "requestBody": {
            "required": required,
            "content": {"application/json": {"schema": schema}},
        }
    }


def api_responses(
    success_model: Optional[Any] = None,
    success_status: int = status.HTTP_200_OK,
    not_found: bool = True,
    validation: bool = True,
    authenticated: bool = True,
) -> Dict[int, Dict[str, Any]]:
    """Document the envelope each outcome of a route is rendered into."""
    responses: Dict[int, Dict[str, Any]] = {
        success_status: {"model": success_model or Envelope[None]},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorEnvelope, "description": "Internal server error"},
    }
    if authenticated:
        responses[status.HTTP_401_UNAUTHORIZED] = {"model": ErrorEnvelope, "description": "Unauthenticated"}
    if not_found:
        responses[status.HTTP_404_NOT_FOUND] = {"model": ErrorEnvelope, "description": "Not found or no access"}
    if validation:
        responses[HTTP_422_UNPROCESSABLE] = {"model": ValidationErrorEnvelope, "description": "Validation failed"}
    return responses
