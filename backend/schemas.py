from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError
from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar
from enum import Enum

from time_utils import as_utc


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class RequestModel(BaseModel):
    """Base for request payloads; surrounding whitespace is not part of a value."""
    model_config = ConfigDict(str_strip_whitespace=True)


class ResponseModel(BaseModel):
    """Base for serialized entities."""
    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def timestamps_in_utc(cls, value):
        # SQLite hands back naive datetimes; every stored timestamp is UTC
        if isinstance(value, datetime):
            return as_utc(value)
        return value


# User schemas
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=4)
    password_confirmation: Optional[str] = Field(None, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, value):
        if isinstance(value, str) and len(value) > 255:
            raise PydanticCustomError(
                "string_too_long",
                "String should have at most {max_length} characters",
                {"max_length": 255},
            )
        return value

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value, info: ValidationInfo):
        # Skipped when password itself failed; that error is already reported
        if "password" in info.data and info.data["password"] != value:
            raise PydanticCustomError(
                "confirmed",
                "password confirmation does not match",
                {"field": "password"},
            )
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class User(ResponseModel):
    id: int
    name: str
    email: str
    email_verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class LoginUser(ResponseModel):
    """Reduced user view returned by the login endpoint."""

    name: str
    email: str
    email_verified_at: Optional[datetime] = None


class RegisterData(BaseModel):
    user: User
    token: str
    token_type: str = "Bearer"


class LoginData(BaseModel):
    user: LoginUser
    token: str
    token_type: str = "Bearer"


# Team schemas
class TeamCreate(RequestModel):
    name: str = Field(..., min_length=3, max_length=255)


class TeamUpdate(TeamCreate):
    pass


class Team(ResponseModel):
    id: int
    name: str
    user_id: int
    created_at: datetime
    updated_at: datetime


# Project schemas
class ProjectCreate(RequestModel):
    name: str = Field(..., min_length=3, max_length=255)


class Project(ResponseModel):
    id: int
    name: str
    team_id: int
    created_at: datetime
    updated_at: datetime


# Task schemas
class TaskCreate(RequestModel):
    name: str = Field(..., min_length=3, max_length=255)
    status: Optional[TaskStatus] = None  # null or missing falls back to pending


class TaskUpdate(RequestModel):
    """
    Partial task update.

    Both fields may be omitted, but a field that is sent must carry a value:
    an explicit null is rejected instead of being treated as "unchanged".
    """
    name: Optional[str] = Field(None, min_length=3, max_length=255)
    status: Optional[TaskStatus] = None

    @field_validator("name", "status", mode="before")
    @classmethod
    def reject_explicit_null(cls, value):
        # Only runs for keys present in the payload
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PydanticCustomError("required", "field is required when present")
        return value


class TaskStatusUpdate(RequestModel):
    status: TaskStatus


class Task(ResponseModel):
    id: int
    name: str
    status: TaskStatus
    project_id: int
    created_at: datetime
    updated_at: datetime


# Response envelopes (documentation of the JSON wrapper)
DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    message: str


class ValidationErrorEnvelope(ErrorEnvelope):
    errors: Dict[str, List[str]]
