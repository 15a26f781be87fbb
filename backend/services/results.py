"""
Typed outcomes returned by every service operation.

Ownership and validation failures are ordinary results, not exceptions.
The presentation layer maps each variant to a status code and envelope.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class Success:
    data: Any = None
    message: Optional[str] = None
    created: bool = False


@dataclass
class NotFound:
    message: str


@dataclass
class ValidationFailed:
    errors: Dict[str, List[str]] = field(default_factory=dict)
    message: str = "Validation failed"


@dataclass
class InternalFault:
    # Client-facing text only; the cause is logged where the fault happens
    message: str = "Internal server error"


ServiceResult = Union[Success, NotFound, ValidationFailed, InternalFault]

TEAM_NOT_FOUND = "team not found or no access"
PROJECT_NOT_FOUND = "project not found or no access"
TASK_NOT_FOUND = "task not found or no access"


def storage_fault(db, action: str) -> InternalFault:
    """
    Roll back the session and log the active exception for an aborted action.

    Call from inside an `except` block; the traceback stays in the server log.
    """
    db.rollback()
    logger.exception(f"Storage failure while trying to {action}")
    return InternalFault()
