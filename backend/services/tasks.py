"""
Task operations. Tasks are addressed by (project id, task id) and resolve
only when the whole chain up to the principal matches.

Updates are last-write-wins: there is no version column, and two concurrent
writers to the same task simply overwrite each other's fields.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
import schemas
from auth.ownership import resolve_project, resolve_task
from services.results import (
    PROJECT_NOT_FOUND,
    TASK_NOT_FOUND,
    NotFound,
    ServiceResult,
    Success,
    ValidationFailed,
    storage_fault,
)
from services.validation import validate_payload

logger = logging.getLogger(__name__)


def list_tasks(principal_id: int, project_id: int, db: Session) -> ServiceResult:
    try:
        project = resolve_project(principal_id, project_id, db)
        if project is None:
            return NotFound(PROJECT_NOT_FOUND)

        tasks = (
            db.query(models.Task)
            .filter(models.Task.project_id == project.id)
            .order_by(models.Task.id)
            .all()
        )
    except SQLAlchemyError:
        return storage_fault(db, f"list tasks of project {project_id}")

    logger.debug(f"User {principal_id} retrieved {len(tasks)} tasks of project {project_id}")
    return Success(tasks, "Tasks retrieved successfully")


def create_task(
    principal_id: int, project_id: int, payload: Optional[Dict[str, Any]], db: Session
) -> ServiceResult:
    """Create a task; status defaults to pending when omitted or null."""
    try:
        project = resolve_project(principal_id, project_id, db)
        if project is None:
            return NotFound(PROJECT_NOT_FOUND)

        data, errors = validate_payload(schemas.TaskCreate, payload)
        if errors:
            return ValidationFailed(errors)

        status = models.TaskStatus(data.status.value) if data.status else models.TaskStatus.pending
        task = models.Task(name=data.name, status=status, project_id=project.id)
        db.add(task)
        db.commit()
        db.refresh(task)
    except SQLAlchemyError:
        return storage_fault(db, f"create task in project {project_id}")

    logger.info(f"Task created: {task.name} (ID: {task.id}) in project {project_id}")
    return Success(task, "Task created successfully", created=True)


def update_task(
    principal_id: int,
    project_id: int,
    task_id: int,
    payload: Optional[Dict[str, Any]],
    db: Session,
) -> ServiceResult:
    """Update name and/or status. Fields absent from the payload are left untouched."""
    try:
        task = resolve_task(principal_id, project_id, task_id, db)
        if task is None:
            return NotFound(TASK_NOT_FOUND)

        data, errors = validate_payload(schemas.TaskUpdate, payload)
        if errors:
            return ValidationFailed(errors)

        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            task.name = update_data["name"]
        if "status" in update_data:
            task.status = models.TaskStatus(update_data["status"].value)

        db.commit()
        db.refresh(task)
    except SQLAlchemyError:
        return storage_fault(db, f"update task {task_id}")

    logger.info(
        f"Task updated: ID {task_id} in project {project_id} by user {principal_id} "
        f"(fields: {sorted(update_data)})"
    )
    return Success(task, "Task updated successfully")


def update_task_status(
    principal_id: int,
    project_id: int,
    task_id: int,
    payload: Optional[Dict[str, Any]],
    db: Session,
) -> ServiceResult:
    try:
        task = resolve_task(principal_id, project_id, task_id, db)
        if task is None:
            return NotFound(TASK_NOT_FOUND)

        data, errors = validate_payload(schemas.TaskStatusUpdate, payload)
        if errors:
            return ValidationFailed(errors)

        old_status = task.status
        task.status = models.TaskStatus(data.status.value)
        db.commit()
        db.refresh(task)
    except SQLAlchemyError:
        return storage_fault(db, f"update status of task {task_id}")

    logger.info(f"Task {task_id} status changed: {old_status.value} -> {task.status.value}")
    return Success(task, "Task status updated successfully")
