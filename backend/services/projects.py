"""
Project operations. A project is reachable only through a team the
principal owns.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
import schemas
from auth.ownership import resolve_team
from services.results import (
    TEAM_NOT_FOUND,
    NotFound,
    ServiceResult,
    Success,
    ValidationFailed,
    storage_fault,
)
from services.validation import validate_payload

logger = logging.getLogger(__name__)


def list_projects(principal_id: int, team_id: int, db: Session) -> ServiceResult:
    try:
        team = resolve_team(principal_id, team_id, db)
        if team is None:
            return NotFound(TEAM_NOT_FOUND)

        projects = (
            db.query(models.Project)
            .filter(models.Project.team_id == team.id)
            .order_by(models.Project.id)
            .all()
        )
    except SQLAlchemyError:
        return storage_fault(db, f"list projects of team {team_id}")

    logger.debug(f"User {principal_id} retrieved {len(projects)} projects of team {team_id}")
    return Success(projects, "Projects retrieved successfully")


def create_project(
    principal_id: int, team_id: int, payload: Optional[Dict[str, Any]], db: Session
) -> ServiceResult:
    try:
        team = resolve_team(principal_id, team_id, db)
        if team is None:
            return NotFound(TEAM_NOT_FOUND)

        data, errors = validate_payload(schemas.ProjectCreate, payload)
        if errors:
            return ValidationFailed(errors)

        project = models.Project(name=data.name, team_id=team.id)
        db.add(project)
        db.commit()
        db.refresh(project)
    except SQLAlchemyError:
        return storage_fault(db, f"create project in team {team_id}")

    logger.info(f"Project created: {project.name} (ID: {project.id}) in team {team_id}")
    return Success(project, "Project created successfully", created=True)
