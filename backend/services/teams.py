"""
Team operations scoped to the owning user.
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


def list_teams(principal_id: int, db: Session) -> ServiceResult:
    """List the principal's teams, newest first."""
    try:
        teams = (
            db.query(models.Team)
            .filter(models.Team.user_id == principal_id)
            .order_by(models.Team.created_at.desc(), models.Team.id.desc())
            .all()
        )
    except SQLAlchemyError:
        return storage_fault(db, f"list teams for user {principal_id}")

    logger.debug(f"User {principal_id} retrieved {len(teams)} teams")
    return Success(teams)


def create_team(principal_id: int, payload: Optional[Dict[str, Any]], db: Session) -> ServiceResult:
    """Create a team owned by the principal."""
    data, errors = validate_payload(schemas.TeamCreate, payload)
    if errors:
        return ValidationFailed(errors)

    try:
        team = models.Team(name=data.name, user_id=principal_id)
        db.add(team)
        db.commit()
        db.refresh(team)
    except SQLAlchemyError:
        return storage_fault(db, f"create team for user {principal_id}")

    logger.info(f"Team created: {team.name} (ID: {team.id}) by user {principal_id}")
    return Success(team, "Team created successfully", created=True)


def get_team(principal_id: int, team_id: int, db: Session) -> ServiceResult:
    try:
        team = resolve_team(principal_id, team_id, db)
    except SQLAlchemyError:
        return storage_fault(db, f"read team {team_id}")

    if team is None:
        return NotFound(TEAM_NOT_FOUND)
    return Success(team)


def update_team(
    principal_id: int, team_id: int, payload: Optional[Dict[str, Any]], db: Session
) -> ServiceResult:
    """Rename a team. Ownership is checked before the payload is looked at."""
    try:
        team = resolve_team(principal_id, team_id, db)
        if team is None:
            return NotFound(TEAM_NOT_FOUND)

        data, errors = validate_payload(schemas.TeamUpdate, payload)
        if errors:
            return ValidationFailed(errors)

        team.name = data.name
        db.commit()
        db.refresh(team)
    except SQLAlchemyError:
        return storage_fault(db, f"update team {team_id}")

    logger.info(f"Team updated: {team.name} (ID: {team_id}) by user {principal_id}")
    return Success(team, "Team updated successfully")


def delete_team(principal_id: int, team_id: int, db: Session) -> ServiceResult:
    """
    Delete a team together with its projects and their tasks.

    The cascade runs in one transaction, so stale project or task ids from the
    deleted team resolve as not found afterwards.
    """
    try:
        team = resolve_team(principal_id, team_id, db)
        if team is None:
            return NotFound(TEAM_NOT_FOUND)

        project_count = len(team.projects)
        task_count = sum(len(project.tasks) for project in team.projects)

        db.delete(team)
        db.commit()
    except SQLAlchemyError:
        return storage_fault(db, f"delete team {team_id}")

    logger.info(
        f"Team deleted: ID {team_id} by user {principal_id}. "
        f"Cascaded {project_count} projects and {task_count} tasks."
    )
    return Success(None, "Team deleted successfully")
