"""
Ownership chain resolution.

A resource is reachable by a principal only through an unbroken chain
User -> Team -> Project -> Task. Each resolver runs a single query joining the
whole chain and filtering on the principal, so a resource owned by someone
else and a resource that does not exist produce the same outcome: None.

None is the not-found signal. It is an expected branch, never an exception;
the services turn it into a NotFound result with a resource-specific message.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from models import Team, Project, Task

logger = logging.getLogger(__name__)


def resolve_team(principal_id: int, team_id: int, db: Session) -> Optional[Team]:
    """
    Resolve a team owned by the principal.

    Args:
        principal_id: ID of the authenticated user
        team_id: ID of the requested team
        db: Database session

    Returns:
        The Team if it exists and is owned by the principal, None otherwise

    Example:
        >>> team = resolve_team(user.id, 7, db)
        >>> if team is None:
        ...     return NotFound(TEAM_NOT_FOUND)
    """
    team = (
        db.query(Team)
        .filter(Team.id == team_id, Team.user_id == principal_id)
        .first()
    )
    if team is None:
        logger.info(f"Team {team_id} not resolvable for user {principal_id}")
    else:
        logger.debug(f"Team {team_id} resolved for user {principal_id}")
    return team


def resolve_project(principal_id: int, project_id: int, db: Session) -> Optional[Project]:
    """
    Resolve a project whose team is owned by the principal.

    Equivalent to joining project -> team and filtering on both the project id
    and the team's owning user.
    """
    project = (
        db.query(Project)
        .join(Team, Project.team_id == Team.id)
        .filter(Project.id == project_id, Team.user_id == principal_id)
        .first()
    )
    if project is None:
        logger.info(f"Project {project_id} not resolvable for user {principal_id}")
    else:
        logger.debug(f"Project {project_id} resolved for user {principal_id}")
    return project


def resolve_task(
    principal_id: int, project_id: int, task_id: int, db: Session
) -> Optional[Task]:
    """
    Resolve a task through its project and team up to the principal.

    Both path ids must agree: a task that exists and belongs to the principal,
    but under a different project than `project_id`, does not resolve.

    Args:
        principal_id: ID of the authenticated user
        project_id: Project ID named in the request path
        task_id: Task ID named in the request path
        db: Database session

    Returns:
        The Task if the full chain matches, None otherwise
    """
    task = (
        db.query(Task)
        .join(Project, Task.project_id == Project.id)
        .join(Team, Project.team_id == Team.id)
        .filter(
            Task.id == task_id,
            Project.id == project_id,
            Team.user_id == principal_id,
        )
        .first()
    )
    if task is None:
        logger.info(
            f"Task {task_id} in project {project_id} not resolvable for user {principal_id}"
        )
    else:
        logger.debug(f"Task {task_id} resolved for user {principal_id}")
    return task
