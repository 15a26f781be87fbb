"""
Direct tests of the ownership chain resolvers, without the HTTP layer.
"""

import logging

from sqlalchemy.orm import Session

import models
from auth.ownership import resolve_project, resolve_task, resolve_team
from tests.conftest import make_task

logger = logging.getLogger(__name__)


def test_resolve_team_for_owner(test_db: Session, user: models.User, team: models.Team):
    assert resolve_team(user.id, team.id, test_db).id == team.id


def test_resolve_team_for_other_user(test_db: Session, another_user: models.User, team: models.Team):
    assert resolve_team(another_user.id, team.id, test_db) is None


def test_resolve_team_missing(test_db: Session, user: models.User):
    assert resolve_team(user.id, 12345, test_db) is None


def test_resolve_project_walks_team_owner(
    test_db: Session, user: models.User, another_user: models.User, project: models.Project
):
    assert resolve_project(user.id, project.id, test_db).id == project.id
    assert resolve_project(another_user.id, project.id, test_db) is None
    assert resolve_project(user.id, project.id + 1000, test_db) is None


def test_resolve_task_requires_matching_project(
    test_db: Session, user: models.User, team: models.Team, project: models.Project, task: models.Task
):
    sibling = models.Project(name="Sibling", team_id=team.id)
    test_db.add(sibling)
    test_db.commit()

    assert resolve_task(user.id, project.id, task.id, test_db).id == task.id
    assert resolve_task(user.id, sibling.id, task.id, test_db) is None


def test_resolve_task_for_other_user(
    test_db: Session, user: models.User, another_user: models.User, foreign_project: models.Project, project: models.Project
):
    foreign_task = make_task(test_db, foreign_project.id, "Private")

    assert resolve_task(another_user.id, foreign_project.id, foreign_task.id, test_db).id == foreign_task.id
    assert resolve_task(user.id, foreign_project.id, foreign_task.id, test_db) is None
    # Naming one's own project does not unlock a foreign task
    assert resolve_task(user.id, project.id, foreign_task.id, test_db) is None
