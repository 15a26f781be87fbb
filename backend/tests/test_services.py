"""
Tests for the service result contract: validation error mapping, internal
faults, and how results are rendered.
"""

import json
import logging
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import models
import schemas
from presentation import render
from services import tasks as task_service
from services import teams as team_service
from services.results import InternalFault, NotFound, Success, ValidationFailed
from services.validation import validate_payload

logger = logging.getLogger(__name__)


def broken_session() -> MagicMock:
    db = MagicMock(spec=Session)
    db.query.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
    return db


def test_validate_payload_returns_model():
    data, errors = validate_payload(schemas.TaskCreate, {"name": "Valid name"})

    assert errors == {}
    assert data.name == "Valid name"
    assert data.status is None


def test_validate_payload_rejects_non_object():
    data, errors = validate_payload(schemas.TeamCreate, ["name"])

    assert data is None
    assert errors == {"body": ["The request body must be a JSON object."]}


def test_validate_payload_length_messages():
    _, errors = validate_payload(schemas.TeamCreate, {"name": "y" * 300})
    assert errors == {"name": ["The name field must not be greater than 255 characters."]}


def test_service_returns_typed_results(test_db: Session, user: models.User, another_user: models.User, team: models.Team):
    assert isinstance(team_service.get_team(user.id, team.id, test_db), Success)
    assert isinstance(team_service.get_team(another_user.id, team.id, test_db), NotFound)
    assert isinstance(team_service.create_team(user.id, {"name": "x"}, test_db), ValidationFailed)


def test_storage_failure_becomes_internal_fault():
    db = broken_session()

    result = task_service.list_tasks(1, 1, db)

    assert isinstance(result, InternalFault)
    db.rollback.assert_called_once()


def test_internal_fault_renders_generic_500():
    response = render(team_service.list_teams(1, broken_session()))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body == {"success": False, "message": "Internal server error"}
    assert "locked" not in response.body.decode()


def test_render_status_codes():
    assert render(Success([], created=False)).status_code == 200
    assert render(Success({"id": 1}, created=True)).status_code == 201
    assert render(NotFound("team not found or no access")).status_code == 404
    assert render(ValidationFailed({"name": ["bad"]})).status_code == 422
