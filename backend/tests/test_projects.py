"""
Tests for project endpoints nested under teams.
"""

import logging

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models

logger = logging.getLogger(__name__)


def test_create_and_list_projects(client: TestClient, team: models.Team, auth_headers: dict):
    created = client.post(f"/teams/{team.id}/projects", json={"name": "Backend"}, headers=auth_headers)

    assert created.status_code == 201, created.json()
    assert created.json()["message"] == "Project created successfully"
    assert created.json()["data"]["team_id"] == team.id

    response = client.get(f"/teams/{team.id}/projects", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Projects retrieved successfully"
    assert [p["name"] for p in body["data"]] == ["Backend"]


def test_list_is_scoped_to_the_team(
    client: TestClient, test_db: Session, user: models.User, team: models.Team, project: models.Project, auth_headers: dict
):
    other_team = models.Team(name="Other Team", user_id=user.id)
    test_db.add(other_team)
    test_db.commit()
    test_db.add(models.Project(name="Elsewhere", team_id=other_team.id))
    test_db.commit()

    response = client.get(f"/teams/{team.id}/projects", headers=auth_headers)

    assert [p["id"] for p in response.json()["data"]] == [project.id]


def test_foreign_team_projects_are_not_found(
    client: TestClient, foreign_team: models.Team, foreign_project: models.Project, auth_headers: dict
):
    listing = client.get(f"/teams/{foreign_team.id}/projects", headers=auth_headers)
    creating = client.post(
        f"/teams/{foreign_team.id}/projects", json={"name": "Intrusion"}, headers=auth_headers
    )

    for response in (listing, creating):
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "team not found or no access"}


def test_create_in_foreign_team_writes_nothing(
    client: TestClient, test_db: Session, foreign_team: models.Team, auth_headers: dict
):
    client.post(f"/teams/{foreign_team.id}/projects", json={"name": "Intrusion"}, headers=auth_headers)

    assert test_db.query(models.Project).filter(models.Project.team_id == foreign_team.id).count() == 0


def test_create_project_validation(client: TestClient, team: models.Team, auth_headers: dict):
    response = client.post(f"/teams/{team.id}/projects", json={"name": "ab"}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Validation failed"
    assert "name" in response.json()["errors"]


def test_projects_require_authentication(client: TestClient, team: models.Team):
    assert client.get(f"/teams/{team.id}/projects").status_code == 401
