from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import Any, List
import logging
import os

from database import get_db, engine, Base
import models
import schemas
from auth.routes import router as auth_router
from auth.dependencies import get_current_user
from presentation import (
    api_responses,
    json_payload,
    register_exception_handlers,
    render,
    request_body,
)
from services import teams as team_service
from services import projects as project_service
from services import tasks as task_service

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Task API",
    description="Multi-tenant task management: users own teams, teams own projects, projects own tasks",
    version="1.0.0"
)

# CORS middleware for frontend
cors_origins = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register authentication router
app.include_router(auth_router)


# ============== Startup: Ensure Schema Exists ==============

@app.on_event("startup")
def ensure_schema():
    """Create missing tables unless AUTO_CREATE_TABLES is disabled (migrations own the schema then)."""
    if os.environ.get("AUTO_CREATE_TABLES", "true").lower() not in ("1", "true", "yes"):
        logger.info("AUTO_CREATE_TABLES disabled, skipping schema creation")
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ensured")


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# ============== Teams ==============

@app.get(
    "/teams",
    responses=api_responses(schemas.Envelope[List[schemas.Team]], not_found=False, validation=False),
)
def list_teams(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the current user's teams, newest first."""
    logger.debug(f"User {current_user.id} listing teams")
    return render(team_service.list_teams(current_user.id, db), schema=schemas.Team)


@app.post(
    "/teams",
    status_code=status.HTTP_201_CREATED,
    openapi_extra=request_body(schemas.TeamCreate),
    responses=api_responses(schemas.Envelope[schemas.Team], status.HTTP_201_CREATED, not_found=False),
)
def create_team(
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} creating team")
    return render(team_service.create_team(current_user.id, payload, db), schema=schemas.Team)


@app.get("/teams/{team_id}", responses=api_responses(schemas.Envelope[schemas.Team]))
def get_team(
    team_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} requesting team {team_id}")
    return render(team_service.get_team(current_user.id, team_id, db), schema=schemas.Team)


@app.put(
    "/teams/{team_id}",
    openapi_extra=request_body(schemas.TeamUpdate),
    responses=api_responses(schemas.Envelope[schemas.Team]),
)
def update_team(
    team_id: int,
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} updating team {team_id}")
    return render(
        team_service.update_team(current_user.id, team_id, payload, db),
        schema=schemas.Team,
    )


@app.delete("/teams/{team_id}", responses=api_responses(validation=False))
def delete_team(
    team_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a team; its projects and their tasks go with it."""
    logger.debug(f"User {current_user.id} deleting team {team_id}")
    return render(team_service.delete_team(current_user.id, team_id, db))


# ============== Projects ==============

@app.get("/teams/{team_id}/projects", responses=api_responses(schemas.Envelope[List[schemas.Project]]))
def list_projects(
    team_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} listing projects of team {team_id}")
    return render(
        project_service.list_projects(current_user.id, team_id, db),
        schema=schemas.Project,
    )


@app.post(
    "/teams/{team_id}/projects",
    status_code=status.HTTP_201_CREATED,
    openapi_extra=request_body(schemas.ProjectCreate),
    responses=api_responses(schemas.Envelope[schemas.Project], status.HTTP_201_CREATED),
)
def create_project(
    team_id: int,
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} creating project in team {team_id}")
    return render(
        project_service.create_project(current_user.id, team_id, payload, db),
        schema=schemas.Project,
    )


# ============== Tasks ==============

@app.get("/projects/{project_id}/tasks", responses=api_responses(schemas.Envelope[List[schemas.Task]]))
def list_tasks(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} listing tasks of project {project_id}")
    return render(
        task_service.list_tasks(current_user.id, project_id, db),
        schema=schemas.Task,
    )


@app.post(
    "/projects/{project_id}/tasks",
    status_code=status.HTTP_201_CREATED,
    openapi_extra=request_body(schemas.TaskCreate),
    responses=api_responses(schemas.Envelope[schemas.Task], status.HTTP_201_CREATED),
)
def create_task(
    project_id: int,
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    """Create a task; status defaults to pending."""
    logger.debug(f"User {current_user.id} creating task in project {project_id}")
    return render(
        task_service.create_task(current_user.id, project_id, payload, db),
        schema=schemas.Task,
    )


@app.put(
    "/projects/{project_id}/tasks/{task_id}",
    openapi_extra=request_body(schemas.TaskUpdate, required=False),
    responses=api_responses(schemas.Envelope[schemas.Task]),
)
def update_task(
    project_id: int,
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    logger.debug(f"User {current_user.id} updating task {task_id} in project {project_id}")
    return render(
        task_service.update_task(current_user.id, project_id, task_id, payload, db),
        schema=schemas.Task,
    )


@app.patch(
    "/projects/{project_id}/tasks/{task_id}/status",
    openapi_extra=request_body(schemas.TaskStatusUpdate),
    responses=api_responses(schemas.Envelope[schemas.Task]),
)
def update_task_status(
    project_id: int,
    task_id: int,
    current_user: models.User = Depends(get_current_user),
    payload: Any = Depends(json_payload),
    db: Session = Depends(get_db)
):
    """Change only the status of a task."""
    logger.debug(f"User {current_user.id} updating status of task {task_id}")
    return render(
        task_service.update_task_status(current_user.id, project_id, task_id, payload, db),
        schema=schemas.Task,
    )
