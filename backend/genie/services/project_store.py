"""
Project persistence: one Project row owns the whole ProjectData document, and
every workspace edit goes load -> edit copy -> recompute -> save through here.
"""
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from genie.core.exceptions import (
    EstimationLockedError,
    ProjectNotFoundError,
    WorkspaceNotFoundError,
)
from genie.estimation.config import EstimationConfig
from genie.estimation.engine import EstimateResult
from genie.estimation.formatting import render_rab_rows
from genie.models.project import Project
from genie.schemas.project import EstimationLock, ProjectData
from genie.schemas.workspace import WorkspaceDocument, WorkspaceSection, utc_now_iso
from genie.services import workspace_service

logger = logging.getLogger(__name__)


def estimate_payload(result: EstimateResult, config: EstimationConfig) -> Dict[str, Any]:
    """Engine result plus the display rows, as sent to API clients."""
    payload = result.to_dict()
    payload["table"] = render_rab_rows(result, config)
    return payload


class ProjectStore:
    """Loads, saves and edits projects stored as JSON documents."""

    @staticmethod
    def new_project_id() -> str:
        return f"proj-{uuid.uuid4().hex[:12]}"

    @staticmethod
    def create(db: Session, data: ProjectData, project_id: Optional[str] = None) -> Project:
        """
        Persist a new project.

        Args:
            db: Database session
            data: Complete project document
            project_id: Explicit id; generated when omitted

        Returns:
            Project row
        """
        project = Project(
            id=project_id or ProjectStore.new_project_id(),
            theme=data.meta.theme,
            data=data.model_dump(mode="json"),
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        logger.info(f"Created project {project.id} ({project.theme})")
        return project

    @staticmethod
    def get_row(db: Session, project_id: str) -> Project:
        project = db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    @staticmethod
    def load(db: Session, project_id: str) -> ProjectData:
        return ProjectData.model_validate(ProjectStore.get_row(db, project_id).data)

    @staticmethod
    def save(db: Session, project_id: str, data: ProjectData) -> Project:
        project = ProjectStore.get_row(db, project_id)
        project.data = data.model_dump(mode="json")
        project.theme = data.meta.theme
        db.commit()
        db.refresh(project)
        return project

    @staticmethod
    def list_projects(db: Session, limit: int = 50, offset: int = 0) -> List[Project]:
        return (
            db.query(Project)
            .order_by(Project.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_workspace(data: ProjectData, project_id: str, document_id: str) -> WorkspaceDocument:
        document = data.workspaces.get(document_id)
        if document is None:
            raise WorkspaceNotFoundError(project_id, document_id)
        return document

    @staticmethod
    def estimate(db: Session, project_id: str, config: EstimationConfig) -> workspace_service.DocumentEstimate:
        """Estimate of the project's research workspace (zero when it has none)"""
        return workspace_service.project_estimate(ProjectStore.load(db, project_id), config)

    @staticmethod
    def _check_lock(data: ProjectData, project_id: str, document: WorkspaceDocument,
                    section_id: str, block_id: Optional[str] = None, content: Any = None) -> None:
        lock = data.meta.estimation_lock
        if lock.is_locked and workspace_service.touches_estimate_inputs(document, section_id, block_id, content):
            logger.warning(f"Rejected edit of locked estimate inputs in project {project_id}")
            raise EstimationLockedError(project_id, lock.locked_by)

    @staticmethod
    def update_block(
        db: Session,
        project_id: str,
        document_id: str,
        section_id: str,
        block_id: str,
        content: Any,
        config: EstimationConfig,
    ) -> Tuple[WorkspaceDocument, Optional[EstimateResult]]:
        data = ProjectStore.load(db, project_id)
        document = ProjectStore.get_workspace(data, project_id, document_id)
        ProjectStore._check_lock(data, project_id, document, section_id, block_id, content)

        updated, result = workspace_service.update_block(
            document, section_id, block_id, content, config, project_id
        )
        data.workspaces[document_id] = updated
        ProjectStore.save(db, project_id, data)
        logger.info(f"Updated block {block_id} in {project_id}/{document_id}")
        return updated, result

    @staticmethod
    def add_section(db: Session, project_id: str, document_id: str,
                    title: str) -> Tuple[WorkspaceDocument, WorkspaceSection]:
        data = ProjectStore.load(db, project_id)
        document = ProjectStore.get_workspace(data, project_id, document_id)
        updated, section = workspace_service.add_section(document, title)
        data.workspaces[document_id] = updated
        ProjectStore.save(db, project_id, data)
        logger.info(f"Added section {section.id} to {project_id}/{document_id}")
        return updated, section

    @staticmethod
    def rename_section(db: Session, project_id: str, document_id: str,
                       section_id: str, title: str) -> WorkspaceDocument:
        data = ProjectStore.load(db, project_id)
        document = ProjectStore.get_workspace(data, project_id, document_id)
        updated = workspace_service.rename_section(document, section_id, title)
        data.workspaces[document_id] = updated
        ProjectStore.save(db, project_id, data)
        return updated

    @staticmethod
    def delete_section(
        db: Session,
        project_id: str,
        document_id: str,
        section_id: str,
        config: EstimationConfig,
    ) -> Tuple[WorkspaceDocument, Optional[EstimateResult]]:
        data = ProjectStore.load(db, project_id)
        document = ProjectStore.get_workspace(data, project_id, document_id)
        ProjectStore._check_lock(data, project_id, document, section_id)
        updated, result = workspace_service.delete_section(document, section_id, config, project_id)
        data.workspaces[document_id] = updated
        ProjectStore.save(db, project_id, data)
        logger.info(f"Deleted section {section_id} from {project_id}/{document_id}")
        return updated, result

    @staticmethod
    def set_lock(db: Session, project_id: str, locked: bool, user: Optional[str] = None) -> EstimationLock:
        """Lock or unlock the estimate inputs, recording who and when."""
        data = ProjectStore.load(db, project_id)
        if locked:
            data.meta.estimation_lock = EstimationLock(is_locked=True, locked_at=utc_now_iso(), locked_by=user)
        else:
            data.meta.estimation_lock = EstimationLock()
        ProjectStore.save(db, project_id, data)
        logger.info(f"Estimation {'locked' if locked else 'unlocked'} for {project_id} by {user}")
        return data.meta.estimation_lock
