from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import Any, Dict, List
import logging

from genie.agents.analysis import (
    ExecutiveReviewAgent,
    ProjectAnalysisOrchestrator,
    UseCaseRefinerAgent,
)
from genie.agents.llm_client import LLMClient, get_llm_client
from genie.core.config import get_estimation_config
from genie.core.database import get_db
from genie.core.exceptions import LLMResponseError
from genie.estimation.config import EstimationConfig
from genie.schemas.project import (
    BlockUpdate,
    EstimationLockResponse,
    ExecutiveReviewResult,
    LockRequest,
    ProjectCreate,
    ProjectData,
    ProjectResponse,
    ProjectSummary,
    SectionCreate,
    SectionRename,
    UseCaseRefineRequest,
    WorkspaceResponse,
)
from genie.services.demo_data import create_demo_project
from genie.services.ingest import extract_text
from genie.services.package_exporter import export_project
from genie.services.project_store import ProjectStore, estimate_payload
from genie.services.workspace_service import project_estimate

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(config: EstimationConfig = Depends(get_estimation_config)) -> ProjectAnalysisOrchestrator:
    """Dependency building the ingestion pipeline (the model client is resolved on first use)"""
    return ProjectAnalysisOrchestrator(config=config)


def _project_response(project_id: str, data: ProjectData, config: EstimationConfig) -> ProjectResponse:
    estimate = project_estimate(data, config)
    return ProjectResponse(id=project_id, data=data, estimate=estimate_payload(estimate.result, config))


async def _build_project(text: str, demo: bool, orchestrator: ProjectAnalysisOrchestrator,
                         config: EstimationConfig, project_id: str) -> ProjectData:
    if demo:
        return create_demo_project(config=config)
    try:
        return await orchestrator.analyze(text, project_id=project_id)
    except LLMResponseError as e:
        logger.error(f"Unusable model answer while analysing {project_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: ProjectCreate,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config),
    orchestrator: ProjectAnalysisOrchestrator = Depends(get_orchestrator)
):
    """Create a project from a typed brief, or the demo project when ``demo`` is set"""
    if not request.demo and not request.brief.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A brief is required unless demo is set"
        )

    project_id = ProjectStore.new_project_id()
    data = await _build_project(request.brief, request.demo, orchestrator, config, project_id)
    ProjectStore.create(db, data, project_id)
    return _project_response(project_id, data, config)


@router.post("/upload", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def upload_project(
    file: UploadFile = File(...),
    demo: bool = Form(False),
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config),
    orchestrator: ProjectAnalysisOrchestrator = Depends(get_orchestrator)
):
    """Create a project from an uploaded TOR / KAK document (txt, md, pdf, docx, xlsx)"""
    content = await file.read()
    text = extract_text(file.filename or "", content)
    if not demo and not text.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"No text could be extracted from {file.filename}"
        )

    project_id = ProjectStore.new_project_id()
    data = await _build_project(text, demo, orchestrator, config, project_id)
    ProjectStore.create(db, data, project_id)
    return _project_response(project_id, data, config)


@router.get("", response_model=List[ProjectSummary])
async def list_projects(
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """List stored projects, newest first"""
    return ProjectStore.list_projects(db, limit=limit, offset=skip)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config)
):
    data = ProjectStore.load(db, project_id)
    return _project_response(project_id, data, config)


@router.get("/{project_id}/workspaces/{document_id}", response_model=WorkspaceResponse)
async def get_workspace(
    project_id: str,
    document_id: str,
    db: Session = Depends(get_db)
):
    data = ProjectStore.load(db, project_id)
    document = ProjectStore.get_workspace(data, project_id, document_id)
    return WorkspaceResponse(project_id=project_id, document=document)


@router.put("/{project_id}/workspaces/{document_id}/sections/{section_id}/blocks/{block_id}",
            response_model=WorkspaceResponse)
async def update_block(
    project_id: str,
    document_id: str,
    section_id: str,
    block_id: str,
    update: BlockUpdate,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config)
):
    """
    Replace one block's content.

    Edits to a research workspace return the recomputed estimate; edits to
    its actor or use-case tables are rejected with 409 while the estimation
    is locked.
    """
    document, result = ProjectStore.update_block(
        db, project_id, document_id, section_id, block_id, update.content, config
    )
    estimate = estimate_payload(result, config) if result is not None else None
    return WorkspaceResponse(project_id=project_id, document=document, estimate=estimate)


@router.post("/{project_id}/workspaces/{document_id}/sections", response_model=WorkspaceResponse,
             status_code=status.HTTP_201_CREATED)
async def add_section(
    project_id: str,
    document_id: str,
    request: SectionCreate,
    db: Session = Depends(get_db)
):
    document, _ = ProjectStore.add_section(db, project_id, document_id, request.title)
    return WorkspaceResponse(project_id=project_id, document=document)


@router.patch("/{project_id}/workspaces/{document_id}/sections/{section_id}", response_model=WorkspaceResponse)
async def rename_section(
    project_id: str,
    document_id: str,
    section_id: str,
    request: SectionRename,
    db: Session = Depends(get_db)
):
    document = ProjectStore.rename_section(db, project_id, document_id, section_id, request.title)
    return WorkspaceResponse(project_id=project_id, document=document)


@router.delete("/{project_id}/workspaces/{document_id}/sections/{section_id}", response_model=WorkspaceResponse)
async def delete_section(
    project_id: str,
    document_id: str,
    section_id: str,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config)
):
    document, result = ProjectStore.delete_section(db, project_id, document_id, section_id, config)
    estimate = estimate_payload(result, config) if result is not None else None
    return WorkspaceResponse(project_id=project_id, document=document, estimate=estimate)


@router.get("/{project_id}/estimate")
async def get_estimate(
    project_id: str,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config)
) -> Dict[str, Any]:
    """Current estimate of the project's research workspace"""
    estimate = ProjectStore.estimate(db, project_id, config)
    return estimate_payload(estimate.result, config)


@router.post("/{project_id}/lock", response_model=EstimationLockResponse)
async def lock_estimation(
    project_id: str,
    request: LockRequest,
    db: Session = Depends(get_db)
):
    lock = ProjectStore.set_lock(db, project_id, True, request.user)
    return EstimationLockResponse(project_id=project_id, **lock.model_dump())


@router.post("/{project_id}/unlock", response_model=EstimationLockResponse)
async def unlock_estimation(
    project_id: str,
    db: Session = Depends(get_db)
):
    lock = ProjectStore.set_lock(db, project_id, False)
    return EstimationLockResponse(project_id=project_id, **lock.model_dump())


@router.post("/{project_id}/review", response_model=ExecutiveReviewResult)
async def review_project(
    project_id: str,
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config),
    llm: LLMClient = Depends(get_llm_client)
):
    """Readiness review of the project documents; the result is stored on the project"""
    data = ProjectStore.load(db, project_id)
    estimate = project_estimate(data, config)
    try:
        review = await ExecutiveReviewAgent(llm).execute(data, estimate)
    except LLMResponseError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    data.executive_review = review
    ProjectStore.save(db, project_id, data)
    logger.info(f"Review of {project_id}: {review.status} ({review.readiness_score})")
    return review


@router.post("/{project_id}/use-cases/refine")
async def refine_use_case(
    project_id: str,
    request: UseCaseRefineRequest,
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client)
) -> Dict[str, Any]:
    """
    Rewrite one use case following an instruction.

    The refined row is returned for the client to apply through a block
    update, so the lock and RAB recalculation rules stay in one place.
    """
    ProjectStore.get_row(db, project_id)
    try:
        return await UseCaseRefinerAgent(llm).execute(request.use_case, request.instruction)
    except LLMResponseError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.get("/{project_id}/download")
async def download_project(
    project_id: str,
    format: str = "zip",
    db: Session = Depends(get_db),
    config: EstimationConfig = Depends(get_estimation_config)
):
    """
    Download project documents.

    Formats:
    - xlsx: Strict project workbook (UCP, man-month and cost sheets)
    - docx: Research & KAK document
    - pdf: Master report
    - zip: All three in one package

    Example: /api/v1/projects/{id}/download?format=xlsx
    """
    data = ProjectStore.load(db, project_id)
    try:
        buffer, filename, media_type = export_project(data, format, config)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return StreamingResponse(
        buffer,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
