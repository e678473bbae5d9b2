from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from enum import Enum

from genie.schemas.workspace import AIFieldMeta, DocTable, DocumentType, WorkspaceDocument

DATA_REQUIRED = "<<DATA_REQUIRED>>"


class ProcessingPriority(str, Enum):
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"


class DocumentClassification(BaseModel):
    type: DocumentType = DocumentType.TOR
    confidence: int = Field(50, ge=0, le=100)
    origin: Literal["CLIENT", "INTERNAL"] = "CLIENT"
    processing_priority: ProcessingPriority = ProcessingPriority.NORMAL
    routing_rule: Optional[str] = None


class EstimationLock(BaseModel):
    is_locked: bool = False
    locked_at: Optional[str] = None
    locked_by: Optional[str] = None


class Stakeholder(BaseModel):
    role: str
    interest: str = "High"
    power: str = "High"
    strategy: Optional[str] = None


class SuccessMetric(BaseModel):
    kpi: str
    target: str


class StrategicAnalysis(BaseModel):
    executive_summary: str = ""
    executive_summary_meta: Optional[AIFieldMeta] = None
    problem_statement: str = ""
    business_objectives: List[str] = Field(default_factory=list)
    business_value: str = ""
    success_metrics: List[SuccessMetric] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    stakeholder_matrix: List[Stakeholder] = Field(default_factory=list)


class Task(BaseModel):
    id: str
    name: str
    start: str = "-"
    end: str = "-"
    pic: str = ""
    status: Literal["Pending", "In Progress", "Completed"] = "Pending"
    dependency: Optional[str] = None
    progress: int = Field(0, ge=0, le=100)


# ----- Project Intelligence Object (intermediate extraction results) -----

class PIOIngest(BaseModel):
    project_name: str = DATA_REQUIRED
    executive_summary: str = DATA_REQUIRED
    executive_summary_meta: Optional[AIFieldMeta] = None
    legal_basis: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    budget_signal: float = 2.5  # billions IDR
    timeline_signal: float = 12  # months
    technical_stack_signal: List[str] = Field(default_factory=list)


class ActorSpec(BaseModel):
    name: str
    type: str = "Average"
    desc: str = ""


class UseCaseSpec(BaseModel):
    code: str = ""
    name: str
    classification: Optional[str] = None
    actor: Optional[str] = None
    transactions: Optional[int] = None


class PIOArchitecture(BaseModel):
    actors: List[str] = Field(default_factory=list)
    modules: List[str] = Field(default_factory=list)
    integrations: List[str] = Field(default_factory=list)
    security_level: str = "Standard"
    data_classification: str = "Confidential"
    use_cases: List[UseCaseSpec] = Field(default_factory=list)
    detailed_actors: List[ActorSpec] = Field(default_factory=list)


class PIOTrace(BaseModel):
    ingest: PIOIngest
    arch: PIOArchitecture


class ReviewFinding(BaseModel):
    section: str
    severity: Literal["CRITICAL", "MAJOR", "MINOR"] = "MINOR"
    issue: str
    recommendation: str = ""


class ExecutiveReviewResult(BaseModel):
    readiness_score: int = Field(0, ge=0, le=100)
    status: Literal["READY_FOR_SIGNATURE", "NEEDS_REVISION", "CRITICAL_GAPS"] = "NEEDS_REVISION"
    findings: List[ReviewFinding] = Field(default_factory=list)
    timestamp: Optional[str] = None


class ProjectMeta(BaseModel):
    theme: str
    created_at: str
    department: str = ""
    unit_tik: str = ""
    pic_name: str = ""
    pic_contact: str = ""
    classification: Optional[DocumentClassification] = None
    estimation_lock: EstimationLock = Field(default_factory=EstimationLock)


class ProjectData(BaseModel):
    """Everything the dashboard knows about one project"""
    meta: ProjectMeta
    strategic_analysis: StrategicAnalysis = Field(default_factory=StrategicAnalysis)
    charter: List[Task] = Field(default_factory=list)
    tables: Dict[str, List[DocTable]] = Field(default_factory=dict)
    workspaces: Dict[str, WorkspaceDocument] = Field(default_factory=dict)
    executive_review: Optional[ExecutiveReviewResult] = None
    pio_trace: Optional[PIOTrace] = None

    def estimation_document(self) -> Optional[WorkspaceDocument]:
        """The workspace that owns the UCP tables (research first, then kajian)"""
        docs = list(self.workspaces.values())
        for wanted in (DocumentType.RESEARCH, DocumentType.KAJIAN):
            for doc in docs:
                if doc.type == wanted:
                    return doc
        return docs[0] if docs else None


# ----- API payloads -----

class ProjectCreate(BaseModel):
    brief: str = Field("", description="Project brief in natural language")
    demo: bool = Field(False, description="Build the demo project instead of calling the LLM")


class ProjectSummary(BaseModel):
    id: str
    theme: str
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    id: str
    data: ProjectData
    estimate: Optional[Dict[str, Any]] = None


class WorkspaceResponse(BaseModel):
    project_id: str
    document: WorkspaceDocument
    estimate: Optional[Dict[str, Any]] = None


class BlockUpdate(BaseModel):
    content: Any


class SectionCreate(BaseModel):
    title: str = "New Section"


class SectionRename(BaseModel):
    title: str = Field(..., min_length=1)


class LockRequest(BaseModel):
    user: str = Field(..., min_length=1)


class EstimationLockResponse(EstimationLock):
    project_id: str


class UseCaseRefineRequest(BaseModel):
    use_case: Dict[str, Any]
    instruction: str = Field(..., min_length=3)


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)
    project_id: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str
