"""
Analysis agents: turn a project brief into ProjectData, review it and answer
questions about it.

Pipeline (ProjectAnalysisOrchestrator.analyze):
    1. ClassifierAgent       deterministic document type routing
    2. TemplateMapperAgent   LLM extraction of the Project Intelligence Object
    3. ArchitectureAgent     LLM actor / use-case model
    4. workspace builder     research workspace, RAB computed by the estimation engine
    5. merge over the demo skeleton for everything the model left out
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import math

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import ValidationError

from genie.agents import prompts
from genie.agents.llm_client import get_llm_client
from genie.core.config import settings
from genie.core.structured_logging import log_ingestion_stage
from genie.estimation.config import EstimationConfig, DEFAULT_ESTIMATION_CONFIG
from genie.estimation.formatting import format_idr, format_number
from genie.estimation.records import USE_CASE_WEIGHTS, Classification, classify_transactions
from genie.schemas.project import (
    DATA_REQUIRED,
    ActorSpec,
    ChatMessage,
    DocumentClassification,
    ExecutiveReviewResult,
    PIOArchitecture,
    PIOIngest,
    PIOTrace,
    ProcessingPriority,
    ProjectData,
    ReviewFinding,
    Stakeholder,
    UseCaseSpec,
)
from genie.schemas.workspace import AIFieldMeta, DocumentType
from genie.services.demo_data import actor_records, create_demo_project, use_case_records
from genie.services.workspace_service import DocumentEstimate, generate_research_workspace

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

CLASSIFIER_KEYWORDS = ("term of reference", "kajian kebutuhan", "kak")
REVIEW_STATUSES = ("READY_FOR_SIGNATURE", "NEEDS_REVISION", "CRITICAL_GAPS")
SEVERITIES = ("CRITICAL", "MAJOR", "MINOR")


def _list_of_str(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def _text(value: Any, default: str = DATA_REQUIRED) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        number = float(value)
    except OverflowError:
        return default
    return number if math.isfinite(number) else default


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


class BaseAgent(ABC):
    """Base class for the analysis agents"""

    def __init__(self, name: str, llm=None):
        self.name = name
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            self._llm = get_llm_client()
        return self._llm

    @abstractmethod
    async def execute(self, *args, **kwargs) -> Any:
        pass


class ClassifierAgent(BaseAgent):
    """Keyword router; no model call"""

    def __init__(self):
        super().__init__("classifier")

    async def execute(self, content: str) -> DocumentClassification:
        lowered = (content or "").lower()
        if any(keyword in lowered for keyword in CLASSIFIER_KEYWORDS):
            return DocumentClassification(
                type=DocumentType.TOR,
                confidence=100,
                origin="INTERNAL",
                processing_priority=ProcessingPriority.HIGH,
                routing_rule="Deterministic: Keyword 'KAK/TOR'",
            )
        return DocumentClassification(
            type=DocumentType.TOR,
            confidence=50,
            origin="CLIENT",
            processing_priority=ProcessingPriority.NORMAL,
            routing_rule="Fallback",
        )


class TemplateMapperAgent(BaseAgent):
    """Extracts the Project Intelligence Object from the brief"""

    def __init__(self, llm=None):
        super().__init__("template_mapper", llm)

    async def execute(self, content: str, doc_type: DocumentType) -> PIOIngest:
        prompt = prompts.TEMPLATE_EXTRACTION_PROMPT.format(
            doc_type=doc_type.value,
            content=content[:settings.MAX_INPUT_CHARS],
        )
        parsed = await self.llm.invoke_json(prompt, prompts.GOV_DOC_SYSTEM_PROMPT)
        return self.normalize(parsed)

    @staticmethod
    def normalize(parsed: Dict[str, Any]) -> PIOIngest:
        meta = parsed.get("executive_summary_meta")
        try:
            summary_meta = AIFieldMeta.model_validate(meta) if isinstance(meta, dict) else None
        except ValidationError:
            summary_meta = None
        if summary_meta is None:
            summary_meta = AIFieldMeta(source_ref="AI Generated")

        stakeholders = []
        for item in parsed.get("stakeholders") or []:
            try:
                stakeholders.append(Stakeholder.model_validate(item))
            except ValidationError:
                logger.warning(f"Dropped malformed stakeholder: {item}")

        return PIOIngest(
            project_name=_text(parsed.get("project_name")),
            executive_summary=_text(parsed.get("executive_summary")),
            executive_summary_meta=summary_meta,
            legal_basis=_list_of_str(parsed.get("legal_basis")),
            objectives=_list_of_str(parsed.get("objectives")),
            stakeholders=stakeholders,
            budget_signal=_number(parsed.get("budget_signal"), 2.5),
            timeline_signal=_number(parsed.get("timeline_signal"), 12),
            technical_stack_signal=_list_of_str(parsed.get("technical_stack_signal")),
        )


class ArchitectureAgent(BaseAgent):
    """Produces the actor / use-case model the estimate is computed from"""

    def __init__(self, llm=None):
        super().__init__("architecture", llm)

    async def execute(self, ingest: PIOIngest) -> PIOArchitecture:
        prompt = prompts.ARCHITECTURE_PROMPT.format(
            project_name=ingest.project_name,
            executive_summary=ingest.executive_summary,
        )
        parsed = await self.llm.invoke_json(prompt, prompts.GOV_DOC_SYSTEM_PROMPT)
        return self.normalize(parsed)

    @staticmethod
    def normalize(parsed: Dict[str, Any]) -> PIOArchitecture:
        use_cases = []
        for number, item in enumerate(parsed.get("use_cases") or [], 1):
            if not isinstance(item, dict) or not _text(item.get("name"), ""):
                continue
            use_cases.append(UseCaseSpec(
                code=_text(item.get("code"), f"UC-{number:03d}"),
                name=item["name"].strip(),
                classification=_text(item.get("classification"), "") or None,
                actor=_text(item.get("actor"), "") or None,
                transactions=_int_or_none(item.get("transactions")),
            ))

        actors = _list_of_str(parsed.get("actors"))
        detailed = []
        for item in parsed.get("detailed_actors") or []:
            if isinstance(item, dict) and _text(item.get("name"), ""):
                detailed.append(ActorSpec(
                    name=item["name"].strip(),
                    type=_text(item.get("type"), "Average"),
                    desc=_text(item.get("desc"), ""),
                ))
        if not detailed:
            detailed = [ActorSpec(name=name) for name in actors]

        return PIOArchitecture(
            actors=actors or [actor.name for actor in detailed],
            modules=_list_of_str(parsed.get("modules")),
            integrations=_list_of_str(parsed.get("integrations")),
            security_level=_text(parsed.get("security_level"), "Standard"),
            data_classification=_text(parsed.get("data_classification"), "Confidential"),
            use_cases=use_cases,
            detailed_actors=detailed,
        )


class ExecutiveReviewAgent(BaseAgent):
    """Pre-signature review from the point of view of an IT director"""

    def __init__(self, llm=None):
        super().__init__("executive_review", llm)

    async def execute(self, data: ProjectData, estimate: DocumentEstimate) -> ExecutiveReviewResult:
        prompt = prompts.EXECUTIVE_REVIEW_PROMPT.format(
            theme=data.meta.theme,
            cost=format_idr(estimate.result.summary.grand_total),
            man_months=format_number(estimate.result.metrics.man_months, 2),
            summary=data.strategic_analysis.executive_summary,
        )
        parsed = await self.llm.invoke_json(prompt, prompts.GOV_DOC_SYSTEM_PROMPT)
        return self.normalize(parsed)

    @staticmethod
    def normalize(parsed: Dict[str, Any]) -> ExecutiveReviewResult:
        score = _number(parsed.get("readiness_score", parsed.get("readinessScore")), 0)
        status = parsed.get("status")
        findings = []
        for item in parsed.get("findings") or []:
            if not isinstance(item, dict) or not _text(item.get("issue"), ""):
                continue
            severity = str(item.get("severity", "")).upper()
            findings.append(ReviewFinding(
                section=_text(item.get("section"), "General"),
                severity=severity if severity in SEVERITIES else "MINOR",
                issue=item["issue"].strip(),
                recommendation=_text(item.get("recommendation"), ""),
            ))
        return ExecutiveReviewResult(
            readiness_score=int(min(100, max(0, score))),
            status=status if status in REVIEW_STATUSES else "NEEDS_REVISION",
            findings=findings,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


class UseCaseRefinerAgent(BaseAgent):
    """Rewrites one use case on instruction; the weight always follows the classification"""

    def __init__(self, llm=None):
        super().__init__("use_case_refiner", llm)

    async def execute(self, use_case: Dict[str, Any], instruction: str) -> Dict[str, Any]:
        prompt = prompts.REFINE_USE_CASE_PROMPT.format(
            use_case=json.dumps(use_case, ensure_ascii=False),
            instruction=instruction,
        )
        parsed = await self.llm.invoke_json(prompt, prompts.GOV_DOC_SYSTEM_PROMPT)
        return self.normalize(parsed, use_case)

    @staticmethod
    def normalize(parsed: Dict[str, Any], original: Dict[str, Any]) -> Dict[str, Any]:
        transactions = _int_or_none(parsed.get("transactions"))
        if transactions is None:
            transactions = _int_or_none(original.get("transactions")) or 0
        classification = Classification.parse(parsed.get("type") or parsed.get("classification"))
        if classification is None:
            classification = classify_transactions(transactions)
        return {
            "id": _text(parsed.get("id"), str(original.get("id", ""))),
            "name": _text(parsed.get("name"), str(original.get("name", ""))),
            "type": classification.value,
            "transactions": transactions,
            "weight": float(USE_CASE_WEIGHTS[classification]),
        }


class ChatAgent(BaseAgent):
    """Answers questions with the project as context"""

    def __init__(self, llm=None):
        super().__init__("chat", llm)

    async def execute(self, message: str, history: List[ChatMessage],
                      data: Optional[ProjectData] = None,
                      estimate: Optional[DocumentEstimate] = None) -> str:
        if data is not None and estimate is not None:
            system_prompt = prompts.CHAT_SYSTEM_PROMPT.format(
                theme=data.meta.theme,
                summary=data.strategic_analysis.executive_summary,
                cost=format_idr(estimate.result.summary.grand_total),
                man_months=format_number(estimate.result.metrics.man_months, 2),
            )
        else:
            system_prompt = prompts.CHAT_SYSTEM_PROMPT.format(
                theme="-", summary="-", cost="-", man_months="-"
            )
        turns: List[BaseMessage] = [
            HumanMessage(content=turn.text) if turn.role == "user" else AIMessage(content=turn.text)
            for turn in history
        ]
        reply = await self.llm.invoke(message, system_prompt, turns)
        return reply or "No response"


def _fallback_theme(text: str) -> str:
    for line in (text or "").splitlines():
        line = line.strip()
        if line:
            return line[:120]
    return ""


class ProjectAnalysisOrchestrator:
    """Runs the ingestion pipeline for one brief"""

    def __init__(self, llm=None, config: Optional[EstimationConfig] = None):
        self.config = config or DEFAULT_ESTIMATION_CONFIG
        self.classifier = ClassifierAgent()
        self.template_mapper = TemplateMapperAgent(llm)
        self.architecture = ArchitectureAgent(llm)

    def _progress(self, on_progress: Optional[ProgressCallback], stage: str, message: str,
                  project_id: Optional[str] = None):
        log_ingestion_stage(stage, message, project_id)
        if on_progress:
            on_progress(message)

    async def analyze(self, text: str, on_progress: Optional[ProgressCallback] = None,
                      project_id: Optional[str] = None) -> ProjectData:
        """
        Turn a brief into a complete ProjectData.

        Args:
            text: Brief text (typed or extracted from an upload)
            on_progress: Optional callback receiving one message per stage
            project_id: Used only to tag log events

        Returns:
            ProjectData whose research workspace holds the engine-computed RAB
        """
        self._progress(on_progress, "classify", "Layer 1: Intelligent ingestion...", project_id)
        classification = await self.classifier.execute(text)

        self._progress(on_progress, "extract",
                       f"Layer 2: Semantic parsing & template map ({classification.type.value})...", project_id)
        ingest = await self.template_mapper.execute(text, classification.type)

        self._progress(on_progress, "architecture", "Layer 3: Functional intelligence (UCP modeling)...",
                       project_id)
        arch = await self.architecture.execute(ingest)

        self._progress(on_progress, "workspaces", "Layer 4: Constructing modular workspaces...", project_id)
        theme = ingest.project_name if ingest.project_name != DATA_REQUIRED else _fallback_theme(text)
        demo = create_demo_project(theme, self.config)
        summary = (ingest.executive_summary if ingest.executive_summary != DATA_REQUIRED
                   else demo.strategic_analysis.executive_summary)
        research = generate_research_workspace(
            demo.meta.theme,
            summary,
            actor_records(arch.detailed_actors),
            use_case_records(arch.use_cases),
            self.config,
        )
        if not arch.detailed_actors and not arch.use_cases:
            logger.warning("Architecture agent returned no actors or use cases; estimate is zero")

        self._progress(on_progress, "finalize", "Finalizing artifacts...", project_id)
        result = self.merge(demo, classification, ingest, arch, summary)
        result.workspaces[research.id] = research
        return result

    @staticmethod
    def merge(demo: ProjectData, classification: DocumentClassification, ingest: PIOIngest,
              arch: PIOArchitecture, summary: str) -> ProjectData:
        """Extracted values win; the demo skeleton fills whatever is missing"""
        merged = demo.model_copy(deep=True)
        merged.meta.classification = classification
        merged.meta.created_at = datetime.now(timezone.utc).date().isoformat()
        merged.meta.estimation_lock.is_locked = False
        analysis = merged.strategic_analysis
        analysis.executive_summary = summary
        analysis.executive_summary_meta = ingest.executive_summary_meta
        if ingest.objectives:
            analysis.business_objectives = list(ingest.objectives)
        if ingest.stakeholders:
            analysis.stakeholder_matrix = list(ingest.stakeholders)
        merged.pio_trace = PIOTrace(ingest=ingest, arch=arch)
        return merged
