"""
Workspace documents: generation, block/section editing and RAB recalculation.

Every function returns a new WorkspaceDocument; the input is never mutated.
Any edit to a RESEARCH or KAJIAN document regenerates its RAB tables from
scratch, so derived rows can never go stale.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from genie.core.exceptions import BlockNotFoundError, SectionNotFoundError
from genie.core.structured_logging import log_estimate
from genie.estimation.config import EstimationConfig, DEFAULT_ESTIMATION_CONFIG
from genie.estimation.engine import EstimateResult, calculate_estimate
from genie.estimation.formatting import RAB_HEADERS, render_rab_rows
from genie.estimation.records import (
    ActorRecord,
    CoercionWarning,
    UseCaseRecord,
    log_coercions,
)
from genie.schemas.project import ProjectData
from genie.schemas.workspace import (
    BlockType,
    DocTable,
    DocumentStatus,
    DocumentType,
    TableType,
    WorkspaceBlock,
    WorkspaceDocument,
    WorkspaceSection,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

ACTOR_HEADERS = ["No", "Aktor", "Klasifikasi", "Weight"]
USE_CASE_HEADERS = ["No", "Use Case", "Tipe", "Trans.", "Weight"]

RESEARCH_DOCUMENT_ID = "doc-research"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def build_actor_table(actors: Sequence[ActorRecord], table_id: str = "uaw_table") -> DocTable:
    return DocTable(
        id=table_id,
        title="Unadjusted Actor Weight (UAW)",
        headers=list(ACTOR_HEADERS),
        rows=[actor.to_row(number) for number, actor in enumerate(actors, 1)],
        type=TableType.UCP_ACTOR,
    )


def build_use_case_table(use_cases: Sequence[UseCaseRecord], table_id: str = "uucw_table") -> DocTable:
    return DocTable(
        id=table_id,
        title="Unadjusted Use Case Weight (UUCW)",
        headers=list(USE_CASE_HEADERS),
        rows=[use_case.to_row(number) for number, use_case in enumerate(use_cases, 1)],
        type=TableType.UCP_USECASE,
    )


def build_rab_table(result: EstimateResult, config: EstimationConfig, table_id: str = "rab_table") -> DocTable:
    return DocTable(
        id=table_id,
        title="Cost Estimation (Man-Month Distribution)",
        headers=list(RAB_HEADERS),
        rows=render_rab_rows(result, config),
        type=TableType.RAB,
    )


def collect_records(
    document: WorkspaceDocument,
) -> Tuple[List[ActorRecord], List[UseCaseRecord], List[CoercionWarning]]:
    """Read actor and use-case records from every UCP table of the document."""
    warnings: List[CoercionWarning] = []
    actors = [
        ActorRecord.from_row(row, number, warnings)
        for table in document.tables(TableType.UCP_ACTOR)
        for number, row in enumerate(table.rows, 1)
    ]
    use_cases = [
        UseCaseRecord.from_row(row, number, warnings)
        for table in document.tables(TableType.UCP_USECASE)
        for number, row in enumerate(table.rows, 1)
    ]
    return actors, use_cases, warnings


def estimate_document(
    document: WorkspaceDocument,
    config: Optional[EstimationConfig] = None,
) -> EstimateResult:
    config = config or DEFAULT_ESTIMATION_CONFIG
    actors, use_cases, warnings = collect_records(document)
    log_coercions(warnings)
    return calculate_estimate(actors, use_cases, config, warnings)


@dataclass(frozen=True)
class DocumentEstimate:
    """Records read from a document together with the estimate computed from them."""
    actors: Tuple[ActorRecord, ...]
    use_cases: Tuple[UseCaseRecord, ...]
    result: EstimateResult
    config: EstimationConfig


def document_estimate(
    document: Optional[WorkspaceDocument],
    config: Optional[EstimationConfig] = None,
) -> DocumentEstimate:
    """Estimate used by every export; a missing document estimates to zero."""
    config = config or DEFAULT_ESTIMATION_CONFIG
    if document is None:
        actors, use_cases, warnings = [], [], []
    else:
        actors, use_cases, warnings = collect_records(document)
    log_coercions(warnings)
    return DocumentEstimate(
        actors=tuple(actors),
        use_cases=tuple(use_cases),
        result=calculate_estimate(actors, use_cases, config, warnings),
        config=config,
    )


def project_estimate(data: ProjectData, config: Optional[EstimationConfig] = None) -> DocumentEstimate:
    """Estimate of the workspace that owns the project's UCP tables"""
    return document_estimate(data.estimation_document(), config)


def recalculate_document(
    document: WorkspaceDocument,
    config: Optional[EstimationConfig] = None,
    project_id: Optional[str] = None,
) -> Tuple[WorkspaceDocument, EstimateResult]:
    """
    Recompute the estimate of a document and rewrite all of its RAB tables.

    Returns the updated copy of the document and the estimate used for it.
    """
    config = config or DEFAULT_ESTIMATION_CONFIG
    result = estimate_document(document, config)
    rab_rows = render_rab_rows(result, config)

    updated = document.model_copy(deep=True)
    for section in updated.sections:
        for block in section.blocks:
            table = block.table
            if table is not None and table.type == TableType.RAB:
                table.rows = [list(row) for row in rab_rows]
                if not table.headers:
                    table.headers = list(RAB_HEADERS)

    log_estimate(
        metrics=result.metrics.to_dict(),
        grand_total=float(result.summary.grand_total),
        warning_count=len(result.warnings),
        project_id=project_id,
        document_id=document.id,
    )
    return updated, result


def generate_research_workspace(
    project_name: str,
    executive_summary: str,
    actors: Sequence[ActorRecord],
    use_cases: Sequence[UseCaseRecord],
    config: Optional[EstimationConfig] = None,
) -> WorkspaceDocument:
    """Build the 'Kajian Kebutuhan & Estimasi Biaya' document with its RAB filled in."""
    config = config or DEFAULT_ESTIMATION_CONFIG
    now = utc_now_iso()
    result = calculate_estimate(actors, use_cases, config)
    document = WorkspaceDocument(
        id=RESEARCH_DOCUMENT_ID,
        type=DocumentType.RESEARCH,
        title=f"Kajian Kebutuhan & Estimasi Biaya - {project_name}",
        status=DocumentStatus.DRAFT,
        version="1.0",
        sections=[
            WorkspaceSection(
                id="sec-exec",
                title="1. Executive Summary",
                order=0,
                last_modified=now,
                blocks=[WorkspaceBlock(id="b1", type=BlockType.TEXT,
                                       content=executive_summary or "Deskripsi proyek...")],
            ),
            WorkspaceSection(
                id="sec-uaw",
                title="2. Perhitungan UAW (Actors)",
                order=1,
                last_modified=now,
                blocks=[WorkspaceBlock(id="b_uaw", type=BlockType.TABLE, content=build_actor_table(actors))],
            ),
            WorkspaceSection(
                id="sec-uucw",
                title="3. Perhitungan UUCW (Use Cases)",
                order=2,
                last_modified=now,
                blocks=[WorkspaceBlock(id="b_uucw", type=BlockType.TABLE,
                                       content=build_use_case_table(use_cases))],
            ),
            WorkspaceSection(
                id="sec-rab",
                title="4. Estimasi Biaya (RAB) - Auto Calculated",
                order=3,
                last_modified=now,
                blocks=[WorkspaceBlock(
                    id="b_rab",
                    type=BlockType.TABLE,
                    content=build_rab_table(result, config),
                )],
            ),
        ],
    )
    log_estimate(
        metrics=result.metrics.to_dict(),
        grand_total=float(result.summary.grand_total),
        document_id=document.id,
    )
    return document


def find_section(document: WorkspaceDocument, section_id: str) -> WorkspaceSection:
    for section in document.sections:
        if section.id == section_id:
            return section
    raise SectionNotFoundError(document.id, section_id)


def find_block(section: WorkspaceSection, block_id: str) -> WorkspaceBlock:
    for block in section.blocks:
        if block.id == block_id:
            return block
    raise BlockNotFoundError(section.id, block_id)


def _coerce_content(block: WorkspaceBlock, content: Any) -> Any:
    if block.type == BlockType.TABLE:
        if isinstance(content, DocTable):
            return content
        return DocTable.model_validate(content)
    return content


def update_block(
    document: WorkspaceDocument,
    section_id: str,
    block_id: str,
    content: Any,
    config: Optional[EstimationConfig] = None,
    project_id: Optional[str] = None,
) -> Tuple[WorkspaceDocument, Optional[EstimateResult]]:
    """
    Replace the content of one block.

    For documents that drive the estimate the RAB is recomputed on the new
    state before returning; the estimate is None for other documents.
    """
    updated = document.model_copy(deep=True)
    section = find_section(updated, section_id)
    block = find_block(section, block_id)
    block.content = _coerce_content(block, content)
    section.last_modified = utc_now_iso()

    if updated.drives_estimate:
        return recalculate_document(updated, config, project_id)
    return updated, None


def add_section(document: WorkspaceDocument, title: str = "New Section") -> Tuple[WorkspaceDocument, WorkspaceSection]:
    section = WorkspaceSection(
        id=_new_id("sec"),
        title=title,
        order=len(document.sections),
        blocks=[WorkspaceBlock(id=_new_id("b"), type=BlockType.TEXT, content="Start typing...")],
    )
    updated = document.model_copy(deep=True)
    updated.sections.append(section)
    return updated, section


def rename_section(document: WorkspaceDocument, section_id: str, title: str) -> WorkspaceDocument:
    updated = document.model_copy(deep=True)
    section = find_section(updated, section_id)
    section.title = title
    section.last_modified = utc_now_iso()
    return updated


def delete_section(
    document: WorkspaceDocument,
    section_id: str,
    config: Optional[EstimationConfig] = None,
    project_id: Optional[str] = None,
) -> Tuple[WorkspaceDocument, Optional[EstimateResult]]:
    find_section(document, section_id)
    updated = document.model_copy(deep=True)
    updated.sections = [section for section in updated.sections if section.id != section_id]
    for order, section in enumerate(updated.sections):
        section.order = order
    # removing a UCP table changes the estimate too
    if updated.drives_estimate:
        return recalculate_document(updated, config, project_id)
    return updated, None


UCP_TABLE_TYPES = (TableType.UCP_ACTOR, TableType.UCP_USECASE)


def touches_estimate_inputs(document: WorkspaceDocument, section_id: str, block_id: Optional[str] = None,
                            content: Any = None) -> bool:
    """
    True when the section (or one block of it) holds a UCP actor/use-case table,
    or when ``content`` would put one into the block.
    """
    section = find_section(document, section_id)
    blocks = [find_block(section, block_id)] if block_id else section.blocks
    if any(block.table is not None and block.table.type in UCP_TABLE_TYPES for block in blocks):
        return True
    if content is None or not block_id:
        return False
    incoming = _coerce_content(blocks[0], content)
    return isinstance(incoming, DocTable) and incoming.type in UCP_TABLE_TYPES
