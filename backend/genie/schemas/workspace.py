"""
Workspace document structures: documents are split into sections, sections
into blocks, and TABLE blocks carry a DocTable whose ``type`` tells the
estimation engine how to read it.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TableType(str, Enum):
    GENERIC = "GENERIC"
    UCP_ACTOR = "UCP_ACTOR"
    UCP_USECASE = "UCP_USECASE"
    RAB = "RAB"
    SCHEDULE = "SCHEDULE"


class BlockType(str, Enum):
    TEXT = "TEXT"
    TABLE = "TABLE"
    METRIC = "METRIC"
    APPROVAL = "APPROVAL"
    DIAGRAM = "DIAGRAM"
    RISK_MATRIX = "RISK_MATRIX"


class DocumentType(str, Enum):
    TOR = "TOR"
    KAJIAN = "KAJIAN"
    RESEARCH = "RESEARCH"
    BRD = "BRD"
    CHARTER = "CHARTER"
    FSD = "FSD"
    LEGAL = "LEGAL"
    SPREADSHEET = "SPREADSHEET"
    GOVT_TEMPLATE = "GOVT_TEMPLATE"
    ACADEMIC_PAPER = "ACADEMIC_PAPER"
    UNKNOWN = "UNKNOWN"


# Documents whose UCP tables drive a RAB table
ESTIMATION_DOCUMENT_TYPES = (DocumentType.RESEARCH, DocumentType.KAJIAN)


class DocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AIFieldMeta(BaseModel):
    confidence: ConfidenceLevel = ConfidenceLevel.LOW
    source_ref: Optional[str] = None
    reasoning: Optional[str] = None
    is_manual_override: bool = False
    last_updated: Optional[str] = None


class DocTable(BaseModel):
    id: str
    title: str = ""
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    type: TableType = TableType.GENERIC

    @model_validator(mode="before")
    @classmethod
    def _stringify_cells(cls, data: Any) -> Any:
        # model output sometimes carries numbers in cells
        if isinstance(data, dict) and isinstance(data.get("rows"), list):
            data = dict(data)
            data["rows"] = [
                ["" if cell is None else str(cell) for cell in row]
                for row in data["rows"]
                if isinstance(row, list)
            ]
        return data


class WorkspaceBlock(BaseModel):
    id: str
    type: BlockType = BlockType.TEXT
    title: Optional[str] = None
    content: Any = None
    meta: Optional[AIFieldMeta] = None
    is_locked: bool = False
    ai_suggestions: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _parse_table_content(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("type") in (BlockType.TABLE, BlockType.TABLE.value):
            content = data.get("content")
            if isinstance(content, dict):
                data = dict(data)
                data["content"] = DocTable.model_validate(content)
        return data

    @property
    def table(self) -> Optional[DocTable]:
        if self.type == BlockType.TABLE and isinstance(self.content, DocTable):
            return self.content
        return None


class WorkspaceSection(BaseModel):
    id: str
    title: str
    order: int = 0
    blocks: List[WorkspaceBlock] = Field(default_factory=list)
    last_modified: str = Field(default_factory=utc_now_iso)


class WorkspaceDocument(BaseModel):
    id: str
    type: DocumentType = DocumentType.UNKNOWN
    title: str
    status: DocumentStatus = DocumentStatus.DRAFT
    version: str = "1.0"
    sections: List[WorkspaceSection] = Field(default_factory=list)

    @property
    def drives_estimate(self) -> bool:
        return self.type in ESTIMATION_DOCUMENT_TYPES

    def tables(self, table_type: Optional[TableType] = None) -> List[DocTable]:
        found = []
        for section in self.sections:
            for block in section.blocks:
                table = block.table
                if table is not None and (table_type is None or table.type == table_type):
                    found.append(table)
        return found
