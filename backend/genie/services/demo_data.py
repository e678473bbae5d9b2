"""
Deterministic demo project used in DEMO mode and as the skeleton that
LLM-extracted data is merged over.
"""
from typing import Optional

from genie.estimation.config import EstimationConfig
from genie.estimation.records import ActorRecord, UseCaseRecord
from genie.schemas.project import (
    ActorSpec,
    EstimationLock,
    PIOArchitecture,
    PIOIngest,
    PIOTrace,
    ProjectData,
    ProjectMeta,
    Stakeholder,
    StrategicAnalysis,
    SuccessMetric,
    Task,
    UseCaseSpec,
)
from genie.schemas.workspace import (
    BlockType,
    DocTable,
    DocumentType,
    TableType,
    WorkspaceBlock,
    WorkspaceDocument,
    WorkspaceSection,
)
from genie.services.workspace_service import generate_research_workspace

DEMO_THEME = "Modul Imsama (Impor Sementara Indonesia)"
DEMO_CREATED_AT = "2024-01-01"

DEMO_ACTORS = [
    ActorSpec(name="Pengguna Jasa", type="Complex", desc="Importir yang mengajukan permohonan melalui portal"),
    ActorSpec(name="Analis", type="Average", desc="Meneliti permohonan impor sementara"),
    ActorSpec(name="Admin IKC", type="Average", desc="Mengelola data referensi dan pengguna"),
    ActorSpec(name="Technical Support", type="Simple", desc="Menangani gangguan layanan"),
    ActorSpec(name="Pegawai IKC", type="Average", desc="Memantau layanan TIK"),
    ActorSpec(name="Seksi DIKC", type="Average", desc="Mengelola rilis aplikasi"),
]

DEMO_USE_CASES = [
    UseCaseSpec(code="UC1", name="Penerbitan Nopen", classification="Complex", actor="Analis", transactions=9),
    UseCaseSpec(code="UC2", name="Home Portal", classification="Simple", actor="Pengguna Jasa", transactions=3),
    UseCaseSpec(code="UC3", name="Knowledgebase", classification="Average", actor="Pegawai IKC", transactions=5),
    UseCaseSpec(code="UC4", name="Perekaman Layanan Service Katalog", classification="Average",
                actor="Admin IKC", transactions=6),
    UseCaseSpec(code="UC5", name="Manajemen Release", classification="Average", actor="Seksi DIKC", transactions=4),
]

DEMO_SUMMARY = (
    "Penyempurnaan SKP Impor Sementara (Imsama) diperlukan untuk menyelaraskan proses bisnis-IT, "
    "mengakomodasi regulasi baru, dan mengoptimalkan pelayanan serta pengawasan."
)


def actor_records(actors) -> list:
    return [ActorRecord.from_mapping(actor.model_dump(), number) for number, actor in enumerate(actors, 1)]


def use_case_records(use_cases) -> list:
    records = []
    for number, use_case in enumerate(use_cases, 1):
        name = f"{use_case.code} {use_case.name}".strip() if use_case.code else use_case.name
        records.append(UseCaseRecord.create(
            name,
            use_case.classification,
            use_case.transactions,
            row=number,
        ))
    return records


def _tor_workspace(theme: str) -> WorkspaceDocument:
    return WorkspaceDocument(
        id="doc-tor",
        type=DocumentType.TOR,
        title=f"Kerangka Acuan Kerja (KAK) - {theme}",
        sections=[
            WorkspaceSection(
                id="sec-tor-bg",
                title="1. Latar Belakang",
                order=0,
                blocks=[WorkspaceBlock(
                    id="b_tor_bg",
                    type=BlockType.TEXT,
                    content="SKP yang ada sering error, output tidak terupdate, dan banyak probis "
                            "impor sementara belum terakomodir/terintegrasi.",
                )],
            ),
            WorkspaceSection(
                id="sec-tor-fr",
                title="2. Kebutuhan Fungsional",
                order=1,
                blocks=[WorkspaceBlock(
                    id="b_tor_fr",
                    type=BlockType.TABLE,
                    content=DocTable(
                        id="brd1",
                        title="Kebutuhan Fungsional",
                        headers=["ID", "Deskripsi Kebutuhan Fungsional", "Prioritas"],
                        rows=[
                            ["FR1", "Modul Pendaftaran/Sign Up", "Mandatory"],
                            ["FR2", "Modul Aplikasi Inhouse", "Mandatory"],
                        ],
                        type=TableType.GENERIC,
                    ),
                )],
            ),
        ],
    )


def create_demo_project(theme: str = "", config: Optional[EstimationConfig] = None) -> ProjectData:
    """Build the demo project; a blank theme falls back to the Imsama demo."""
    theme = theme.strip() or DEMO_THEME
    strategic = StrategicAnalysis(
        executive_summary=DEMO_SUMMARY,
        problem_statement="SKP yang ada sering error, output tidak terupdate, dan banyak probis "
                          "impor sementara belum terakomodir/terintegrasi.",
        business_objectives=[
            "Sistem aplikasi untuk stakeholder (importir) via portal pengguna jasa.",
            "Mengurangi Cost of Logistics sebesar 15% akibat efisiensi waktu tunggu di pelabuhan.",
        ],
        business_value="Mengamankan hak keuangan negara; Mempermudah importir dengan pengajuan online.",
        success_metrics=[
            SuccessMetric(kpi="Processing Time", target="< 30 Detik"),
            SuccessMetric(kpi="Cost of Logistics", target="Turun 15%"),
        ],
        assumptions=["Data master NPWP tersedia."],
        constraints=["Waktu pengembangan 6 bulan."],
        stakeholder_matrix=[
            Stakeholder(role="Dit. Teknis Kepabeanan", interest="High", power="High", strategy="Manage Closely"),
        ],
    )
    research = generate_research_workspace(
        theme,
        DEMO_SUMMARY,
        actor_records(DEMO_ACTORS),
        use_case_records(DEMO_USE_CASES),
        config,
    )
    tor = _tor_workspace(theme)
    return ProjectData(
        meta=ProjectMeta(
            theme=theme,
            created_at=DEMO_CREATED_AT,
            department="Direktorat Teknis Kepabeanan",
            unit_tik="Direktorat Teknis Kepabeanan",
            pic_name="Chotibul Umam",
            pic_contact="197207021992121001",
            estimation_lock=EstimationLock(),
        ),
        strategic_analysis=strategic,
        charter=[
            Task(id="1", name="Project Charter Template", start="2024-01-01", end="2024-01-05",
                 pic="PM", status="Completed", progress=100),
            Task(id="2", name="Analisis Kebutuhan", start="2024-01-08", end="2024-02-02",
                 pic="Business Analyst", dependency="1"),
            Task(id="3", name="Pengembangan Modul", start="2024-02-05", end="2024-05-31",
                 pic="Programmer", dependency="2"),
        ],
        tables={"brd": [tor.tables()[0].model_copy(deep=True)]},
        workspaces={research.id: research, tor.id: tor},
        pio_trace=PIOTrace(
            ingest=PIOIngest(
                project_name=theme,
                executive_summary=DEMO_SUMMARY,
                budget_signal=0.6,
                timeline_signal=6,
            ),
            arch=PIOArchitecture(
                actors=[actor.name for actor in DEMO_ACTORS],
                security_level="High",
                data_classification="Secret",
                use_cases=list(DEMO_USE_CASES),
                detailed_actors=list(DEMO_ACTORS),
            ),
        ),
    )
