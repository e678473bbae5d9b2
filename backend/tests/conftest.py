"""
Shared fixtures: in-memory database, fake model client and an API test client.
"""
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from genie.agents.analysis import ProjectAnalysisOrchestrator
from genie.agents.llm_client import get_llm_client
from genie.api.v1.endpoints.projects import get_orchestrator
from genie.core.database import Base, get_db
from genie.estimation.records import ActorRecord, UseCaseRecord
from genie.main import app
from genie.models.project import Project  # noqa: F401


class FakeLLM:
    """Stands in for LLMClient: returns queued JSON objects and a fixed chat reply"""

    def __init__(self, json_responses: Optional[List[Any]] = None, reply: str = "Halo dari Genie"):
        self.json_responses = list(json_responses or [])
        self.reply = reply
        self.prompts: List[str] = []
        self.histories: List[Any] = []

    async def invoke_json(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        self.prompts.append(prompt)
        response = self.json_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def invoke(self, prompt: str, system_prompt: Optional[str] = None, history=None) -> str:
        self.prompts.append(prompt)
        self.histories.append(history)
        return self.reply


INGEST_RESPONSE = {
    "project_name": "Sistem Perizinan Online",
    "executive_summary": "Digitalisasi layanan perizinan untuk pelaku usaha.",
    "objectives": ["Mempercepat layanan", "Transparansi status permohonan"],
    "stakeholders": [{"role": "Direktorat Perizinan", "interest": "High", "power": "High"}],
    "budget_signal": 1.2,
    "timeline_signal": 8,
}

ARCHITECTURE_RESPONSE = {
    "actors": ["Pemohon", "Verifikator"],
    "detailed_actors": [
        {"name": "Pemohon", "type": "Complex", "desc": "Mengajukan izin"},
        {"name": "Verifikator", "type": "Average", "desc": "Memeriksa berkas"},
    ],
    "use_cases": [
        {"code": "UC1", "name": "Pengajuan Izin", "classification": "Average", "transactions": 5},
        {"code": "UC2", "name": "Tracking Status", "classification": "Simple", "transactions": 2},
    ],
}


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(db_session, fake_llm):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_orchestrator] = lambda: ProjectAnalysisOrchestrator(llm=fake_llm)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def scenario_a_records():
    actors = [ActorRecord.create("Pengguna", "Complex", 3)]
    use_cases = [UseCaseRecord.create("Pengajuan", "Average", 5, 10)]
    return actors, use_cases


@pytest.fixture
def make_llm():
    """Factory for fake clients with queued JSON answers"""
    return FakeLLM
