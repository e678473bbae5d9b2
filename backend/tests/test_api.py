"""
HTTP API routes through FastAPI's TestClient.
"""
import zipfile
from io import BytesIO

import pytest

from genie.core.exceptions import LLMResponseError

from conftest import ARCHITECTURE_RESPONSE, INGEST_RESPONSE

API = "/api/v1"


@pytest.fixture
def demo_project(client):
    response = client.post(f"{API}/projects", json={"demo": True})
    assert response.status_code == 201
    return response.json()


def _workspace_url(project_id: str, document_id: str = "doc-research") -> str:
    return f"{API}/projects/{project_id}/workspaces/{document_id}"


class TestHealth:
    def test_root_and_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").json()["message"] == "Project Genie RAB API"


class TestCreateProject:
    def test_demo_project(self, demo_project):
        assert demo_project["id"].startswith("proj-")
        assert demo_project["estimate"]["metrics"]["uucp"] == 62
        assert len(demo_project["estimate"]["table"]) == 17
        assert set(demo_project["data"]["workspaces"]) == {"doc-research", "doc-tor"}

    def test_brief_runs_the_pipeline(self, client, fake_llm):
        fake_llm.json_responses = [INGEST_RESPONSE, ARCHITECTURE_RESPONSE]
        response = client.post(f"{API}/projects", json={"brief": "Term of Reference sistem perizinan"})
        assert response.status_code == 201
        body = response.json()
        assert body["data"]["meta"]["theme"] == "Sistem Perizinan Online"
        assert body["estimate"]["metrics"]["uucp"] == 20

    def test_blank_brief_rejected(self, client):
        response = client.post(f"{API}/projects", json={"brief": "   "})
        assert response.status_code == 422

    def test_unusable_model_reply(self, client, fake_llm):
        fake_llm.json_responses = [LLMResponseError("Model reply is not valid JSON")]
        response = client.post(f"{API}/projects", json={"brief": "Aplikasi"})
        assert response.status_code == 502

    def test_upload_text_brief(self, client, fake_llm):
        fake_llm.json_responses = [INGEST_RESPONSE, ARCHITECTURE_RESPONSE]
        response = client.post(
            f"{API}/projects/upload",
            files={"file": ("kak.txt", "KAK perizinan".encode("utf-8"), "text/plain")},
        )
        assert response.status_code == 201
        assert response.json()["data"]["meta"]["classification"]["confidence"] == 100

    def test_upload_demo(self, client):
        response = client.post(
            f"{API}/projects/upload",
            files={"file": ("kak.txt", b"", "text/plain")},
            data={"demo": "true"},
        )
        assert response.status_code == 201

    def test_upload_empty_file(self, client):
        response = client.post(f"{API}/projects/upload", files={"file": ("kak.txt", b"  ", "text/plain")})
        assert response.status_code == 422

    def test_upload_unsupported_type(self, client):
        response = client.post(f"{API}/projects/upload", files={"file": ("foto.png", b"\x89PNG", "image/png")})
        assert response.status_code == 415


class TestReadProjects:
    def test_list(self, client, demo_project):
        response = client.get(f"{API}/projects")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [demo_project["id"]]

    def test_get(self, client, demo_project):
        response = client.get(f"{API}/projects/{demo_project['id']}")
        assert response.json()["data"]["meta"]["theme"] == demo_project["data"]["meta"]["theme"]

    def test_missing_project(self, client):
        assert client.get(f"{API}/projects/proj-missing").status_code == 404

    def test_workspace(self, client, demo_project):
        response = client.get(_workspace_url(demo_project["id"], "doc-tor"))
        assert response.json()["document"]["type"] == "TOR"
        assert client.get(_workspace_url(demo_project["id"], "doc-x")).status_code == 404

    def test_estimate(self, client, demo_project):
        estimate = client.get(f"{API}/projects/{demo_project['id']}/estimate").json()
        assert estimate["metrics"]["man_months"] == pytest.approx(4.71975)
        assert estimate["table"] == demo_project["estimate"]["table"]


class TestWorkspaceEditing:
    def _actor_table(self, demo_project):
        for section in demo_project["data"]["workspaces"]["doc-research"]["sections"]:
            if section["id"] == "sec-uaw":
                return section["blocks"][0]["content"]

    def test_block_edit_returns_new_estimate(self, client, demo_project):
        table = self._actor_table(demo_project)
        table["rows"] = table["rows"][:2]
        url = f"{_workspace_url(demo_project['id'])}/sections/sec-uaw/blocks/b_uaw"
        response = client.put(url, json={"content": table})
        assert response.status_code == 200
        body = response.json()
        assert body["estimate"]["metrics"]["uaw"] == 5
        rab = [s for s in body["document"]["sections"] if s["id"] == "sec-rab"][0]
        assert rab["blocks"][0]["content"]["rows"] == body["estimate"]["table"]

    def test_text_edit_on_tor_has_no_estimate(self, client, demo_project):
        url = f"{_workspace_url(demo_project['id'], 'doc-tor')}/sections/sec-tor-bg/blocks/b_tor_bg"
        response = client.put(url, json={"content": "Latar belakang baru"})
        assert response.status_code == 200
        assert response.json()["estimate"] is None

    def test_unknown_block(self, client, demo_project):
        url = f"{_workspace_url(demo_project['id'])}/sections/sec-exec/blocks/b-x"
        assert client.put(url, json={"content": "x"}).status_code == 404

    def test_lock_blocks_ucp_edits(self, client, demo_project):
        project_id = demo_project["id"]
        lock = client.post(f"{API}/projects/{project_id}/lock", json={"user": "auditor"}).json()
        assert lock["is_locked"] and lock["locked_by"] == "auditor"

        url = f"{_workspace_url(project_id)}/sections/sec-uaw/blocks/b_uaw"
        response = client.put(url, json={"content": self._actor_table(demo_project)})
        assert response.status_code == 409
        assert client.delete(f"{_workspace_url(project_id)}/sections/sec-uucw").status_code == 409

        client.post(f"{API}/projects/{project_id}/unlock")
        assert client.put(url, json={"content": self._actor_table(demo_project)}).status_code == 200

    def test_lock_blocks_turning_rab_into_actor_table(self, client, demo_project):
        project_id = demo_project["id"]
        client.post(f"{API}/projects/{project_id}/lock", json={"user": "auditor"})

        url = f"{_workspace_url(project_id)}/sections/sec-rab/blocks/b_rab"
        injected = {"id": "rab_table", "type": "UCP_ACTOR", "rows": [["1", "Injected", "Complex", "500"]]}
        assert client.put(url, json={"content": injected}).status_code == 409

        estimate = client.get(f"{API}/projects/{project_id}/estimate").json()
        assert estimate["summary"]["grand_total"] == demo_project["estimate"]["summary"]["grand_total"]

    def test_lock_requires_user(self, client, demo_project):
        assert client.post(f"{API}/projects/{demo_project['id']}/lock", json={}).status_code == 422

    def test_section_crud(self, client, demo_project):
        base = _workspace_url(demo_project["id"], "doc-tor")
        created = client.post(f"{base}/sections", json={"title": "3. Jadwal"})
        assert created.status_code == 201
        section_id = created.json()["document"]["sections"][-1]["id"]

        renamed = client.patch(f"{base}/sections/{section_id}", json={"title": "3. Jadwal Kegiatan"})
        assert renamed.json()["document"]["sections"][-1]["title"] == "3. Jadwal Kegiatan"
        assert client.patch(f"{base}/sections/{section_id}", json={"title": ""}).status_code == 422

        deleted = client.delete(f"{base}/sections/{section_id}")
        assert [s["id"] for s in deleted.json()["document"]["sections"]] == ["sec-tor-bg", "sec-tor-fr"]

    def test_delete_ucp_section_recomputes(self, client, demo_project):
        response = client.delete(f"{_workspace_url(demo_project['id'])}/sections/sec-uucw")
        assert response.json()["estimate"]["metrics"]["uucw"] == 0


class TestModelBackedRoutes:
    def test_review_is_stored(self, client, fake_llm, demo_project):
        fake_llm.json_responses = [{"readiness_score": 64, "status": "NEEDS_REVISION",
                                    "findings": [{"section": "RAB", "severity": "MAJOR", "issue": "Rate lama"}]}]
        response = client.post(f"{API}/projects/{demo_project['id']}/review")
        assert response.status_code == 200
        assert response.json()["readiness_score"] == 64
        stored = client.get(f"{API}/projects/{demo_project['id']}").json()["data"]["executive_review"]
        assert stored["findings"][0]["severity"] == "MAJOR"

    def test_refine_use_case(self, client, fake_llm, demo_project):
        fake_llm.json_responses = [{"name": "Penerbitan Nopen Otomatis", "type": "Complex", "transactions": 10}]
        response = client.post(
            f"{API}/projects/{demo_project['id']}/use-cases/refine",
            json={"use_case": {"id": "UC1", "name": "Penerbitan Nopen"}, "instruction": "Tambahkan otomasi"},
        )
        assert response.status_code == 200
        assert response.json()["weight"] == 15.0

    def test_refine_bad_reply(self, client, fake_llm, demo_project):
        fake_llm.json_responses = [LLMResponseError("Model reply is not a JSON object")]
        response = client.post(
            f"{API}/projects/{demo_project['id']}/use-cases/refine",
            json={"use_case": {"id": "UC1"}, "instruction": "Ubah"},
        )
        assert response.status_code == 502

    def test_chat_with_project_context(self, client, fake_llm, demo_project):
        fake_llm.reply = "Estimasi sekitar 4,7 man-month."
        response = client.post(f"{API}/chat", json={
            "message": "Berapa effort-nya?",
            "history": [{"role": "user", "text": "Halo"}, {"role": "model", "text": "Hai"}],
            "project_id": demo_project["id"],
        })
        assert response.json() == {"reply": "Estimasi sekitar 4,7 man-month."}
        assert len(fake_llm.histories[0]) == 2

    def test_chat_without_project(self, client):
        response = client.post(f"{API}/chat", json={"message": "Apa itu UCP?"})
        assert response.status_code == 200

    def test_chat_rejects_unknown_role(self, client):
        response = client.post(f"{API}/chat", json={"message": "x", "history": [{"role": "system", "text": "y"}]})
        assert response.status_code == 422


class TestDownload:
    @pytest.mark.parametrize("fmt,prefix", [("xlsx", b"PK"), ("docx", b"PK"), ("pdf", b"%PDF")])
    def test_single_files(self, client, demo_project, fmt, prefix):
        response = client.get(f"{API}/projects/{demo_project['id']}/download", params={"format": fmt})
        assert response.status_code == 200
        assert response.content.startswith(prefix)
        assert "attachment; filename=" in response.headers["content-disposition"]

    def test_non_ascii_theme(self, client, fake_llm):
        fake_llm.json_responses = [{**INGEST_RESPONSE, "project_name": "Sistem Izin – Daerah “Baru”"},
                                   ARCHITECTURE_RESPONSE]
        project = client.post(f"{API}/projects", json={"brief": "KAK perizinan"}).json()
        assert project["data"]["meta"]["theme"] == "Sistem Izin – Daerah “Baru”"

        response = client.get(f"{API}/projects/{project['id']}/download", params={"format": "pdf"})
        assert response.status_code == 200
        assert response.headers["content-disposition"] == \
            'attachment; filename="MASTER_REPORT_Sistem_Izin_Daerah_Baru.pdf"'

    def test_zip_package(self, client, demo_project):
        response = client.get(f"{API}/projects/{demo_project['id']}/download")
        assert response.headers["content-type"] == "application/zip"
        with zipfile.ZipFile(BytesIO(response.content)) as archive:
            assert len(archive.namelist()) == 3

    def test_invalid_format(self, client, demo_project):
        response = client.get(f"{API}/projects/{demo_project['id']}/download", params={"format": "csv"})
        assert response.status_code == 400


class TestEstimationRoutes:
    def test_calculate(self, client):
        response = client.post(f"{API}/estimation/calculate", json={
            "actors": [{"name": "Pengguna", "classification": "Complex"}],
            "use_cases": [{"name": "Pengajuan", "classification": "Average", "transaction_count": 5}],
        })
        body = response.json()
        assert body["metrics"]["ucp"] == pytest.approx(8.7087)
        assert body["metrics"]["man_months"] == pytest.approx(0.989625)
        assert body["table"][-1][-1] == "Rp 28.343.078"
        assert body["warnings"] == []

    def test_ecf_override(self, client):
        payload = {"actors": [{"name": "A", "weight": 3}], "use_cases": [{"name": "B", "weight": 10}]}
        base = client.post(f"{API}/estimation/calculate", json=payload).json()
        changed = client.post(f"{API}/estimation/calculate", json={**payload, "ecf": 0.9}).json()
        assert changed["metrics"]["ucp"] / base["metrics"]["ucp"] == pytest.approx(0.9 / 0.77)

    def test_malformed_weight_is_reported(self, client):
        response = client.post(f"{API}/estimation/calculate", json={
            "actors": [{"name": "A", "classification": "Average", "weight": "dua"}],
        })
        body = response.json()
        assert body["metrics"]["uaw"] == 0
        assert body["warnings"][0]["raw"] == "dua"

    def test_huge_weight_is_reported_not_raised(self, client):
        response = client.post(f"{API}/estimation/calculate", json={
            "actors": [{"name": "A", "classification": "Average", "weight": "1e999999"}],
            "use_cases": [{"name": "B", "classification": "Simple", "transaction_count": "1e999999"}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["metrics"]["uucp"] == 5
        assert [w["field"] for w in body["warnings"]] == ["weight", "transactions"]

    def test_config(self, client):
        config = client.get(f"{API}/estimation/config").json()
        assert config["tcf"] == 0.87
        assert config["activity_roles"]["Implementation (Coding)"] == "Programmer"
        assert sum(config["effort_distribution"].values()) == pytest.approx(1.0)

    def test_complexity(self, client):
        response = client.post(f"{API}/estimation/complexity", json={"technical": {"T1": 5}})
        body = response.json()
        assert body["tcf"] == pytest.approx(0.7)
        assert body["ecf"] == pytest.approx(1.4)
        assert len(body["technical"]["lines"]) == 13

    def test_complexity_out_of_range(self, client):
        response = client.post(f"{API}/estimation/complexity", json={"environmental": {"E1": 9}})
        assert response.status_code == 422
