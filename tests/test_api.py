# tests/test_api.py
"""
Integration Tests for the xmdedit HTTP API.

Focus
-----
These tests verify the HTTP contract (request/response schemas), the panel
lifecycle and the async job state machine. They DO NOT call a model; the
propose pipeline used by the background worker is patched to return canned
decisions.

Scenarios
---------
1. **Health Check**: Verify service is up.
2. **Documents**: create, read, blocks, decorations, replace, toggle.
3. **Panels**: open on a component, submit -> 202 -> poll -> apply.
4. **Stale anchors**: an edit inside the component makes apply answer 409.
5. **Error Handling**: 400 for bad spans and non-editable blocks, 404s.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from xmdedit import __version__ as PKG_VERSION
from xmdedit.api.app import create_app
from xmdedit.api.store import get_store
from xmdedit.core.contracts.edit import Accepted, Clarification

FIG = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
CENTERED = '![Cap](data:image/png;base64,AAA){width="50%" align="center"}'
DOC = f"Intro.\n\n{FIG}\n\nOutro."
FIG_START = DOC.index(FIG)
FIG_END = FIG_START + len(FIG)
PIPE_DOC = "| a | b |\n|---|---|\n| 1 | 2 |\n"

BACKGROUND_PROPOSE = "xmdedit.api.background.propose_component_edit"


@pytest.fixture  # type: ignore[misc]
def client() -> Generator[TestClient, None, None]:
    """Create a clean API client; the store is a singleton, so reset it."""
    get_store().reset()
    app = create_app()
    with TestClient(app) as c:
        yield c


def _create(client: TestClient, text: str = DOC) -> str:
    response = client.post("/documents", json={"text": text})
    assert response.status_code == 201
    document_id: str = response.json()["document_id"]
    return document_id


def _open_panel(client: TestClient, document_id: str) -> dict[str, Any]:
    response = client.post(
        f"/documents/{document_id}/panels", json={"start": FIG_START, "end": FIG_END}
    )
    assert response.status_code == 201, response.text
    info: dict[str, Any] = response.json()
    return info


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] in {"dev", "test", "prod"}
    assert data["version"] == PKG_VERSION


# --------------------------------------------------------------------------- #
# Documents
# --------------------------------------------------------------------------- #


def test_document_lifecycle(client: TestClient) -> None:
    document_id = _create(client)

    data = client.get(f"/documents/{document_id}").json()
    assert data["text"] == DOC
    assert data["revision"] == 0
    assert data["length"] == len(DOC)

    blocks = client.get(f"/documents/{document_id}/blocks").json()["blocks"]
    assert [b["kind"] for b in blocks] == ["figure"]
    assert blocks[0]["span"] == {"start": FIG_START, "end": FIG_END}

    decorations = client.get(f"/documents/{document_id}/decorations").json()["decorations"]
    assert len(decorations) == 1
    assert decorations[0]["kind"] == "replace"
    assert decorations[0]["block"] is True


def test_replace_and_toggle(client: TestClient) -> None:
    document_id = _create(client)

    toggled = client.post(
        f"/documents/{document_id}/toggle", json={"start": FIG_START, "end": FIG_END}
    )
    assert toggled.status_code == 200
    assert toggled.json() == {"raw": True, "ranges": [{"start": FIG_START, "end": FIG_END}]}

    decorations = client.get(f"/documents/{document_id}/decorations").json()["decorations"]
    assert decorations[0]["kind"] == "toggle_pill"
    assert decorations[0]["label"] == "Render figure"

    replaced = client.post(
        f"/documents/{document_id}/replace", json={"start": 0, "end": 5, "text": "Hello"}
    )
    assert replaced.status_code == 200
    assert replaced.json()["text"] == "Hello.\n\n" + FIG + "\n\nOutro."
    assert replaced.json()["revision"] == 1


def test_bad_span_is_a_bad_request(client: TestClient) -> None:
    document_id = _create(client)
    response = client.post(
        f"/documents/{document_id}/replace", json={"start": 0, "end": 10_000, "text": "x"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


def test_missing_document_is_404(client: TestClient) -> None:
    response = client.get("/documents/nope")
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


# --------------------------------------------------------------------------- #
# Panels and edit jobs
# --------------------------------------------------------------------------- #


def test_open_panel_on_figure(client: TestClient) -> None:
    document_id = _create(client)
    info = _open_panel(client, document_id)
    assert info["kind"] == "figure"
    assert info["expected"] == FIG
    assert info["pending"] is None


def test_pipe_table_is_not_editable(client: TestClient) -> None:
    document_id = _create(client, PIPE_DOC)
    block = client.get(f"/documents/{document_id}/blocks").json()["blocks"][0]
    assert block["kind"] == "pipe_table"
    response = client.post(f"/documents/{document_id}/panels", json=block["span"])
    assert response.status_code == 400
    assert "cannot be edited" in response.json()["detail"]


def test_submit_poll_and_apply(client: TestClient) -> None:
    """Submit -> 202 -> Poll (Completed) -> Apply -> document updated."""
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]
    decision = Accepted(replacement=CENTERED, summary="Centered.")

    with patch(BACKGROUND_PROPOSE, return_value=decision) as mock_propose:
        response = client.post(f"/panels/{panel_id}/edits", json={"prompt": "center it"})
        assert response.status_code == 202
        job_id = response.json()["job_id"]
        assert response.json()["ticket"] == 1

        mock_propose.assert_called_once()
        args = mock_propose.call_args.args
        assert args == ("figure", "center it", FIG)

    job = client.get(f"/jobs/{job_id}").json()
    assert job["status"] == "completed"
    assert job["discarded"] is False
    assert job["result"]["status"] == "accepted"
    assert job["result"]["replacement"] == CENTERED

    panel = client.get(f"/panels/{panel_id}").json()
    assert panel["pending"]["replacement"] == CENTERED
    assert [m["role"] for m in panel["conversation"]] == ["user", "assistant"]

    applied = client.post(f"/panels/{panel_id}/apply")
    assert applied.status_code == 200, applied.text
    body = applied.json()
    assert body["document"]["text"] == DOC.replace(FIG, CENTERED)
    assert body["span"] == {"start": FIG_START, "end": FIG_START + len(CENTERED)}

    # Nothing is pending any more.
    again = client.post(f"/panels/{panel_id}/apply")
    assert again.status_code == 400


def test_clarification_is_recorded(client: TestClient) -> None:
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]

    with patch(BACKGROUND_PROPOSE, return_value=Clarification(question="Which way?")):
        job_id = client.post(f"/panels/{panel_id}/edits", json={"prompt": "move"}).json()["job_id"]

    job = client.get(f"/jobs/{job_id}").json()
    assert job["result"] == {"status": "clarify", "question": "Which way?", "suggestions": []}
    panel = client.get(f"/panels/{panel_id}").json()
    assert panel["conversation"][-1]["content"] == "Which way?"
    assert panel["pending"] is None


def test_pipeline_crash_marks_job_failed(client: TestClient) -> None:
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]

    with patch(BACKGROUND_PROPOSE, side_effect=RuntimeError("boom")):
        job_id = client.post(f"/panels/{panel_id}/edits", json={"prompt": "x"}).json()["job_id"]

    job = client.get(f"/jobs/{job_id}").json()
    assert job["status"] == "failed"
    assert job["error"] == "Edit Error: boom"


def test_edit_inside_component_makes_apply_409(client: TestClient) -> None:
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]

    with patch(BACKGROUND_PROPOSE, return_value=Accepted(replacement=CENTERED, summary="s")):
        client.post(f"/panels/{panel_id}/edits", json={"prompt": "center it"})

    client.post(
        f"/documents/{document_id}/replace",
        json={"start": FIG_START + 2, "end": FIG_START + 5, "text": "Caption"},
    )
    before = client.get(f"/documents/{document_id}").json()["text"]

    response = client.post(f"/panels/{panel_id}/apply")
    assert response.status_code == 409
    assert response.json()["rejection"]["code"] == "stale_anchor"
    assert client.get(f"/documents/{document_id}").json()["text"] == before


def test_edit_before_component_moves_the_panel(client: TestClient) -> None:
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]

    client.post(f"/documents/{document_id}/replace", json={"start": 0, "end": 0, "text": "# T\n"})

    panel = client.get(f"/panels/{panel_id}").json()
    assert panel["span"] == {"start": FIG_START + 4, "end": FIG_END + 4}


def test_discard_and_close(client: TestClient) -> None:
    document_id = _create(client)
    panel_id = _open_panel(client, document_id)["panel_id"]

    with patch(BACKGROUND_PROPOSE, return_value=Accepted(replacement=CENTERED, summary="s")):
        client.post(f"/panels/{panel_id}/edits", json={"prompt": "center it"})

    discarded = client.post(f"/panels/{panel_id}/discard")
    assert discarded.status_code == 200
    assert discarded.json()["pending"] is None

    assert client.delete(f"/panels/{panel_id}").status_code == 204
    assert client.get(f"/panels/{panel_id}").status_code == 404
    assert client.delete(f"/panels/{panel_id}").status_code == 404


def test_missing_job_is_404(client: TestClient) -> None:
    response = client.get("/jobs/non-existent-id")
    assert response.status_code == 404
    assert response.json()["detail"] == "Job non-existent-id not found"
