from fastapi.testclient import TestClient


def _draft(client: TestClient, tag: str = "multiple_choice", classification: str = "classic") -> dict:
    response = client.post("/api/v1/items/draft", json={"classification": classification, "formatTag": tag})
    assert response.status_code == 201
    return response.json()


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_formats(client: TestClient):
    response = client.get("/api/v1/formats")
    assert response.status_code == 200
    tags = [entry["tag"] for entry in response.json()["formats"]]
    assert len(tags) == 13
    assert "bowtie" in tags


def test_item_authoring_workflow(client: TestClient):
    item = _draft(client)
    assert item["formatTag"] == "multiple_choice"
    assert item["status"] == "draft"
    assert item["version"] == 1
    item_id = item["id"]

    # 1. Edit through the draft model
    response = client.put(
        f"/api/v1/items/{item_id}",
        json={
            "expectedVersion": 1,
            "stem": "Which finding is most concerning?",
            "payload": {"options": ["HR 72", "RR 32", "Temp 37.1", "BP 120/80"]},
            "answerKey": {"index": 1},
        },
    )
    assert response.status_code == 200
    assert response.json()["version"] == 2
    assert response.json()["answerKey"] == {"index": 1}

    # 2. Saving over an older version is refused
    stale = client.put(f"/api/v1/items/{item_id}", json={"expectedVersion": 1, "stem": "Other"})
    assert stale.status_code == 409

    # 3. Validation and publish
    validation = client.get(f"/api/v1/items/{item_id}/validation").json()
    assert validation == {"ready": True, "errors": []}
    published = client.post(f"/api/v1/items/{item_id}/publish", json={"expectedVersion": 2})
    assert published.status_code == 200
    assert published.json()["status"] == "ready"

    frozen = client.put(f"/api/v1/items/{item_id}", json={"expectedVersion": 3, "stem": "Changed"})
    assert frozen.status_code == 409

    # 4. Grading
    scored = client.post(f"/api/v1/items/{item_id}/score", json={"response": 1}).json()
    assert scored["isCorrect"] is True
    assert scored["pointsEarned"] == 1.0
    bad = client.post(f"/api/v1/items/{item_id}/score", json={"response": "abc"}).json()
    assert bad["ungradable"] is True

    # 5. Reopen for edits
    reopened = client.post(f"/api/v1/items/{item_id}/reopen", json={"expectedVersion": 3})
    assert reopened.json()["status"] == "draft"


def test_publish_incomplete_item(client: TestClient):
    item = _draft(client, "case_study", "ngn")
    validation = client.get(f"/api/v1/items/{item['id']}/validation").json()
    assert validation["ready"] is False
    assert any(error["field"] == "payload.steps.6.question" for error in validation["errors"])

    response = client.post(f"/api/v1/items/{item['id']}/publish", json={"expectedVersion": 1})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "NotReadyError"


def test_format_change_requires_confirmation(client: TestClient):
    item = _draft(client)
    client.put(
        f"/api/v1/items/{item['id']}",
        json={"expectedVersion": 1, "payload": {"options": ["a", "b", "c", "d"]}},
    )
    refused = client.post(f"/api/v1/items/{item['id']}/format", json={"formatTag": "bowtie"})
    assert refused.status_code == 409
    assert refused.json()["detail"]["discardedPayload"]["options"] == ["a", "b", "c", "d"]

    changed = client.post(
        f"/api/v1/items/{item['id']}/format", json={"formatTag": "bowtie", "confirm": True}
    )
    assert changed.status_code == 200
    body = changed.json()
    assert body["formatTag"] == "bowtie"
    assert body["payload"]["limits"] == {"findings": 2, "conditions": 1, "actions": 2}

    unknown = client.post(f"/api/v1/items/{item['id']}/format", json={"formatTag": "essay", "confirm": True})
    assert unknown.status_code == 400


def test_invalid_edit_is_rejected(client: TestClient):
    item = _draft(client, "select_n", "ngn")
    response = client.put(
        f"/api/v1/items/{item['id']}",
        json={"expectedVersion": 1, "answerKey": {"indices": [0, 1, 2, 3]}},
    )
    assert response.status_code == 422
    assert client.get(f"/api/v1/items/{item['id']}").json()["version"] == 1


def test_create_list_and_delete(client: TestClient):
    envelope = {
        "classification": "classic",
        "formatTag": "calculation",
        "stem": "Calculate the rate",
        "payload": {"unit": "mL/hr", "decimalPlaces": 1},
        "answerKey": {"correctValue": 125, "tolerance": 0.5},
        "tags": ["pharm"],
    }
    created = client.post("/api/v1/items", json=envelope)
    assert created.status_code == 201
    assert created.json()["formatTag"] == "dosage_calculation"
    _draft(client, "sata")

    listing = client.get("/api/v1/items", params={"format_tag": "dosage_calculation"}).json()
    assert listing["total"] == 1
    assert client.get("/api/v1/items").json()["total"] == 2

    bad = client.post("/api/v1/items", json={**envelope, "answerKey": {"tolerance": -1}})
    assert bad.status_code == 422
    unknown = client.post("/api/v1/items", json={**envelope, "formatTag": "essay"})
    assert unknown.status_code == 400

    item_id = created.json()["id"]
    assert client.delete(f"/api/v1/items/{item_id}").status_code == 204
    assert client.get(f"/api/v1/items/{item_id}").status_code == 404
