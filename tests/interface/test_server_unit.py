from fastapi.testclient import TestClient

from mnemos.consts import VERSION
from mnemos.server import app

client = TestClient(app)


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION
    assert data["uptime_seconds"] >= 0


def test_version():
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


# --- Schedule preview ---


def test_preview_plain_sm2(mock_home):
    response = client.post(
        "/schedule/preview",
        json={
            "progress": {"card_id": "c1", "interval": 6, "repetitions": 2},
            "quality": 5,
            "now": "2024-03-15T10:00:00",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["progress"]["interval"] == 16
    assert data["progress"]["next_review_date"] == "2024-03-31"
    assert data["factors"]["reasons"] == []


def test_preview_malformed_quality_is_neutral(mock_home):
    response = client.post(
        "/schedule/preview",
        json={"progress": {"card_id": "c1"}, "quality": "great"},
    )
    assert response.status_code == 200
    assert response.json()["progress"]["last_quality"] == 3


def test_preview_with_snapshot(mock_home, sample_snapshot):
    response = client.post(
        "/schedule/preview",
        json={
            "progress": {"card_id": "c2"},
            "quality": 4,
            "now": "2024-03-15T10:00:00",
            "snapshot": sample_snapshot,
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["progress"]["interval"] >= 1
    assert data["progress"]["total_reviews"] == 1


def test_preview_unknown_card(mock_home, sample_snapshot):
    response = client.post(
        "/schedule/preview",
        json={"progress": {"card_id": "ghost"}, "quality": 4, "snapshot": sample_snapshot},
    )
    assert response.status_code == 404


def test_preview_rejects_invalid_progress(mock_home):
    response = client.post(
        "/schedule/preview",
        json={"progress": {"card_id": "c1", "mastery_level": 9}, "quality": 4},
    )
    assert response.status_code == 422


# --- Analyze / Plan ---


def test_analyze(mock_home, sample_snapshot):
    response = client.post("/analyze", json={"snapshot": sample_snapshot})
    assert response.status_code == 200
    data = response.json()
    assert data["weak_spots"] == []
    assert data["difficulty"]["global_level"] == 5
    assert data["generated_at"].startswith("2024-03-15")


def test_analyze_inconsistent_snapshot(mock_home, sample_snapshot):
    sample_snapshot["mistakes"][0]["card_id"] = "ghost"
    response = client.post("/analyze", json={"snapshot": sample_snapshot})
    assert response.status_code == 422
    assert "ghost" in response.json()["detail"]


def test_plan(mock_home, sample_snapshot):
    response = client.post(
        "/plan", json={"snapshot": sample_snapshot, "target_cards": 4, "seed": 11}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["composition"]["total_cards"] == 4
    assert len(data["queue"]["items"]) == 4
    assert data["queue"]["shortfall"] == 0
