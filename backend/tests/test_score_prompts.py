from fastapi.testclient import TestClient
from main import app
from prompt_battle.core.config import settings
from prompt_battle.models.round_model import Round
from conftest import advance, submit, score


def start_round(client, game, manager):
    assert advance(client, game["room_id"], game["host"]).status_code == 200
    return manager.payloads("phase_update")[-1]


def totals(client, room_id):
    return {p["user_id"]: p["total_score"] for p in client.get(f"/api/room/{room_id}/players").json()}


def test_missing_params(client):
    response = client.post("/api/battle/score-prompts", json={"room_id": "r", "round_id": "x"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing room_id, round_id or image_url"}


def test_zero_prompts_is_rejected(client, game, manager, scorer):
    phase = start_round(client, game, manager)

    response = score(client, game["room_id"], phase["round_id"], phase["image_url"])
    assert response.status_code == 400
    assert response.json() == {"error": "No prompts found"}
    assert scorer.calls == []
    assert "results_ready" not in manager.names()


def test_unknown_round(client, game):
    response = score(client, game["room_id"], "nope", "https://example.com/cat.jpg")
    assert response.status_code == 404


def test_scoring_persists_and_broadcasts(client, game, manager, scorer):
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    round_id = phase["round_id"]
    submit(client, room_id, round_id, game["alice"], "a tabby cat on a sofa")
    submit(client, room_id, round_id, game["bob"], "a dog")
    scorer.scores = {"a tabby cat on a sofa": 87, "a dog": 12}

    response = score(client, room_id, round_id, phase["image_url"])
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert sorted(e["score"] for e in body["evaluations"]) == [12, 87]

    image_url, sent = scorer.calls[0]
    assert image_url == phase["image_url"]
    assert {p["prompt_text"] for p in sent} == {"a tabby cat on a sofa", "a dog"}

    assert manager.names(room_id)[-2:] == ["results_ready", "intermission"]
    assert manager.events[-2][2] == {"round_id": round_id}
    assert manager.events[-1][2] == {"seconds": 15, "round_id": round_id}

    results = client.get(f"/api/battle/rounds/{round_id}/results").json()
    assert [(r["name"], r["scores"]) for r in results] == [("Alice", 87), ("Bob", 12)]
    assert results[0]["justification"] == "feedback for a tabby cat on a sofa"

    assert totals(client, room_id) == {game["host"]: 0, game["alice"]: 87, game["bob"]: 12}
    state = client.get(f"/api/room/{room_id}").json()
    assert state["phase"] == "results"
    assert state["round"]["status"] == "scored"


def test_second_scoring_call_is_conflict(client, game, manager):
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    submit(client, room_id, phase["round_id"], game["alice"], "a cat")
    assert score(client, room_id, phase["round_id"], phase["image_url"]).status_code == 200

    response = score(client, room_id, phase["round_id"], phase["image_url"])
    assert response.status_code == 409
    assert totals(client, room_id)[game["alice"]] == 50
    assert manager.names(room_id).count("results_ready") == 1


def test_model_failure_returns_500_and_allows_retry(client, game, manager, scorer):
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    submit(client, room_id, phase["round_id"], game["alice"], "a cat")

    scorer.error = "Gemini API call failed: boom"
    response = score(client, room_id, phase["round_id"], phase["image_url"])
    assert response.status_code == 500
    assert response.json() == {"error": "Gemini API call failed: boom"}
    assert "results_ready" not in manager.names()

    scorer.error = None
    response = score(client, room_id, phase["round_id"], phase["image_url"])
    assert response.status_code == 200
    assert totals(client, room_id)[game["alice"]] == 50


def test_cumulative_score_is_sum_of_rounds(client, game, manager, scorer):
    room_id = game["room_id"]
    awarded = {game["alice"]: 0, game["bob"]: 0}

    for round_scores in ({"alice-1": 40, "bob-1": 70}, {"alice-2": 95, "bob-2": 5}):
        phase = start_round(client, game, manager)
        scorer.scores = round_scores
        for text, points in round_scores.items():
            user = game["alice"] if text.startswith("alice") else game["bob"]
            assert submit(client, room_id, phase["round_id"], user, text).status_code == 200
            awarded[user] += points
        assert score(client, room_id, phase["round_id"], phase["image_url"]).status_code == 200

    final = totals(client, room_id)
    assert final[game["alice"]] == awarded[game["alice"]] == 135
    assert final[game["bob"]] == awarded[game["bob"]] == 75

    players = client.get(f"/api/room/{room_id}/players").json()
    assert [p["user_id"] for p in players][:2] == [game["alice"], game["bob"]]

    assert advance(client, room_id, game["host"]).json() == {"finished": True}
    assert manager.names(room_id)[-1] == "game_finished"


def test_submission_closes_once_scored(client, game, manager):
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    submit(client, room_id, phase["round_id"], game["alice"], "a cat")
    score(client, room_id, phase["round_id"], phase["image_url"])

    response = submit(client, room_id, phase["round_id"], game["bob"], "late")
    assert response.status_code == 409
    assert response.json() == {"error": "Submission window closed"}


def test_intermission_uses_configured_window(client, game, manager, monkeypatch):
    monkeypatch.setattr(settings, "INTERMISSION_SECONDS", 7)
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    submit(client, room_id, phase["round_id"], game["alice"], "a cat")
    score(client, room_id, phase["round_id"], phase["image_url"])

    assert manager.payloads("intermission") == [{"seconds": 7, "round_id": phase["round_id"]}]


def test_unexpected_failure_releases_round(client, game, manager, scorer, db):
    room_id = game["room_id"]
    phase = start_round(client, game, manager)
    submit(client, room_id, phase["round_id"], game["alice"], "a cat")

    scorer.crash = RuntimeError("connection reset")
    response = TestClient(app, raise_server_exceptions=False).post("/api/battle/score-prompts", json={
        "room_id": room_id,
        "round_id": phase["round_id"],
        "image_url": phase["image_url"],
    })
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert db.query(Round).filter(Round.id == phase["round_id"]).one().status == "submission"

    scorer.crash = None
    assert score(client, room_id, phase["round_id"], phase["image_url"]).status_code == 200
    assert totals(client, room_id)[game["alice"]] == 50


def test_superseded_round_is_closed(client, game, manager, scorer, monkeypatch):
    monkeypatch.setattr(settings, "SUBMISSION_SECONDS", 0)
    room_id = game["room_id"]
    first = start_round(client, game, manager)
    submit(client, room_id, first["round_id"], game["alice"], "a cat")

    scorer.error = "Gemini API call failed: HTTP 503"
    assert score(client, room_id, first["round_id"], first["image_url"]).status_code == 500
    scorer.error = None

    # the host moves on without results for round 1
    second = start_round(client, game, manager)
    assert second["round_number"] == 2

    response = submit(client, room_id, first["round_id"], game["bob"], "late")
    assert response.status_code == 409
    assert response.json() == {"error": "Round is no longer current"}

    response = score(client, room_id, first["round_id"], first["image_url"])
    assert response.status_code == 409
    assert response.json() == {"error": "Round is no longer current"}

    state = client.get(f"/api/room/{room_id}").json()
    assert state["phase"] == "submission"
    assert state["round"]["round_id"] == second["round_id"]
    assert submit(client, room_id, second["round_id"], game["bob"], "a dog").status_code == 200
