import pytest
from prompt_battle.core.config import settings
from prompt_battle.models.prompt import Prompt
from prompt_battle.models.room_player import RoomPlayer
from conftest import create_user, advance, submit


@pytest.fixture()
def open_round(client, game, manager):
    advance(client, game["room_id"], game["host"])
    return manager.payloads("phase_update")[-1]["round_id"]


def test_submit_stores_prompt(client, game, open_round, db):
    response = submit(client, game["room_id"], open_round, game["alice"], "  a red fox in snow  ")
    assert response.status_code == 200
    prompt_id = response.json()["prompt_id"]

    prompt = db.query(Prompt).filter(Prompt.id == prompt_id).one()
    assert prompt.prompt_text == "a red fox in snow"
    assert prompt.score is None
    assert prompt.round_id == open_round


def test_one_prompt_per_player_per_round(client, game, open_round):
    assert submit(client, game["room_id"], open_round, game["alice"], "first").status_code == 200

    response = submit(client, game["room_id"], open_round, game["alice"], "second")
    assert response.status_code == 409
    assert response.json() == {"error": "Prompt already submitted"}


def test_submit_creates_player_row_lazily(client, game, open_round, db):
    latecomer = create_user(client, "Latecomer")
    assert submit(client, game["room_id"], open_round, latecomer, "a fox").status_code == 200

    player = db.query(RoomPlayer).filter(
        RoomPlayer.room_id == game["room_id"],
        RoomPlayer.user_id == latecomer
    ).one()
    assert player.is_host is False


def test_empty_and_oversized_prompts(client, game, open_round, monkeypatch):
    response = submit(client, game["room_id"], open_round, game["alice"], "   ")
    assert response.status_code == 400
    assert response.json() == {"error": "Prompt text is empty"}

    monkeypatch.setattr(settings, "MAX_PROMPT_LENGTH", 10)
    response = submit(client, game["room_id"], open_round, game["alice"], "x" * 11)
    assert response.status_code == 400


def test_unknown_round_or_room(client, game, open_round):
    assert submit(client, game["room_id"], "missing", game["alice"], "a fox").status_code == 404
    assert submit(client, "other-room", open_round, game["alice"], "a fox").status_code == 404


def test_missing_fields(client, game, open_round):
    response = client.post("/api/battle/submit-prompt", json={"room_id": game["room_id"], "round_id": open_round})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing params"}
