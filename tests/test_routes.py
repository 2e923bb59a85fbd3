"""API tests through FastAPI's TestClient with a stub LLM."""

import pytest
from fastapi.testclient import TestClient

from gamemaster import storage
from gamemaster.app import create_app
from gamemaster.llm import LLMError
from gamemaster.rewards import RewardTracker


class StubLLM:
    """Deterministic LLM stand-in: stage name → list of responses."""

    def __init__(self, responses: dict[str, list[str]] | None = None) -> None:
        self._queues = {k: list(v) for k, v in (responses or {}).items()}
        self.calls: list[tuple[str, list]] = []
        self.fail = False

    async def __call__(self, stage: str, messages: list) -> str:
        self.calls.append((stage, messages))
        if self.fail:
            raise LLMError("Cannot connect to LLM backend at http://stub")
        queue = self._queues.get(stage)
        if not queue:
            raise AssertionError(f"StubLLM: unexpected call to stage={stage!r}")
        return queue.pop(0)

    async def generate_image(self, prompt: str) -> str:
        if self.fail:
            raise LLMError("Failed to generate image")
        return "http://img/portrait.png"


@pytest.fixture
def llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def client(llm) -> TestClient:
    return TestClient(create_app(storage.data_dir(), llm=llm))


@pytest.fixture
def game(client) -> dict:
    resp = client.post(
        "/api/scenarios/dragons-hollow/games",
        json={"customizations": {"Calling": "Scout"}, "user_id": "alice"},
    )
    assert resp.status_code == 201
    return resp.json()


# ── settings ────────────────────────────────────────────


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_settings_roundtrip(client):
    resp = client.patch("/api/settings", json={"rewards": {"enabled": False}})
    assert resp.status_code == 200
    assert resp.json()["rewards"]["enabled"] is False
    assert client.get("/api/settings").json()["rewards"]["enabled"] is False


# ── scenarios ───────────────────────────────────────────


def test_list_scenarios(client):
    ids = [s["id"] for s in client.get("/api/scenarios").json()]
    assert {"royal-court", "dragons-hollow"} <= set(ids)


def test_get_scenario_missing(client):
    assert client.get("/api/scenarios/nope").status_code == 404


def test_create_and_delete_scenario(client):
    resp = client.post("/api/scenarios", json={"title": "Foggy Pier"})
    assert resp.status_code == 201
    assert resp.json()["id"] == "foggy-pier"
    assert client.post("/api/scenarios", json={"title": "Foggy Pier"}).status_code == 409
    assert client.delete("/api/scenarios/foggy-pier").status_code == 200
    assert client.get("/api/scenarios/foggy-pier").status_code == 404


def test_create_scenario_requires_title(client):
    assert client.post("/api/scenarios", json={"description": "x"}).status_code == 400


def test_create_scenario_invalid(client):
    resp = client.post("/api/scenarios", json={"title": "Bad", "attributes": [1]})
    assert resp.status_code == 400


def test_create_scenario_ignores_client_id(client):
    resp = client.post("/api/scenarios", json={"id": "../../escaped", "title": "Harmless"})
    assert resp.status_code == 201
    assert resp.json()["id"] == "harmless"
    assert (storage.scenarios_dir() / "harmless.json").is_file()
    assert not (storage.scenarios_dir() / ".." / ".." / "escaped.json").exists()
    assert not (storage.data_dir() / "escaped.json").exists()



# ── games ───────────────────────────────────────────────


def test_create_game(client, game):
    assert game["id"].startswith("game_")
    assert game["user_id"] == "alice"
    assert game["character_data"]["attributes"]["Agility"] == 2
    assert game["character_data"]["skills"]["Climbing"] is True
    assert game["character_data"]["skills"]["Intimidation"] is False
    assert len(game["history"]) == 1


def test_create_game_incomplete(client):
    resp = client.post("/api/scenarios/royal-court/games", json={"customizations": {}})
    assert resp.status_code == 400
    assert "complete all character customizations" in resp.json()["detail"]


def test_create_game_unknown_scenario(client):
    resp = client.post("/api/scenarios/nope/games", json={"customizations": {}})
    assert resp.status_code == 404


def test_list_and_delete_games(client, game):
    assert [g["id"] for g in client.get("/api/games").json()] == [game["id"]]
    assert client.get("/api/games", params={"user_id": "bob"}).json() == []
    assert client.delete(f"/api/games/{game['id']}").status_code == 200
    assert client.get(f"/api/games/{game['id']}").status_code == 404


def test_delete_history_entry(client, game):
    resp = client.delete(f"/api/games/{game['id']}/history/0")
    assert resp.status_code == 200
    assert resp.json() == []
    assert client.delete(f"/api/games/{game['id']}/history/0").status_code == 404


# ── chat ────────────────────────────────────────────────


def test_chat(client, llm, game):
    llm._queues["chat"] = ["A dragon stirs."]
    resp = client.post(f"/api/games/{game['id']}/chat", json={"message": "I listen."})
    assert resp.status_code == 200
    data = resp.json()
    assert data["response"] == "A dragon stirs."
    assert data["mini_game"] is None
    history = data["game"]["history"]
    assert [(e["sender"], e["message"]) for e in history[1:]] == [
        ("user", "I listen."),
        ("system", "A dragon stirs."),
    ]
    assert data["game"]["conversation_round"] == 1

    saved = client.get(f"/api/games/{game['id']}").json()
    assert len(saved["history"]) == 3


def test_chat_blank_message(client, game):
    resp = client.post(f"/api/games/{game['id']}/chat", json={"message": "  "})
    assert resp.status_code == 400


def test_chat_unknown_game(client):
    assert client.post("/api/games/game_nope/chat", json={"message": "Hi"}).status_code == 404


def test_chat_llm_failure(client, llm, game):
    llm.fail = True
    resp = client.post(f"/api/games/{game['id']}/chat", json={"message": "Hi"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to generate response"
    # nothing written on failure
    assert len(client.get(f"/api/games/{game['id']}").json()["history"]) == 1


def test_mini_game_offered_after_three_rounds(client, llm, game):
    llm._queues["chat"] = ["one", "two", "three"]
    url = f"/api/games/{game['id']}/chat"
    assert client.post(url, json={"message": "a"}).json()["mini_game"] is None
    assert client.post(url, json={"message": "b"}).json()["mini_game"] is None
    assert client.post(url, json={"message": "c"}).json()["mini_game"] == "timing_bar"

    resp = client.post(
        f"/api/games/{game['id']}/mini-games/result",
        json={"type": "timing_bar", "success": True},
    )
    assert resp.status_code == 200
    updated = resp.json()["game"]
    assert updated["mini_game_played"] is True
    assert updated["mini_game_result"] == "success"
    assert updated["history"][-1]["mini_game"] == {"type": "timing_bar", "result": "success"}
    assert client.get(f"/api/games/{game['id']}/mini-games").json() == {"mini_game": None}


def test_mini_game_unknown_type(client, game):
    resp = client.post(
        f"/api/games/{game['id']}/mini-games/result",
        json={"type": "chess", "success": True},
    )
    assert resp.status_code == 400


def test_mini_game_settings(client):
    data = client.get("/api/mini-games").json()
    assert data["types"] == ["timing_bar", "rhythm_matching"]
    assert data["timing_bar"]["hard"]["success_zone"] == [47, 53]
    assert data["rhythm_matching"]["easy"]["max_misses"] == 5


def test_rate_limited(client, llm, game):
    client.patch("/api/settings", json={"rate_limit": {"max_requests": 1}})
    llm._queues["chat"] = ["ok"]
    url = f"/api/games/{game['id']}/chat"
    assert client.post(url, json={"message": "a"}).status_code == 200
    assert client.post(url, json={"message": "b"}).status_code == 429


# ── skills ──────────────────────────────────────────────


def test_skill_check(client, game):
    resp = client.post(f"/api/games/{game['id']}/skills", json={"skill_name": "Climbing"})
    assert resp.status_code == 200
    result = resp.json()
    assert 1 <= result["roll"] <= 20
    assert result["attribute"] == "Agility"
    assert result["attribute_value"] == 2
    assert result["success"] == (result["roll"] + 2 >= 10)

    last = client.get(f"/api/games/{game['id']}").json()["history"][-1]
    assert last["message"] == "I use my Climbing skill."
    assert last["roll"]["value"] == result["roll"]
    assert last["roll"]["modified_value"] == result["roll"] + 2


def test_skill_locked(client, game):
    resp = client.post(f"/api/games/{game['id']}/skills", json={"skill_name": "Intimidation"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Skill 'Intimidation' is locked"


def test_skill_unknown(client, game):
    resp = client.post(f"/api/games/{game['id']}/skills", json={"skill_name": "Juggling"})
    assert resp.status_code == 400


def test_narrative_skill(client, llm, game):
    llm._queues["skill_narrative"] = ["You scale the cliff."]
    result = {
        "success": True, "roll": 15, "difficulty": 10, "attribute": "Agility",
        "attribute_value": 2, "skill_name": "Climbing",
        "narrative_result": "You successfully used Climbing!",
    }
    resp = client.post(f"/api/games/{game['id']}/narrative-skill", json={"result": result})
    assert resp.status_code == 200
    assert resp.json()["response"] == "You scale the cliff."
    assert resp.json()["game"]["history"][-1]["sender"] == "system"


# ── rewards ─────────────────────────────────────────────


def test_check_rewards(client, llm, game):
    llm._queues["reward_check"] = ['{"reward": true, "attribute": "Strength", "amount": 1}']
    resp = client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "I push the boulder.", "ai_response": "It rolls away."},
    )
    assert resp.status_code == 200
    assert resp.json()["attribute_reward"]["attribute"] == "Strength"


def test_check_rewards_none(client, llm, game):
    llm._queues["reward_check"] = ['{"reward": false}']
    resp = client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "I wait.", "ai_response": "Time passes."},
    )
    assert resp.json() == {}


def test_check_rewards_disabled(client, llm, game):
    client.patch("/api/settings", json={"rewards": {"enabled": False}})
    resp = client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "I push.", "ai_response": "It moves."},
    )
    assert resp.json() == {}
    assert llm.calls == []


def test_check_rewards_missing_fields(client, game):
    resp = client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "", "ai_response": "x"},
    )
    assert resp.status_code == 400


def test_apply_reward_unlocks_skill(client, game):
    resp = client.post(
        f"/api/games/{game['id']}/reward",
        json={"attribute": "Strength", "amount": 1, "achievement_title": "Boulder Pusher"},
    )
    assert resp.status_code == 200
    data = resp.json()
    sheet = data["game"]["character_data"]
    assert sheet["attributes"]["Strength"] == 1
    assert sheet["skills"]["Intimidation"] is True
    assert sheet["achievements"][0]["title"] == "Boulder Pusher"
    assert "Strength increased by 1 point" in data["reward_message"]


def test_apply_reward_invalid(client, game):
    url = f"/api/games/{game['id']}/reward"
    assert client.post(url, json={"attribute": "Luck", "amount": 1}).status_code == 400
    assert client.post(url, json={"attribute": "Strength", "amount": 3}).status_code == 400
    assert client.post(url, json={"attribute": "Strength", "amount": 0}).status_code == 400


# ── story structure & image ─────────────────────────────


def test_story_structure(client, llm, game):
    llm._queues["story_structure"] = ['{"acts": [], "current_act": null, "goal": "Survive"}']
    resp = client.post(f"/api/games/{game['id']}/story-structure")
    assert resp.status_code == 200
    assert resp.json()["story_structure"]["goal"] == "Survive"


def test_image(client, game):
    resp = client.post(f"/api/games/{game['id']}/image")
    assert resp.status_code == 200
    data = resp.json()
    assert data["image_url"] == "http://img/portrait.png"
    assert "Calling: Scout" in data["prompt"]


def test_image_failure(client, llm, game):
    llm.fail = True
    resp = client.post(f"/api/games/{game['id']}/image")
    assert resp.status_code == 502


# ── dice ────────────────────────────────────────────────


def test_dice_roll(client):
    resp = client.post("/api/dice/roll", json={"count": 3, "sides": 6, "modifier": 2})
    data = resp.json()
    assert len(data["rolls"]) == 3
    assert all(1 <= r <= 6 for r in data["rolls"])
    assert data["total"] == sum(data["rolls"]) + 2


def test_dice_roll_invalid(client):
    assert client.post("/api/dice/roll", json={"count": 0}).status_code == 422


# ── reward throttling through the API ──────────────────


class HighDraw:
    """Every draw lands above the highest possible chance."""

    def random(self) -> float:
        return 1.0


def test_check_rewards_skill_message_throttled(client, llm, game):
    client.app.state.reward_tracker = RewardTracker(rng=HighDraw())
    resp = client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "I use my Climbing skill.", "ai_response": "You climb."},
    )
    assert resp.status_code == 200
    assert resp.json() == {}
    assert llm.calls == []


def test_check_rewards_non_skill_message_ignores_draw(client, llm, game):
    client.app.state.reward_tracker = RewardTracker(rng=HighDraw())
    llm._queues["reward_check"] = ['{"reward": false}']
    client.post(
        f"/api/games/{game['id']}/check-rewards",
        json={"user_message": "I push the boulder.", "ai_response": "It moves."},
    )
    assert [stage for stage, _ in llm.calls] == ["reward_check"]


def test_check_rewards_records_outcome(client, llm, game):
    tracker = client.app.state.reward_tracker
    url = f"/api/games/{game['id']}/check-rewards"
    body = {"user_message": "I push the boulder.", "ai_response": "It moves."}

    llm._queues["reward_check"] = ['{"reward": true, "attribute": "Strength", "amount": 1}']
    client.post(url, json=body)
    granted = tracker.get(game["id"])
    assert granted["consecutive"] == 1
    assert granted["last_rewarded"] > 0

    llm._queues["reward_check"] = ['{"reward": false}']
    client.post(url, json=body)
    refused = tracker.get(game["id"])
    assert refused["consecutive"] == 0
    assert refused["last_rewarded"] == granted["last_rewarded"]


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity"])
def test_apply_reward_non_finite_amount(client, game, amount):
    resp = client.post(
        f"/api/games/{game['id']}/reward",
        content=f'{{"attribute": "Strength", "amount": {amount}}}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert "Invalid reward amount" in resp.json()["detail"]
    saved = client.get(f"/api/games/{game['id']}")
    assert saved.status_code == 200
    assert saved.json()["character_data"]["attributes"]["Strength"] == 0
