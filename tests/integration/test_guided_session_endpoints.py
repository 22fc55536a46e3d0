"""
Integration tests for guided practice sessions
"""
import json

from phrasecoach.services.practice_service import FALLBACK_OPENING

SCENARIO = json.dumps({
    "scenario": "You are checking in at a hotel.",
    "initialMessage": "Good evening! Do you have a reservation?",
})


def create_expression(client, text):
    return client.post("/expressions", json={"text": text}).json()["data"]


def test_start_session(client, fake_client):
    fake_client.script(scenario=SCENARIO)
    expression = create_expression(client, "I have a reservation")

    response = client.post("/chat/start-session", json={"expressionIds": [expression["id"]]})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["scenario"] == "You are checking in at a hotel."
    assert data["initialMessage"] == "Good evening! Do you have a reservation?"
    assert data["progress"]["completed"] == 0
    assert data["progress"]["total"] == 1
    assert data["progress"]["currentExpression"]["text"] == "I have a reservation"

    active = client.get("/chat/sessions/active").json()["data"]
    assert active["id"] == data["sessionId"]
    assert active["mode"] == "guided"
    messages = client.get(f"/chat/sessions/{data['sessionId']}/messages").json()["data"]
    assert [(m["id"], m["content"]) for m in messages] == [(data["messageId"], data["initialMessage"])]


def test_start_session_without_text_generation(client):
    expression = create_expression(client, "Could I get the bill")

    data = client.post("/chat/start-session", json={"expressionIds": [expression["id"]]}).json()["data"]

    assert data["scenario"] == 'Practice using: "Could I get the bill"'
    assert data["initialMessage"] == FALLBACK_OPENING


def test_start_session_unknown_expressions(client, fake_client):
    response = client.post("/chat/start-session", json={"expressionIds": [404]})

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ARGUMENT"
    assert fake_client.calls == []


def test_start_session_requires_expressions(client):
    response = client.post("/chat/start-session", json={"expressionIds": []})

    assert response.status_code == 422


def test_guided_session_to_completion(client, fake_client):
    fake_client.script(scenario=SCENARIO, conversation="Great, let me find your booking.")
    first = create_expression(client, "I have a reservation")
    second = create_expression(client, "Is breakfast included")
    session_id = client.post("/chat/start-session", json={
        "expressionIds": [first["id"], second["id"]],
    }).json()["data"]["sessionId"]

    turn = client.post("/chat/guided/respond", json={
        "sessionId": session_id,
        "message": "Hi, I have a reservation under Kim.",
    }).json()["data"]
    assert turn["response"] == "Great, let me find your booking."
    assert turn["isCorrect"] is True
    assert turn["usedExpression"] == first["id"]
    assert turn["sessionComplete"] is False
    assert turn["nextExpression"]["id"] == second["id"]
    assert turn["nextMessage"] == "Good evening! Do you have a reservation?"

    progress = client.get(f"/chat/sessions/{session_id}/progress").json()["data"]
    assert progress["progress"]["completed"] == 1
    assert progress["progress"]["currentExpression"]["id"] == second["id"]
    assert progress["summary"] is None

    last = client.post("/chat/guided/respond", json={
        "sessionId": session_id,
        "message": "What time is checkout?",
    }).json()["data"]
    assert last["isCorrect"] is False
    assert last["sessionComplete"] is True
    assert last["summary"]["completedExpressions"] == 2
    assert last["summary"]["correctUsages"] == 1
    assert last["summary"]["totalAttempts"] == 2
    assert last["summary"]["accuracy"] == 50.0

    assert client.get("/chat/sessions/active").json()["data"] is None
    counted = client.get(f"/expressions/{second['id']}").json()["data"]
    assert (counted["correctCount"], counted["totalCount"]) == (0, 1)

    finished = client.post("/chat/guided/respond", json={"sessionId": session_id, "message": "Thanks!"})
    assert finished.status_code == 400


def test_guided_respond_unknown_session(client):
    response = client.post("/chat/guided/respond", json={"sessionId": 42, "message": "hi"})

    assert response.status_code == 404
    assert response.json()["errorCode"] == "NOT_FOUND"


def test_progress_of_free_chat_session_is_rejected(client):
    session = client.post("/chat/sessions", json={"scenario": "Small talk"}).json()["data"]

    response = client.get(f"/chat/sessions/{session['id']}/progress")

    assert response.status_code == 400
