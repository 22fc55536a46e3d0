"""
Integration tests for practice endpoints, including fallbacks
"""
from phrasecoach.services.practice_service import EVALUATION_ERROR_FEEDBACK, YOUR_TURN_PROMPT


def test_search_query_fallback_keeps_success_envelope(client):
    response = client.post("/chat/practice/search-query", json={"userInput": "I wish it were Friday"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"userInput": "I wish it were Friday", "searchQuery": "I wish it were Friday"},
        "error": None,
    }


def test_search_query_generated(client, fake_client):
    fake_client.script(search_query="I wish")

    response = client.post("/chat/practice/search-query", json={"userInput": "I wish it were Friday"})

    assert response.json()["data"]["searchQuery"] == "I wish"


def test_search_query_blank_input(client):
    response = client.post("/chat/practice/search-query", json={"userInput": "  "})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_dialogue_endpoint(client, fake_client):
    fake_client.script(dialogue="A: Ready?\nB: Almost.\n\n👉 Your turn to speak:")

    data = client.post("/chat/practice/dialogue", json={"targetSentence": "Give me a minute"}).json()["data"]

    assert data["dialoguePairs"] == [
        {"speaker": "A", "content": "Ready?"},
        {"speaker": "B", "content": "Almost."},
    ]
    assert data["finalPrompt"] == YOUR_TURN_PROMPT


def test_evaluate_updates_expression_counters(client, fake_client):
    fake_client.script(grading="Correct!")
    expression = client.post("/expressions", json={"text": "I wish"}).json()["data"]

    response = client.post("/chat/practice/evaluate", json={
        "userResponse": "I wish I could sing",
        "targetSentence": "I wish",
        "expressionId": expression["id"],
    })

    assert response.json()["data"] == {
        "isCorrect": True,
        "feedback": "Correct!",
        "targetSentence": "I wish",
    }
    counted = client.get(f"/expressions/{expression['id']}").json()["data"]
    assert (counted["correctCount"], counted["totalCount"]) == (1, 1)
    assert client.get("/stats").json()["data"]["currentStreak"] == 1


def test_evaluate_failure_counts_incorrect_attempt(client):
    expression = client.post("/expressions", json={"text": "It turns out"}).json()["data"]

    response = client.post("/chat/practice/evaluate", json={
        "userResponse": "It turns out fine",
        "targetSentence": "It turns out",
        "expressionId": expression["id"],
    })

    data = response.json()["data"]
    assert data["isCorrect"] is False
    assert data["feedback"] == EVALUATION_ERROR_FEEDBACK
    counted = client.get(f"/expressions/{expression['id']}").json()["data"]
    assert (counted["correctCount"], counted["totalCount"]) == (0, 1)


def test_evaluate_unknown_expression(client, fake_client):
    fake_client.script(grading="Correct!")

    response = client.post("/chat/practice/evaluate", json={
        "userResponse": "hello",
        "targetSentence": "hello",
        "expressionId": 999,
    })

    assert response.status_code == 404
    assert fake_client.calls == []


def test_practice_round_endpoint(client):
    data = client.post("/chat/practice/round", json={"userInput": "I should have called"}).json()["data"]

    assert data["searchQuery"] == "I should have called"
    assert data["targetSentence"] == "I should have called"
    assert data["dialogueScript"].endswith(YOUR_TURN_PROMPT)


def test_preview_uses_stored_expressions(client, fake_client):
    fake_client.script(search_query="thank you")
    client.post("/expressions", json={"text": "thank you so much"})
    client.post("/expressions", json={"text": "see you later"})

    previews = client.post("/chat/practice/preview", json={}).json()["data"]

    assert [p["expression"]["text"] for p in previews] == ["see you later", "thank you so much"]
    assert all(p["searchQuery"] == "thank you" for p in previews)
    assert previews[0]["topResults"][0]["text"] == "thank you so much"


def test_search_with_supplied_expressions(client, fake_client):
    fake_client.script(search_query="order")

    response = client.post("/chat/practice/search", json={
        "userInput": "I would like to order",
        "expressions": [{"text": "order"}, {"text": "pay the bill"}, {"text": "order a coffee"}],
        "topK": 2,
    })

    data = response.json()["data"]
    assert data["searchQuery"] == "order"
    assert [r["text"] for r in data["results"]] == ["order", "order a coffee"]
    assert data["results"][0]["score"] == 0.99


def test_search_rejects_invalid_top_k(client, fake_client):
    fake_client.script(search_query="hello")

    response = client.post("/chat/practice/search", json={
        "userInput": "hello",
        "expressions": [{"text": "hello"}],
        "topK": 0,
    })

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ARGUMENT"
    assert fake_client.calls == []
