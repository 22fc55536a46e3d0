"""
Integration tests for expression and category endpoints
"""


def create_expression(client, text, category_id=None):
    response = client.post("/expressions", json={"text": text, "categoryId": category_id})
    assert response.status_code == 201
    return response.json()["data"]


def test_create_and_list_expressions(client):
    created = create_expression(client, "I wish I had more time")

    response = client.get("/expressions")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"][0]["id"] == created["id"]
    assert body["data"][0]["correctCount"] == 0
    assert body["data"][0]["totalCount"] == 0


def test_list_expressions_by_category(client):
    category = client.post("/categories", json={"name": "Work"}).json()["data"]
    in_category = create_expression(client, "Let's circle back", category["id"])
    create_expression(client, "See you later")

    response = client.get("/expressions", params={"categoryId": category["id"]})

    assert [e["id"] for e in response.json()["data"]] == [in_category["id"]]


def test_missing_expression_returns_error_envelope(client):
    response = client.get("/expressions/12345", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == "NOT_FOUND"
    assert "12345" in body["error"]
    assert body["requestId"] == "req-1"
    assert response.headers["X-Request-ID"] == "req-1"


def test_create_expression_validation_error(client):
    response = client.post("/expressions", json={"text": ""})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == "VALIDATION_ERROR"
    assert body["details"]["validation_errors"]


def test_blank_expression_text_is_invalid_argument(client):
    response = client.post("/expressions", json={"text": "   "})

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ARGUMENT"


def test_update_and_delete_expression(client):
    created = create_expression(client, "It turns out")

    updated = client.put(f"/expressions/{created['id']}", json={"text": "It turned out"})
    assert updated.json()["data"]["text"] == "It turned out"

    deleted = client.delete(f"/expressions/{created['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    assert client.get(f"/expressions/{created['id']}").status_code == 404


def test_record_attempt_and_statistics(client):
    created = create_expression(client, "I should have")

    client.patch(f"/expressions/{created['id']}/stats", json={"isCorrect": True})
    response = client.patch(f"/expressions/{created['id']}/stats", json={"isCorrect": False})

    data = response.json()["data"]
    assert data["correctCount"] == 1
    assert data["totalCount"] == 2
    assert data["lastUsed"] is not None

    stats = client.get("/expressions/stats").json()["data"]
    assert stats["totalExpressions"] == 1
    assert stats["totalUsage"] == 2
    assert stats["overallAccuracy"] == 50.0
    assert stats["mostUsed"][0]["id"] == created["id"]

    user_stats = client.get("/stats").json()["data"]
    assert user_stats["currentStreak"] == 1


def test_category_crud(client):
    created = client.post("/categories", json={"name": "Travel"})
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["icon"] == "📝"
    assert category["color"] == "from-blue-500 to-purple-500"

    updated = client.put(f"/categories/{category['id']}", json={"icon": "✈️"}).json()["data"]
    assert updated["icon"] == "✈️"
    assert updated["name"] == "Travel"

    names = [c["name"] for c in client.get("/categories").json()["data"]]
    assert names == ["Travel"]


def test_update_category_blank_name_is_invalid_argument(client):
    category = client.post("/categories", json={"name": "Travel"}).json()["data"]

    response = client.put(f"/categories/{category['id']}", json={"name": "   "})

    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ARGUMENT"
    assert client.get("/categories").json()["data"][0]["name"] == "Travel"


def test_delete_category_reassigns_expressions(client):
    category = client.post("/categories", json={"name": "Food"}).json()["data"]
    expression = create_expression(client, "Check, please", category["id"])

    response = client.delete(f"/categories/{category['id']}")

    assert response.status_code == 200
    assert response.json()["data"] == {"deleted": category["id"], "reassignedExpressions": 1}
    kept = client.get(f"/expressions/{expression['id']}").json()["data"]
    assert kept["categoryId"] is None
