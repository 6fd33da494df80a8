import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_ping(client):
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.get_json()["status"] == "OK"


def test_normalize_productions(client):
    response = client.post("/normalize", json={"start": "S", "productions": {"S": "aSb | eps"}})
    data = response.get_json()

    assert data["success"] is True
    assert data["empty"] is False
    assert data["infinite"] is True
    assert data["cnf"]["start"] == "S0"
    assert set(data["cnf"]["rules"]["S0"]) == {"ε", "ZX", "ZY"}
    assert data["trace"][0]["stage"] == "trim"


def test_normalize_text(client):
    data = client.post("/normalize", json={"text": "S -> abcde"}).get_json()
    assert data["success"] is True
    assert data["infinite"] is False
    assert len(data["cnf"]["rules"]) == 9


def test_normalize_empty_language(client):
    data = client.post("/normalize", json={"text": "S -> S\nA -> a"}).get_json()
    assert data["success"] is True
    assert data["empty"] is True
    assert data["infinite"] is None
    assert data["cnf"]["rules"] == {}


def test_normalize_snapshot_modes(client):
    full = client.post("/normalize", json={"text": "S -> aSb | eps", "snapshots": "full"}).get_json()
    none = client.post("/normalize", json={"text": "S -> aSb | eps", "snapshots": "none"}).get_json()

    assert all("snapshot" in event for event in full["trace"])
    assert not any("snapshot" in event for event in none["trace"])


def test_normalize_unknown_snapshot_mode(client):
    data = client.post("/normalize", json={"text": "S -> a", "snapshots": "all"}).get_json()
    assert data["success"] is False
    assert "snapshot mode" in data["message"]


def test_normalize_bad_grammar(client):
    data = client.post("/normalize", json={"start": "S", "productions": {"S": "aB"}}).get_json()
    assert data["success"] is False
    assert data["message"].startswith("Grammar Error:")


def test_normalize_without_body(client):
    data = client.post("/normalize").get_json()
    assert data["success"] is False


def test_generate(client):
    data = client.post("/generate", json={"text": "S -> aSb | eps", "max_length": 4}).get_json()
    assert data["success"] is True
    assert data["generated"] == ["", "ab", "aabb"]
    assert data["generated_cnf"] == data["generated"]


def test_generate_empty_language(client):
    data = client.post("/generate", json={"text": "S -> aS", "max_length": 3}).get_json()
    assert data["success"] is True
    assert data["generated"] == []
    assert data["generated_cnf"] == []


@pytest.mark.parametrize("max_length", [-1, 100, "many"])
def test_generate_rejects_bad_length(client, max_length):
    data = client.post("/generate", json={"text": "S -> a", "max_length": max_length}).get_json()
    assert data["success"] is False
    assert "max_length" in data["message"]


@pytest.mark.parametrize("url", ["/normalize", "/generate"])
def test_non_object_body_is_a_grammar_error(client, url):
    response = client.post(url, json=["S -> a"])
    data = response.get_json()

    assert response.status_code == 200
    assert data["success"] is False
    assert data["message"].startswith("Grammar Error:")


@pytest.mark.parametrize("payload", [
    {"text": 5},
    {"text": ["S -> a"]},
    {"start": 1, "productions": {"S": "a"}},
    {"text": "S -> a", "start": ["S"]},
])
def test_non_string_fields_are_grammar_errors(client, payload):
    response = client.post("/normalize", json=payload)
    data = response.get_json()

    assert response.status_code == 200
    assert data["success"] is False
    assert data["message"].startswith("Grammar Error:")


def test_non_string_snapshot_mode(client):
    data = client.post("/normalize", json={"text": "S -> a", "snapshots": ["full"]}).get_json()
    assert data["success"] is False
