import pytest


@pytest.fixture
def friend_headers(make_user):
    return make_user("friend@example.com", "Friendly Neighbour")


@pytest.fixture
def conversation_id(client, user_headers, friend_headers):
    res = client.post("/conversations", json={"participant_email": "friend@example.com"}, headers=user_headers)
    assert res.status_code == 201, res.text
    return res.json()["id"]


def test_start_conversation(client, user_headers, conversation_id):
    convo = client.get("/conversations", headers=user_headers).json()
    assert len(convo) == 1
    assert convo[0]["name"] == "Friendly Neighbour"
    assert convo[0]["lastMessage"] == ""
    assert convo[0]["unread"] == 0


def test_start_conversation_reuses_existing(client, friend_headers, conversation_id):
    res = client.post("/conversations", json={"participant_email": "citizen@example.com"}, headers=friend_headers)
    assert res.json()["id"] == conversation_id
    assert res.json()["name"] == "Asha Citizen"


def test_start_conversation_errors(client, user_headers):
    res = client.post("/conversations", json={"participant_email": "citizen@example.com"}, headers=user_headers)
    assert res.status_code == 400
    res = client.post("/conversations", json={"participant_email": "ghost@example.com"}, headers=user_headers)
    assert res.status_code == 404


def test_messages_and_read_state(client, user_headers, friend_headers, conversation_id):
    url = f"/conversations/{conversation_id}/messages"
    assert client.post(url, json={"text": "   "}, headers=user_headers).status_code == 400

    res = client.post(url, json={"text": "Cleanup drive on Sunday?"}, headers=user_headers)
    assert res.status_code == 201
    assert res.json()["isMe"] is True

    inbox = client.get("/conversations", headers=friend_headers).json()
    assert inbox[0]["lastMessage"] == "Cleanup drive on Sunday?"
    assert inbox[0]["unread"] == 1

    messages = client.get(url, headers=friend_headers).json()
    assert [m["isMe"] for m in messages] == [False]
    assert client.get("/conversations", headers=friend_headers).json()[0]["unread"] == 0


def test_outsider_cannot_read_conversation(client, make_user, conversation_id):
    outsider = make_user("outsider@example.com")
    res = client.get(f"/conversations/{conversation_id}/messages", headers=outsider)
    assert res.status_code == 404
    res = client.post(f"/conversations/{conversation_id}/messages", json={"text": "hi"}, headers=outsider)
    assert res.status_code == 404


def test_mark_notification_read(client, db, user_headers, friend_headers):
    db["notification"].insert_one({"recipient": "citizen@example.com", "type": "system", "text": "Welcome", "read": False})
    note = client.get("/notifications", headers=user_headers).json()[0]

    assert client.post(f"/notifications/{note['id']}/read", headers=friend_headers).status_code == 404
    assert client.post(f"/notifications/{note['id']}/read", headers=user_headers).json()["read"] is True
    assert client.get("/notifications", headers=user_headers).json()[0]["read"] is True
