"""HTTP tests for the profile and coach routers."""

import json

from src.providers import ChatCreditsError, ChatRateLimitError, ChatServiceError, ChatUnavailableError
from src.services.coach import CoachSession, get_session

from conftest import sse_frame, sse_reply, update_block

BIO_UPDATE = {"field": "bio", "action": "replace", "data": "Loves bikes."}


def _sse_events(body: str) -> list[tuple[str, str]]:
    """(event name, data) pairs; unnamed frames come back as 'message'."""
    events = []
    for block in body.strip().split("\n\n"):
        name, data = "message", ""
        for line in block.split("\n"):
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data = line[len("data: "):]
        events.append((name, data))
    return events


def _start_session(client, profile_id):
    r = client.post("/coach/sessions", json={"profileId": profile_id})
    assert r.status_code == 201
    return r.json()


def _send(client, session_id, content="hi", **extra):
    return client.post(f"/coach/sessions/{session_id}/messages", json={"content": content, **extra})


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


class TestProfiles:
    def test_create_get_patch_delete(self, client):
        r = client.post("/profiles", json={"displayName": "Sam", "bio": "Hi"})
        assert r.status_code == 201
        created = r.json()
        assert created["displayName"] == "Sam"
        assert created["promptAnswers"] == []

        assert client.get(f"/profiles/{created['id']}").json()["bio"] == "Hi"

        r = client.patch(f"/profiles/{created['id']}", json={"bio": "Updated"})
        assert r.status_code == 200
        assert r.json()["bio"] == "Updated"
        assert r.json()["displayName"] == "Sam"

        assert client.delete(f"/profiles/{created['id']}").status_code == 204
        assert client.get(f"/profiles/{created['id']}").status_code == 404

    def test_create_empty(self, client):
        r = client.post("/profiles")
        assert r.status_code == 201
        assert r.json()["bio"] == ""

    def test_patch_unknown(self, client):
        assert client.patch("/profiles/missing", json={"bio": "x"}).status_code == 404

    def test_sort_order_follows_position(self, client):
        created = client.post(
            "/profiles",
            json={"funFacts": [{"id": "a", "label": "L", "value": "V", "sortOrder": 5}]},
        ).json()
        assert [f["sortOrder"] for f in created["funFacts"]] == [0]

        prompts = [
            {"id": "x", "promptId": "p1", "promptText": "Q1", "answerText": "A1", "sortOrder": 7},
            {"id": "y", "promptId": "p2", "promptText": "Q2", "answerText": "A2", "sortOrder": 7},
        ]
        r = client.patch(f"/profiles/{created['id']}", json={"promptAnswers": prompts})
        assert r.status_code == 200
        assert [p["sortOrder"] for p in r.json()["promptAnswers"]] == [0, 1]
        assert [p["id"] for p in r.json()["promptAnswers"]] == ["x", "y"]
        stored = client.get(f"/profiles/{created['id']}").json()
        assert [p["sortOrder"] for p in stored["promptAnswers"]] == [0, 1]


class TestCoachSessions:
    def test_start_session_has_welcome_turn(self, client, profile):
        data = _start_session(client, profile.id)
        assert data["profileId"] == profile.id
        assert len(data["turns"]) == 1
        assert data["turns"][0]["role"] == "assistant"
        assert data["preview"] is None

    def test_start_session_unknown_profile(self, client):
        r = client.post("/coach/sessions", json={"profileId": "missing"})
        assert r.status_code == 404

    def test_unknown_session(self, client):
        assert client.get("/coach/sessions/nope").status_code == 404
        assert _send(client, "nope").status_code == 404

    def test_delete_session(self, client, profile):
        session = _start_session(client, profile.id)
        assert client.delete(f"/coach/sessions/{session['id']}").status_code == 204
        assert client.get(f"/coach/sessions/{session['id']}").status_code == 404


class TestCoachMessages:
    def test_stream_then_apply(self, client, fake_provider, profile):
        fake_provider.chunks = sse_reply("Here's a tweak ", update_block(BIO_UPDATE))
        session = _start_session(client, profile.id)

        r = _send(client, session["id"], "Make my bio sporty")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/event-stream")
        events = _sse_events(r.text)
        assert events[-1] == ("message", "[DONE]")
        name, data = events[-2]
        assert name == "turn"
        turn = json.loads(data)
        assert turn["text"] == "Here's a tweak"
        assert turn["updateState"] == "valid_pending_decision"
        assert turn["pendingUpdate"] == BIO_UPDATE

        streamed = "".join(
            json.loads(d)["choices"][0]["delta"]["content"] for n, d in events[:-2] if n == "message"
        )
        assert streamed.startswith("Here's a tweak ")

        r = client.get(f"/coach/sessions/{session['id']}/preview")
        assert r.json()["turnId"] == turn["id"]
        assert r.json()["preview"]["bio"] == "Loves bikes."
        assert client.get(f"/profiles/{profile.id}").json()["bio"] == ""

        r = client.post(f"/coach/sessions/{session['id']}/turns/{turn['id']}/apply")
        assert r.status_code == 200
        assert r.json()["bio"] == "Loves bikes."
        assert client.get(f"/profiles/{profile.id}").json()["bio"] == "Loves bikes."

        r = client.post(f"/coach/sessions/{session['id']}/turns/{turn['id']}/apply")
        assert r.status_code == 409

    def test_decline_keeps_profile(self, client, fake_provider, profile):
        fake_provider.chunks = sse_reply("Tweak " + update_block(BIO_UPDATE))
        session = _start_session(client, profile.id)
        before = client.get(f"/profiles/{profile.id}").json()

        turn = _send(client, session["id"], stream=False).json()
        r = client.post(f"/coach/sessions/{session['id']}/turns/{turn['id']}/decline")
        assert r.status_code == 200
        assert r.json()["updateState"] == "declined"
        assert r.json()["pendingUpdate"] is None
        assert client.get(f"/profiles/{profile.id}").json() == before
        assert client.get(f"/coach/sessions/{session['id']}/preview").json() == {"turnId": None, "preview": None}

    def test_formatting_issue_reported(self, client, fake_provider, profile):
        bad = {"field": "promptAnswers", "action": "replace", "data": {"not": "an array or known shape"}}
        fake_provider.chunks = sse_reply("Try this " + update_block(bad))
        session = _start_session(client, profile.id)

        turn = _send(client, session["id"], stream=False).json()
        assert turn["updateValidity"] is False
        assert turn["updateIssue"]["code"] == "invalid_shape"
        assert turn["updateIssue"]["title"] == "Formatting Issue"
        r = client.post(f"/coach/sessions/{session['id']}/turns/{turn['id']}/apply")
        assert r.status_code == 409

    def test_transport_error_event(self, client, fake_provider, profile):
        fake_provider.chunks = [sse_frame("partial")]
        fake_provider.error = ChatUnavailableError("backend down")
        fake_provider.fail_after = 1
        session = _start_session(client, profile.id)

        events = _sse_events(_send(client, session["id"]).text)
        names = [n for n, _ in events]
        assert "error" in names
        payload = json.loads(dict(events)["error"])
        assert payload["message"] == "backend down"
        assert payload["turn"]["isError"] is True
        assert events[-1] == ("message", "[DONE]")

    def test_unknown_turn(self, client, profile):
        session = _start_session(client, profile.id)
        r = client.post(f"/coach/sessions/{session['id']}/turns/assistant-missing/apply")
        assert r.status_code == 404

    def test_busy_session_conflict(self, client, profile, monkeypatch):
        session = _start_session(client, profile.id)
        # Another reply still streaming
        monkeypatch.setattr(CoachSession, "is_busy", property(lambda self: True))
        assert _send(client, session["id"]).status_code == 409
        assert len(get_session(session["id"]).turns) == 1

    def test_empty_message_rejected(self, client, profile):
        session = _start_session(client, profile.id)
        assert _send(client, session["id"], content="").status_code == 422


class TestCoachChatProxy:
    BODY = {"messages": [{"role": "user", "content": "hi"}], "systemPrompt": "Be a coach"}

    def test_relays_backend_stream(self, client, fake_provider):
        fake_provider.chunks = sse_reply("Hello")
        r = client.post("/coach/chat", json=self.BODY)
        assert r.status_code == 200
        assert r.text == "".join(sse_reply("Hello"))
        assert fake_provider.calls[0]["system_prompt"] == "Be a coach"

    def test_filters_invalid_messages(self, client, fake_provider):
        fake_provider.chunks = sse_reply("ok")
        body = {
            "messages": [{"role": "system", "content": "x"}, "junk", {"role": "user", "content": "hi"}],
            "systemPrompt": "p",
        }
        assert client.post("/coach/chat", json=body).status_code == 200
        assert fake_provider.calls[0]["messages"] == [{"role": "user", "content": "hi"}]

    def test_validation_errors(self, client):
        assert client.post("/coach/chat", content=b"not json").status_code == 400
        assert client.post("/coach/chat", json={"messages": [], "systemPrompt": "p"}).status_code == 400
        assert client.post("/coach/chat", json={"messages": [{"role": "user", "content": "x"}]}).status_code == 400
        r = client.post("/coach/chat", json={"messages": [{"role": "tool", "content": "x"}], "systemPrompt": "p"})
        assert r.status_code == 400
        assert r.json()["detail"] == "No valid messages found"

    def test_backend_errors_mapped(self, client, fake_provider):
        for error, code in [
            (ChatRateLimitError("slow"), 429),
            (ChatCreditsError("broke"), 402),
            (ChatUnavailableError("down"), 503),
            (ChatServiceError("boom"), 500),
        ]:
            fake_provider.error = error
            assert client.post("/coach/chat", json=self.BODY).status_code == code

    def test_not_configured(self, client):
        from src.dependencies import get_optional_chat_provider
        from src.main import app

        app.dependency_overrides[get_optional_chat_provider] = lambda: None
        r = client.post("/coach/chat", json=self.BODY)
        assert r.status_code == 500
        assert r.json()["detail"] == "Server configuration error"
