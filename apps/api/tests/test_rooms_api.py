"""End-to-end tests for the HTTP surface and the signaling websocket."""
from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from signalbroker.core.config import settings
from signalbroker.main import app
from signalbroker.services.short_links import LinkKind, short_links
from signalbroker.services.signaling import registry
from signalbroker.services.tokens import issuer


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient) -> None:
    response = client.post("/api/auth/login", json={"password": settings.operator_password})
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_room_requires_login(client):
    response = client.post("/api/rooms", json={})

    assert response.status_code == 401


def test_wrong_password_is_rejected(client):
    response = client.post("/api/auth/login", json={"password": "not-the-password"})

    assert response.status_code == 401
    assert settings.session_cookie_name not in response.cookies


def test_create_room_and_resolve_short_link(client):
    login(client)

    response = client.post("/api/rooms", json={"kind": "audio"})
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"roomId", "token", "link", "expiresIn"}
    assert body["expiresIn"] == settings.token_ttl_seconds
    assert body["link"].startswith(f"{settings.public_base_url.rstrip('/')}/s/")
    assert issuer.verify(body["token"], body["roomId"])["rid"] == body["roomId"]

    code = body["link"].rsplit("/", 1)[1]
    for _ in range(2):
        redirect = client.get(f"/s/{code}", follow_redirects=False)
        assert redirect.status_code == 307
        location = urlsplit(redirect.headers["location"])
        query = parse_qs(location.query)
        assert location.path == settings.client_page_url
        assert query["roomId"] == [body["roomId"]]
        assert query["token"] == [body["token"]]
        assert query["kind"] == ["audio"]


def test_create_room_without_body_defaults_to_video(client):
    login(client)

    body = client.post("/api/rooms").json()
    code = body["link"].rsplit("/", 1)[1]

    assert short_links.resolve(code).kind is LinkKind.VIDEO


def test_unknown_or_expired_short_link_is_404(client):
    assert client.get("/s/unknown1", follow_redirects=False).status_code == 404

    expired = short_links.create(LinkKind.VIDEO, "room-x", "tok", ttl=0)
    assert client.get(f"/s/{expired.code}", follow_redirects=False).status_code == 404


def test_logout_clears_cookie(client):
    login(client)

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert settings.session_cookie_name in response.headers.get("set-cookie", "")


def test_ice_servers_need_no_login(client):
    response = client.get("/api/rtc/ice-servers")

    assert response.status_code == 200
    servers = response.json()["iceServers"]
    assert servers
    for server in servers:
        assert server["urls"]
        assert None not in server.values()


def _join(room_id: str) -> dict:
    return {"type": "join", "roomId": room_id, "token": issuer.issue(room_id).token}


def test_signaling_pairs_relays_and_tears_down(client):
    room_id = "ws-room-1"

    with client.websocket_connect("/api/rtc/signaling") as ws_a:
        ws_a.send_json(_join(room_id))
        assert ws_a.receive_json() == {"type": "joined", "roomId": room_id, "role": "host", "peersCount": 1}

        with client.websocket_connect("/api/rtc/signaling") as ws_b:
            ws_b.send_json(_join(room_id))
            assert ws_b.receive_json() == {"type": "joined", "roomId": room_id, "role": "guest", "peersCount": 2}
            assert ws_b.receive_json() == {"type": "ready", "roomId": room_id}

            assert ws_a.receive_json() == {"type": "peer-joined", "roomId": room_id}
            assert ws_a.receive_json() == {"type": "ready", "roomId": room_id}

            ws_a.send_json({"type": "offer", "data": {"type": "offer", "sdp": "X"}})
            assert ws_b.receive_json() == {"type": "offer", "data": {"type": "offer", "sdp": "X"}}

            ws_b.send_json({"type": "answer", "data": {"type": "answer", "sdp": "Y"}})
            assert ws_a.receive_json() == {"type": "answer", "data": {"type": "answer", "sdp": "Y"}}

        assert ws_a.receive_json() == {"type": "leave"}

        ws_a.send_json({"type": "bogus"})
        assert ws_a.receive_json() == {"type": "error", "message": "Unknown type: bogus"}
        assert registry.peer_count(room_id) == 1

        ws_a.send_json({"type": "leave"})

    with client.websocket_connect("/api/rtc/signaling") as ws_c:
        ws_c.send_json(_join(room_id))
        assert ws_c.receive_json() == {"type": "joined", "roomId": room_id, "role": "host", "peersCount": 1}


def test_signaling_rejects_token_for_other_room(client):
    with client.websocket_connect("/api/rtc/signaling") as ws:
        ws.send_text("this is not json")
        ws.send_json({"type": "join", "roomId": "ws-r2", "token": issuer.issue("ws-r3").token})

        assert ws.receive_json() == {"type": "error", "message": "unauthorized"}
        assert not registry.has_room("ws-r2")


def test_signaling_full_room(client):
    room_id = "ws-room-full"

    with client.websocket_connect("/api/rtc/signaling") as ws_a, client.websocket_connect(
        "/api/rtc/signaling"
    ) as ws_b, client.websocket_connect("/api/rtc/signaling") as ws_c:
        ws_a.send_json(_join(room_id))
        assert ws_a.receive_json()["role"] == "host"
        ws_b.send_json(_join(room_id))
        assert ws_b.receive_json()["role"] == "guest"

        ws_c.send_json(_join(room_id))
        assert ws_c.receive_json() == {"type": "full", "roomId": room_id}
        assert registry.peer_count(room_id) == 2
