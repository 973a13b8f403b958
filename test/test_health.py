def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert "running" in body["message"]


def test_unknown_route(client):
    r = client.get("/nope")
    assert r.status_code == 404
