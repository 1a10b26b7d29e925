def test_health(client):
    assert client.get("/v1/health").json() == {"status": "ok"}


def test_requires_bearer_token(client):
    assert client.get("/v1/boards").status_code == 422
    assert client.get("/v1/boards", headers={"Authorization": "Token x"}).status_code == 401
