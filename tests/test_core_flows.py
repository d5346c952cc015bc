from navhub.extensions import get_catalog
from navhub.storage import SQLAlchemyStorage
from navhub.services.catalog import CatalogStore


def _token(client, username="admin", password="secret", remember_me=False):
    response = client.post(
        "/api/auth/login",
        json={"username": username, "password": password, "remember_me": remember_me},
    )
    assert response.status_code == 200
    return response.get_json()["token"]


def _auth(client):
    return {"Authorization": f"Bearer {_token(client)}"}


def _seed(client, auth):
    public = client.post(
        "/api/groups", headers=auth, json={"name": "Public", "is_public": True}
    ).get_json()
    private = client.post(
        "/api/groups", headers=auth, json={"name": "Private", "is_public": False}
    ).get_json()
    client.post(
        "/api/sites",
        headers=auth,
        json={
            "group_id": public["id"],
            "name": "Open",
            "url": "https://open.example",
            "is_public": True,
        },
    )
    client.post(
        "/api/sites",
        headers=auth,
        json={
            "group_id": public["id"],
            "name": "Hidden",
            "url": "https://hidden.example",
            "is_public": False,
        },
    )
    client.post(
        "/api/sites",
        headers=auth,
        json={
            "group_id": private["id"],
            "name": "Inner",
            "url": "https://inner.example",
            "is_public": True,
        },
    )
    return public, private


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_login_rejects_bad_credentials(client):
    response = client.post(
        "/api/auth/login", json={"username": "admin", "password": "wrong"}
    )
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_auth_status_reflects_bearer_token(client):
    assert client.get("/api/auth/status").get_json() == {"authenticated": False}

    token = _token(client, remember_me=True)
    response = client.get(
        "/api/auth/status", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.get_json() == {"authenticated": True}

    response = client.get(
        "/api/auth/status", headers={"Authorization": "Bearer forged.token"}
    )
    assert response.get_json() == {"authenticated": False}


def test_writes_require_authentication(client):
    assert client.post("/api/groups", json={"name": "Dev"}).status_code == 401
    assert client.get("/api/export").status_code == 401
    assert client.post("/api/import", json={}).status_code == 401
    assert client.put("/api/configs/title", json={"value": "x"}).status_code == 401


def test_group_crud_flow(client):
    auth = _auth(client)

    response = client.post("/api/groups", headers=auth, json={"name": "Dev"})
    assert response.status_code == 201
    group = response.get_json()
    assert group["id"] == 1
    assert group["is_public"] is True

    response = client.put(
        f"/api/groups/{group['id']}", headers=auth, json={"order_num": 5}
    )
    assert response.status_code == 200
    assert response.get_json()["order_num"] == 5
    assert response.get_json()["name"] == "Dev"

    response = client.post("/api/groups", headers=auth, json={"name": "Dev"})
    assert response.status_code == 409

    response = client.post("/api/groups", headers=auth, json={"name": "  "})
    assert response.status_code == 400

    response = client.put("/api/groups/99", headers=auth, json={"name": "x"})
    assert response.status_code == 404
    assert client.delete(f"/api/groups/{group['id']}", headers=auth).status_code == 200
    assert client.delete(f"/api/groups/{group['id']}", headers=auth).status_code == 404


def test_site_crud_flow(client):
    auth = _auth(client)
    group = client.post("/api/groups", headers=auth, json={"name": "Dev"}).get_json()

    response = client.post(
        "/api/sites",
        headers=auth,
        json={"group_id": 42, "name": "X", "url": "http://x"},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/sites",
        headers=auth,
        json={"group_id": group["id"], "name": "X", "url": "http://x"},
    )
    assert response.status_code == 201
    site = response.get_json()

    response = client.post(
        "/api/sites",
        headers=auth,
        json={"group_id": group["id"], "name": "Dup", "url": "http://x"},
    )
    assert response.status_code == 409

    response = client.patch(
        f"/api/sites/{site['id']}", headers=auth, json={"notes": "remember"}
    )
    assert response.status_code == 200
    assert response.get_json()["notes"] == "remember"
    assert response.get_json()["url"] == "http://x"

    response = client.get(f"/api/sites?groupId={group['id']}", headers=auth)
    assert [row["id"] for row in response.get_json()] == [site["id"]]

    assert client.delete(f"/api/sites/{site['id']}", headers=auth).status_code == 200
    assert client.get(f"/api/sites/{site['id']}", headers=auth).status_code == 404


def test_reorder_skips_missing_ids(client):
    auth = _auth(client)
    first = client.post("/api/groups", headers=auth, json={"name": "A"}).get_json()
    second = client.post("/api/groups", headers=auth, json={"name": "B"}).get_json()

    response = client.put(
        "/api/group-orders",
        headers=auth,
        json=[
            {"id": first["id"], "order_num": 2},
            {"id": 999, "order_num": 0},
            {"id": second["id"], "order_num": 1},
        ],
    )
    assert response.status_code == 200
    assert response.get_json() == {"success": True}

    rows = client.get("/api/groups").get_json()
    orders = {row["name"]: row["order_num"] for row in rows}
    assert orders == {"A": 2, "B": 1}

    response = client.put("/api/site-orders", headers=auth, json={"id": 1})
    assert response.status_code == 400


def test_guest_only_sees_public_entries(client):
    auth = _auth(client)
    public, private = _seed(client, auth)

    groups = client.get("/api/groups").get_json()
    assert [group["name"] for group in groups] == ["Public"]

    sites = client.get("/api/sites").get_json()
    assert [site["name"] for site in sites] == ["Open"]

    nested = client.get("/api/groups-with-sites").get_json()
    assert len(nested) == 1
    assert [site["name"] for site in nested[0]["sites"]] == ["Open"]

    assert client.get(f"/api/groups/{private['id']}").status_code == 404
    assert client.get(f"/api/groups/{private['id']}", headers=auth).status_code == 200

    nested = client.get("/api/groups-with-sites", headers=auth).get_json()
    assert sum(len(group["sites"]) for group in nested) == 3


def test_config_endpoints(client):
    auth = _auth(client)

    assert client.get("/api/configs/title").status_code == 404
    response = client.put("/api/configs/title", headers=auth, json={"value": "My Nav"})
    assert response.get_json() == {"success": True}
    assert client.get("/api/configs").get_json() == {"title": "My Nav"}
    assert client.get("/api/configs/title").get_json()["value"] == "My Nav"
    assert client.delete("/api/configs/title", headers=auth).status_code == 200
    assert client.delete("/api/configs/title", headers=auth).status_code == 404


def test_export_import_round_trip(client):
    auth = _auth(client)
    _seed(client, auth)
    client.put("/api/configs/title", headers=auth, json={"value": "My Nav"})

    exported = client.get("/api/export", headers=auth).get_json()
    assert exported["version"] == "1.0"
    assert len(exported["groups"]) == 2
    assert len(exported["sites"]) == 3

    response = client.post("/api/import", headers=auth, json=exported)
    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "stats": {
            "groups": {"total": 2, "created": 0, "merged": 2},
            "sites": {"total": 3, "created": 0, "updated": 3, "skipped": 0},
        },
    }


def test_import_failure_is_reported(client):
    auth = _auth(client)
    response = client.post("/api/import", headers=auth, json={"groups": 3})
    assert response.status_code == 500
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]


def test_catalog_survives_reload_from_database(app, client):
    auth = _auth(client)
    _seed(client, auth)

    with app.app_context():
        reloaded = CatalogStore(SQLAlchemyStorage()).load()
        assert [group.name for group in reloaded.list_groups()] == ["Public", "Private"]
        assert len(reloaded.list_sites()) == 3
        assert get_catalog() is not reloaded


def test_cli_export_and_import(app, tmp_path):
    runner = app.test_cli_runner()
    path = tmp_path / "snapshot.json"
    path.write_text(
        '{"groups": [{"id": 1, "name": "Dev"}],'
        ' "sites": [{"id": 1, "group_id": 1, "name": "X", "url": "http://x"}],'
        ' "configs": {}, "version": "1.0"}',
        encoding="utf-8",
    )

    result = runner.invoke(args=["import-data", str(path)])
    assert result.exit_code == 0
    assert '"success": true' in result.output

    out = tmp_path / "export.json"
    result = runner.invoke(args=["export-data", str(out)])
    assert result.exit_code == 0
    assert '"name": "Dev"' in out.read_text(encoding="utf-8")


def test_login_with_non_string_credentials_is_rejected(client):
    response = client.post("/api/auth/login", json={"username": 123, "password": []})
    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_sites_filter_by_group_zero_returns_nothing(client):
    auth = _auth(client)
    _seed(client, auth)

    response = client.get("/api/sites?groupId=0", headers=auth)
    assert response.status_code == 200
    assert response.get_json() == []
