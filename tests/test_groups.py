"""Group API tests."""


def test_create_group(client, admin_headers):
    """Test creating a group."""
    response = client.post(
        "/api/v1/groups",
        headers=admin_headers,
        json={"name": "Editors", "permissions": {"users": True}},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Group created."
    assert data["group"]["name"] == "Editors"
    assert data["group"]["permissions"] == {"users": True}


def test_create_group_duplicate_name(client, admin_headers, admin_group):
    response = client.post("/api/v1/groups", headers=admin_headers, json={"name": admin_group.name})
    assert response.status_code == 409


def test_create_group_unknown_permission(client, admin_headers):
    """Test that only configured permissions can be granted."""
    response = client.post(
        "/api/v1/groups",
        headers=admin_headers,
        json={"name": "Editors", "permissions": {"launch_rockets": True}},
    )
    assert response.status_code == 400
    assert "permissions" in response.json()["errors"]


def test_list_groups(client, admin_headers, make_group):
    make_group("Editors")
    response = client.get("/api/v1/groups", headers=admin_headers)
    assert response.status_code == 200
    assert [g["name"] for g in response.json()] == ["Admins", "Editors"]


def test_get_group(client, admin_headers, admin_group):
    response = client.get(f"/api/v1/groups/{admin_group.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["permissions"]["admin"] is True


def test_get_missing_group(client, admin_headers):
    response = client.get("/api/v1/groups/9999", headers=admin_headers)
    assert response.status_code == 404


def test_update_group(client, admin_headers, make_group):
    group = make_group("Editors")
    response = client.put(
        f"/api/v1/groups/{group.id}",
        headers=admin_headers,
        json={"name": "Writers", "permissions": {"users": True, "admin": False}},
    )
    assert response.status_code == 200
    data = response.json()["group"]
    assert data["name"] == "Writers"
    assert data["permissions"] == {"users": True, "admin": False}


def test_group_permission_grants_admin(
    client, admin_headers, regular_user, make_group, codec, login_as
):
    """Test that adding a user to an admin group grants admin access."""
    headers = login_as(regular_user.email)
    assert client.get("/api/v1/users", headers=headers).status_code == 403

    group = make_group("Operators", {"admin": True})
    response = client.put(
        f"/api/v1/users/{codec.encode(regular_user.id)}/memberships",
        headers=admin_headers,
        json={"group_ids": [group.id]},
    )
    assert response.status_code == 200
    assert client.get("/api/v1/users", headers=headers).status_code == 200


def test_user_permission_overrides_group(client, admin_headers, admin_user, codec):
    """Test that a user-level denial beats a group grant."""
    response = client.put(
        f"/api/v1/users/{codec.encode(admin_user.id)}",
        headers=admin_headers,
        json={"permissions": {"admin": False}},
    )
    assert response.status_code == 200
    assert client.get("/api/v1/users", headers=admin_headers).status_code == 403


def test_delete_group_removes_memberships(client, admin_headers, make_group, make_user, codec):
    """Test that deleting a group drops its memberships."""
    group = make_group("Editors")
    user = make_user("member@example.com", groups=[group])

    response = client.delete(f"/api/v1/groups/{group.id}", headers=admin_headers)
    assert response.status_code == 200

    response = client.get(f"/api/v1/users/{codec.encode(user.id)}", headers=admin_headers)
    assert response.json()["groups"] == []

    response = client.delete(f"/api/v1/groups/{group.id}", headers=admin_headers)
    assert response.status_code == 404


def test_groups_require_admin(client, user_headers):
    assert client.get("/api/v1/groups", headers=user_headers).status_code == 403
    response = client.post("/api/v1/groups", headers=user_headers, json={"name": "Sneaky"})
    assert response.status_code == 403
