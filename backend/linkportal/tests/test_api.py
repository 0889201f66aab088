from datetime import datetime, timezone

import pytest
from jose import jwt

API = "/api"


@pytest.fixture
def seeded(store, regular_user):
    links = {
        title: store.create_link(
            {"title": title, "url": f"https://{title.lower()}.example.com", "category": category}
        )
        for title, category in (("A", "Tools"), ("B", "Tools"), ("C", "Social"))
    }
    return {"user": regular_user, "links": links}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/db").status_code == 200


class TestAuth:
    def test_login_issues_token_with_identity_claims(self, client, regular_user):
        response = client.post(f"{API}/auth/login", json={"username": "alice", "password": "Alice@123"})

        assert response.status_code == 200
        data = response.json()
        claims = jwt.get_unverified_claims(data["access_token"])
        assert claims["sub"] == regular_user.id
        assert claims["username"] == "alice"
        assert claims["role"] == "user"
        assert data["expires_in"] == 24 * 60 * 60

    def test_remember_me_extends_expiry(self, client, regular_user):
        response = client.post(
            f"{API}/auth/login",
            json={"username": "alice", "password": "Alice@123", "remember": True},
        )

        data = response.json()
        assert data["expires_in"] == 30 * 24 * 60 * 60
        claims = jwt.get_unverified_claims(data["access_token"])
        remaining = claims["exp"] - datetime.now(timezone.utc).timestamp()
        assert remaining > 29 * 24 * 60 * 60

    def test_wrong_password_and_unknown_user_are_rejected(self, client, regular_user):
        wrong = client.post(f"{API}/auth/login", json={"username": "alice", "password": "nope"})
        unknown = client.post(f"{API}/auth/login", json={"username": "ghost", "password": "nope"})

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"detail": "Invalid username or password"}

    def test_blank_credentials_are_a_bad_request(self, client):
        response = client.post(f"{API}/auth/login", json={"username": "  ", "password": ""})
        assert response.status_code == 400
        assert response.json() == {"detail": "Username and password are required"}

    def test_me_returns_public_fields(self, client, regular_user, user_headers):
        data = client.get(f"{API}/auth/me", headers=user_headers).json()
        assert data["username"] == "alice"
        assert "password_hash" not in data

    def test_missing_and_invalid_tokens(self, client):
        assert client.get(f"{API}/users").status_code == 401
        response = client.get(f"{API}/users", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_regular_user_is_forbidden_on_admin_routes(self, client, user_headers):
        assert client.get(f"{API}/users", headers=user_headers).status_code == 403
        assert client.get(f"{API}/assignments", headers=user_headers).status_code == 403
        response = client.post(
            f"{API}/links",
            json={"title": "X", "url": "https://x.example.com", "category": "Tools"},
            headers=user_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_token_of_deleted_user_stops_working(self, client, store, regular_user, user_headers):
        store.delete_user(regular_user.id)
        assert client.get(f"{API}/auth/me", headers=user_headers).status_code == 401


class TestLinksApi:
    def test_catalog_is_public_flat_or_grouped(self, client, seeded):
        flat = client.get(f"{API}/links").json()
        grouped = client.get(f"{API}/links", params={"grouped": "true"}).json()

        assert [link["title"] for link in flat] == ["A", "B", "C"]
        assert list(grouped) == ["Tools", "Social"]
        assert [link["title"] for link in grouped["Tools"]] == ["A", "B"]

    def test_suggested_categories(self, client):
        assert "Tools" in client.get(f"{API}/links/categories").json()

    def test_admin_crud(self, client, admin_headers):
        created = client.post(
            f"{API}/links",
            json={"title": "Docs", "url": "https://docs.example.com", "category": "Resources", "description": "d"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        link_id = created.json()["id"]

        updated = client.put(f"{API}/links/{link_id}", json={"category": "Support"}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json()["category"] == "Support"
        assert updated.json()["title"] == "Docs"
        assert updated.json()["description"] == "d"

        deleted = client.delete(f"{API}/links/{link_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert client.delete(f"{API}/links/{link_id}", headers=admin_headers).status_code == 404
        assert client.put(f"{API}/links/{link_id}", json={"title": "x"}, headers=admin_headers).status_code == 404

    def test_blank_required_field_is_a_bad_request(self, client, admin_headers):
        response = client.post(
            f"{API}/links",
            json={"title": "  ", "url": "https://x.example.com", "category": "Tools"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "title is required"

    def test_user_assigned_links(self, client, store, seeded, user_headers):
        user, links = seeded["user"], seeded["links"]
        assert client.get(f"{API}/links/user-assigned", headers=user_headers).json() == {}

        store.assign_link_to_user(user.id, links["A"].id)
        store.assign_link_to_user(user.id, links["C"].id)

        data = client.get(f"{API}/links/user-assigned", headers=user_headers).json()
        assert {category: [link["title"] for link in items] for category, items in data.items()} == {
            "Tools": ["A"],
            "Social": ["C"],
        }

    def test_user_assigned_requires_session(self, client):
        assert client.get(f"{API}/links/user-assigned").status_code == 401

    def test_admin_is_redirected_to_full_catalog(self, client, seeded, admin_headers):
        response = client.get(f"{API}/links/user-assigned", headers=admin_headers, follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == f"{API}/links?grouped=true"

        followed = client.get(f"{API}/links/user-assigned", headers=admin_headers)
        assert list(followed.json()) == ["Tools", "Social"]


class TestUsersApi:
    def test_create_list_and_duplicate(self, client, admin_headers):
        created = client.post(
            f"{API}/users",
            json={"username": "bob", "password": "Bob@123", "role": "owner"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["role"] == "user"
        assert "password_hash" not in created.json()

        duplicate = client.post(
            f"{API}/users",
            json={"username": "bob", "password": "x"},
            headers=admin_headers,
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == "Username already exists"

        usernames = [user["username"] for user in client.get(f"{API}/users", headers=admin_headers).json()]
        assert usernames == ["bob", "admin"]

    def test_delete_user_and_protected_admin(self, client, store, seeded, admin_user, admin_headers):
        user = seeded["user"]
        store.assign_link_to_user(user.id, seeded["links"]["A"].id)

        assert client.delete(f"{API}/users/{user.id}", headers=admin_headers).json() == {
            "message": "User deleted successfully"
        }
        assert store.get_all_assignments() == []
        assert client.delete(f"{API}/users/{user.id}", headers=admin_headers).status_code == 404
        assert client.delete(f"{API}/users/{admin_user.id}", headers=admin_headers).status_code == 403


class TestAssignmentsApi:
    def test_list_is_served_without_trailing_slash(self, client, seeded, admin_headers, user_headers):
        response = client.get(f"{API}/assignments", headers=admin_headers, follow_redirects=False)
        assert response.status_code == 200
        assert response.json() == []

        denied = client.get(f"{API}/assignments", headers=user_headers, follow_redirects=False)
        assert denied.status_code == 403

    def test_assign_list_and_reject_duplicate(self, client, seeded, admin_headers):
        user, link = seeded["user"], seeded["links"]["B"]

        created = client.post(
            f"{API}/assignments",
            json={"userId": user.id, "linkId": link.id},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["user_id"] == user.id

        duplicate = client.post(
            f"{API}/assignments",
            json={"user_id": user.id, "link_id": link.id},
            headers=admin_headers,
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == "Link already assigned to user"

        rows = client.get(f"{API}/assignments", headers=admin_headers).json()
        assert len(rows) == 1
        assert rows[0]["user"]["username"] == "alice"
        assert rows[0]["link"]["title"] == "B"

    def test_missing_ids_and_unknown_references(self, client, seeded, admin_headers):
        missing = client.post(f"{API}/assignments", json={"userId": seeded["user"].id}, headers=admin_headers)
        assert missing.status_code == 400
        assert missing.json()["detail"] == "userId and linkId are required"

        unknown = client.post(
            f"{API}/assignments",
            json={"userId": "missing-user", "linkId": seeded["links"]["A"].id},
            headers=admin_headers,
        )
        assert unknown.status_code == 404

    def test_grouped_and_per_entity_views(self, client, store, seeded, admin_headers):
        alice = seeded["user"]
        bob = store.create_user("bob", "pw")
        link_b = seeded["links"]["B"]
        store.assign_link_to_user(alice.id, link_b.id)
        store.assign_link_to_user(bob.id, link_b.id)
        store.assign_link_to_user(alice.id, seeded["links"]["A"].id)

        by_user = client.get(f"{API}/assignments", params={"group_by": "user"}, headers=admin_headers).json()
        assert sorted(entry["user"]["username"] for entry in by_user) == ["alice", "bob"]
        assert all("links" in entry for entry in by_user)

        by_link = client.get(f"{API}/assignments", params={"group_by": "link"}, headers=admin_headers).json()
        users_of_b = next(entry["users"] for entry in by_link if entry["link"]["id"] == link_b.id)
        assert sorted(user["username"] for user in users_of_b) == ["alice", "bob"]

        link_rows = client.get(f"{API}/assignments/links/{link_b.id}", headers=admin_headers).json()
        assert sorted(row["user"]["username"] for row in link_rows) == ["alice", "bob"]

        user_rows = client.get(f"{API}/assignments/users/{alice.id}", headers=admin_headers).json()
        assert sorted(row["link"]["title"] for row in user_rows) == ["A", "B"]

        assert client.get(f"{API}/assignments/users/missing", headers=admin_headers).status_code == 404

    def test_unassign_by_path_and_by_body_is_idempotent(self, client, store, seeded, admin_headers):
        user, link = seeded["user"], seeded["links"]["A"]
        store.assign_link_to_user(user.id, link.id)

        first = client.delete(f"{API}/assignments/{user.id}/{link.id}", headers=admin_headers)
        second = client.request(
            "DELETE",
            f"{API}/assignments",
            json={"userId": user.id, "linkId": link.id},
            headers=admin_headers,
        )

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json() == {"message": "Link unassigned successfully"}
        assert store.get_user_assignments(user.id) == []


def test_stats(client, store, seeded, admin_headers):
    store.assign_link_to_user(seeded["user"].id, seeded["links"]["A"].id)

    data = client.get(f"{API}/stats", headers=admin_headers).json()

    assert data["total_links"] == 3
    assert data["regular_users"] == 1
    assert data["total_assignments"] == 1
    assert data["avg_assignments_per_user"] == 1.0
    assert data["links_per_category"] == {"Tools": 2, "Social": 1}
