"""HTTP tests for the /users endpoints."""

import pytest

PREFIX = "/v1"


def _create(client, headers, **body):
    response = client.post(f"{PREFIX}/users", json=body, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]["user"]


class TestApiKey:
    def test_missing_key(self, app_client):
        response = app_client.get(f"{PREFIX}/users")

        assert response.status_code == 401
        assert response.json()["error_code"] == "401"

    def test_wrong_key(self, app_client, api_headers):
        header = next(iter(api_headers))
        response = app_client.get(f"{PREFIX}/users", headers={header: "not-the-key"})

        assert response.status_code == 403
        assert response.json()["error_name"] == "FORBIDDEN"


class TestCreateUser:
    def test_success_envelope(self, app_client, api_headers):
        response = app_client.post(
            f"{PREFIX}/users",
            json={"phone": "13800138000", "nickname": "neo", "gender": 1},
            headers=api_headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["code"] == 200
        assert body["data"]["user"]["phone"] == "13800138000"
        assert body["data"]["user"]["gender"] == 1
        assert "password" not in body["data"]["user"]
        assert "X-Request-ID" in response.headers

    def test_schema_violation(self, app_client, api_headers):
        response = app_client.post(
            f"{PREFIX}/users", json={"phone": "12345"}, headers=api_headers
        )

        body = response.json()
        assert response.status_code == 400
        assert body["error_code"] == "40000"
        assert body["error_detail"][0]["field"] == "phone"

    def test_unknown_property_rejected(self, app_client, api_headers):
        response = app_client.post(
            f"{PREFIX}/users", json={"phone": "13800138000", "role": "admin"}, headers=api_headers
        )
        assert response.json()["error_code"] == "40000"

    def test_missing_account(self, app_client, api_headers):
        response = app_client.post(f"{PREFIX}/users", json={"nickname": "x"}, headers=api_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "40011"

    def test_email_requires_password(self, app_client, api_headers):
        response = app_client.post(
            f"{PREFIX}/users", json={"email": "neo@matrix.io"}, headers=api_headers
        )
        assert response.json()["error_code"] == "40012"

    def test_duplicate_phone(self, app_client, api_headers):
        _create(app_client, api_headers, phone="13800138000")

        response = app_client.post(
            f"{PREFIX}/users", json={"phone": "13800138000"}, headers=api_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "40015"


class TestQueryUsers:
    def test_pagination(self, app_client, api_headers):
        for n in range(5):
            _create(app_client, api_headers, phone=f"1380013800{n}")

        response = app_client.get(
            f"{PREFIX}/users", params={"pageIndex": 2, "pageSize": 2}, headers=api_headers
        )

        data = response.json()["data"]
        assert len(data["users"]) == 2
        assert data["pagination"] == {
            "pageIndex": 2,
            "pageSize": 2,
            "totalPageCount": 3,
            "totalItemCount": 5,
        }

    def test_ids_and_fields(self, app_client, api_headers):
        a = _create(app_client, api_headers, phone="13800138001")
        b = _create(app_client, api_headers, phone="13800138002")
        _create(app_client, api_headers, phone="13800138003")

        response = app_client.get(
            f"{PREFIX}/users",
            params={"id": f"{a['id']},{b['id']}", "fields": "phone"},
            headers=api_headers,
        )

        users = response.json()["data"]["users"]
        assert sorted(users, key=lambda u: u["phone"]) == [
            {"phone": "13800138001"},
            {"phone": "13800138002"},
        ]
        assert "pagination" not in response.json()["data"]

    def test_invalid_id(self, app_client, api_headers):
        response = app_client.get(f"{PREFIX}/users", params={"id": "nope"}, headers=api_headers)
        assert response.json()["error_code"] == "40013"

    @pytest.mark.parametrize("params", [{"pageIndex": 0}, {"pageIndex": 1, "pageSize": 101}])
    def test_invalid_paging(self, app_client, api_headers, params):
        response = app_client.get(f"{PREFIX}/users", params=params, headers=api_headers)
        assert response.json()["error_code"] == "40000"


class TestSingleUser:
    def test_get_by_phone_email_and_id(self, app_client, api_headers):
        user = _create(
            app_client, api_headers, phone="13800138000", email="neo@matrix.io", password="pw"
        )

        for identifier in (user["id"], "13800138000", "neo@matrix.io"):
            response = app_client.get(f"{PREFIX}/users/{identifier}", headers=api_headers)
            assert response.json()["data"]["user"]["id"] == user["id"]

    def test_get_by_token(self, app_client, api_headers):
        user = _create(app_client, api_headers, phone="13800138000")
        session = app_client.post(
            f"{PREFIX}/users/{user['id']}/sessions", json={}, headers=api_headers
        ).json()["data"]["session"]

        response = app_client.get(
            f"{PREFIX}/users/{session['token']}", params={"fields": "id"}, headers=api_headers
        )

        assert response.json()["data"]["user"] == {"id": user["id"]}

    def test_unknown_user(self, app_client, api_headers):
        response = app_client.get(f"{PREFIX}/users/13900000000", headers=api_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "40401"

    def test_update(self, app_client, api_headers):
        user = _create(app_client, api_headers, phone="13800138000")

        response = app_client.patch(
            f"{PREFIX}/users/{user['id']}", json={"nickname": "trinity"}, headers=api_headers
        )

        assert response.json()["data"]["user"]["nickname"] == "trinity"

    def test_null_gender_resets_to_unset(self, app_client, api_headers):
        user = _create(app_client, api_headers, phone="13800138000", gender=2)

        response = app_client.patch(
            f"{PREFIX}/users/{user['id']}", json={"gender": None}, headers=api_headers
        )

        assert response.status_code == 200, response.json()
        assert response.json()["data"]["user"]["gender"] == 0

    def test_update_requires_a_field(self, app_client, api_headers):
        user = _create(app_client, api_headers, phone="13800138000")

        response = app_client.patch(f"{PREFIX}/users/{user['id']}", json={}, headers=api_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "40000"

    def test_delete(self, app_client, api_headers):
        user = _create(app_client, api_headers, phone="13800138000")

        response = app_client.delete(f"{PREFIX}/users/{user['id']}", headers=api_headers)

        assert response.json()["data"] == {"deleted": True}
        assert app_client.get(f"{PREFIX}/users/{user['id']}", headers=api_headers).status_code == 404


class TestPassword:
    def test_change_and_revoke(self, app_client, api_headers):
        user = _create(app_client, api_headers, email="neo@matrix.io", password="old")
        app_client.post(f"{PREFIX}/users/{user['id']}/sessions", headers=api_headers)

        response = app_client.patch(
            f"{PREFIX}/users/{user['id']}/password",
            json={"old_password": "old", "new_password": "new", "revoke_sessions": True},
            headers=api_headers,
        )

        assert response.status_code == 200
        listed = app_client.get(f"{PREFIX}/users/{user['id']}/sessions", headers=api_headers)
        assert listed.json()["data"]["sessions"] == []
        login = app_client.post(
            f"{PREFIX}/auth",
            json={"account": "neo@matrix.io", "password": "new", "session_opts": {"mode": "none"}},
            headers=api_headers,
        )
        assert login.status_code == 200

    def test_wrong_old_password(self, app_client, api_headers):
        user = _create(app_client, api_headers, email="neo@matrix.io", password="old")

        response = app_client.patch(
            f"{PREFIX}/users/{user['id']}/password",
            json={"old_password": "bad", "new_password": "new"},
            headers=api_headers,
        )

        assert response.json()["error_code"] == "40014"
