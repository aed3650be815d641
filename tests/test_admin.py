from french_notes.infrastructure.models import LoginLogORM, UserORM

from conftest import register_student, student_login


def test_admin_routes_require_token(client):
    assert client.get("/api/admin/users").status_code == 401
    assert client.get("/api/admin/login-logs").status_code == 401


def test_admin_routes_reject_students(client, student_headers):
    assert client.get("/api/admin/users", headers=student_headers).status_code == 403
    response = client.post("/api/admin/login-logs/1", json={"status": "approved"}, headers=student_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access only"


def test_list_users_returns_students_only(client, admin_headers):
    register_student(client, username="alice")
    register_student(client, username="carol")

    response = client.get("/api/admin/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()
    assert [u["username"] for u in users] == ["alice", "carol"]
    assert all(u["role"] == "student" for u in users)
    assert all("passwordHash" not in u for u in users)


def test_delete_user_cascades_ledger(client, admin_headers, db_session):
    user = register_student(client)
    student_login(client, device="A")
    student_login(client, device="B")
    assert db_session.query(LoginLogORM).filter(LoginLogORM.user_id == user["id"]).count() == 2

    response = client.delete(f"/api/admin/users/{user['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "User removed successfully"

    db_session.expire_all()
    assert db_session.query(LoginLogORM).filter(LoginLogORM.user_id == user["id"]).count() == 0
    assert db_session.get(UserORM, user["id"]) is None


def test_delete_missing_user(client, admin_headers):
    response = client.delete("/api/admin/users/999", headers=admin_headers)
    assert response.status_code == 404


def test_reset_logs_lets_student_register_devices_again(client, admin_headers):
    user = register_student(client)
    student_login(client, device="A")
    student_login(client, device="B")
    assert student_login(client, device="C").status_code == 403

    response = client.post(f"/api/admin/users/{user['id']}/reset-logs", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted"] == 2

    assert student_login(client, device="C").status_code == 200


def test_reset_logs_missing_user(client, admin_headers):
    response = client.post("/api/admin/users/999/reset-logs", headers=admin_headers)
    assert response.status_code == 404


def test_login_logs_include_user(client, admin_headers):
    register_student(client, username="alice", name="Alice Martin")
    student_login(client, device="A")

    response = client.get("/api/admin/login-logs", headers=admin_headers)
    assert response.status_code == 200
    logs = response.json()
    assert len(logs) == 1
    log = logs[0]
    assert log["deviceId"] == "A"
    assert log["deviceInfo"] == "browser on A"
    assert log["status"] == "approved"
    assert log["user"] == {"id": log["userId"], "username": "alice",
                           "email": "alice@example.com", "name": "Alice Martin"}


def test_decide_invalid_status(client, admin_headers):
    register_student(client)
    log_id = student_login(client, device="A").json()["logId"]
    response = client.post(f"/api/admin/login-logs/{log_id}", json={"status": "maybe"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid status value"


def test_decide_missing_log(client, admin_headers):
    response = client.post("/api/admin/login-logs/999", json={"status": "approved"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Login log not found"


def test_approval_over_quota_leaves_status(client, admin_headers, manual_mode, db_session):
    register_student(client)
    log_ids = [student_login(client, device=d).json()["logId"] for d in ("A", "B", "C")]

    for log_id in log_ids[:2]:
        response = client.post(f"/api/admin/login-logs/{log_id}", json={"status": "approved"},
                                headers=admin_headers)
        assert response.status_code == 200

    response = client.post(f"/api/admin/login-logs/{log_ids[2]}", json={"status": "approved"},
                           headers=admin_headers)
    assert response.status_code == 403
    assert "Cannot approve more" in response.json()["detail"]

    db_session.expire_all()
    assert db_session.get(LoginLogORM, log_ids[2]).status.value == "pending"


def test_pending_requests_are_capped(client, manual_mode):
    register_student(client)
    for device in ("A", "B", "C"):
        assert student_login(client, device=device).json()["status"] == "pending"

    response = student_login(client, device="D")
    assert response.status_code == 403
    assert "awaiting admin approval" in response.json()["detail"]
