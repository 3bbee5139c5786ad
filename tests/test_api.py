"""HTTP surface: routing, role checks and error mapping."""

from conftest import (
    auth_headers,
    build_test_payload,
    correct_option,
    question_payload,
    wrong_option,
)


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "healthy"


class TestAuth:
    def test_missing_token(self, client):
        assert client.get("/users/me").status_code == 401

    def test_garbage_token(self, client):
        response = client.get(
            "/users/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_me(self, client, student):
        response = client.get("/users/me", headers=auth_headers(student))
        assert response.status_code == 200
        assert response.json()["username"] == student.username

    def test_inactive_user_refused(self, client, student, admin):
        response = client.patch(
            f"/users/{student.id}/active",
            json={"is_active": False},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200

        assert client.get("/users/me", headers=auth_headers(student)).status_code == 403


class TestUsers:
    def test_admin_creates_user(self, client, admin):
        response = client.post(
            "/users/",
            json={"username": "newbie", "email": "newbie@example.com"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "student"

    def test_duplicate_username(self, client, admin, student):
        response = client.post(
            "/users/",
            json={"username": student.username, "email": "other@example.com"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_input"

    def test_student_cannot_manage_users(self, client, student):
        assert client.get("/users/", headers=auth_headers(student)).status_code == 403

    def test_change_role(self, client, admin, student):
        response = client.patch(
            f"/users/{student.id}/role",
            json={"role": "teacher"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["role"] == "teacher"


class TestTestsEndpoints:
    def test_student_cannot_author(self, client, student):
        response = client.post(
            "/tests/", json=build_test_payload(), headers=auth_headers(student)
        )
        assert response.status_code == 403

    def test_create_and_publish(self, client, teacher, student):
        headers = auth_headers(teacher)
        response = client.post(
            "/tests/", json=build_test_payload(weights=(1, 2)), headers=headers
        )
        assert response.status_code == 201
        test_id = response.json()["id"]
        assert response.json()["questions"][0]["options"][0]["is_correct"] is True

        assert client.get(f"/tests/{test_id}", headers=auth_headers(student)).status_code == 404

        response = client.post(f"/tests/{test_id}/publish", headers=headers)
        assert response.status_code == 200
        assert response.json()["published"] is True

        response = client.get(f"/tests/{test_id}", headers=auth_headers(student))
        assert response.status_code == 200
        options = response.json()["questions"][0]["options"]
        assert all("is_correct" not in opt for opt in options)

    def test_invalid_payload(self, client, teacher):
        payload = build_test_payload()
        payload["questions"][0]["options"] = payload["questions"][0]["options"][:3]
        response = client.post("/tests/", json=payload, headers=auth_headers(teacher))
        assert response.status_code == 422

    def test_my_tests(self, client, teacher, student, make_test):
        test = make_test(published=False)

        assert client.get("/tests/mine", headers=auth_headers(student)).status_code == 403

        response = client.get("/tests/mine", headers=auth_headers(teacher))
        assert response.status_code == 200
        body = response.json()
        assert [t["id"] for t in body] == [test.id]
        assert body[0]["total_attempts"] == 0
        assert body[0]["average_score"] == 0.0

    def test_edit_weight_while_attempted(self, client, teacher, student, make_test):
        test = make_test(weights=(1,))
        question = test.questions[0]
        headers = auth_headers(student)
        attempt_id = client.post(
            "/attempts/", json={"test_id": test.id}, headers=headers
        ).json()["id"]
        client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_id": question.id, "option_id": correct_option(question).id},
            headers=headers,
        )

        response = client.put(
            f"/tests/{test.id}",
            json={"question_edits": [{"id": question.id, "points": 5}]},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 200
        assert response.json()["questions"][0]["points"] == 5

        response = client.put(
            f"/tests/{test.id}",
            json={"questions": [question_payload()]},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 409

        response = client.post(f"/attempts/{attempt_id}/complete", headers=headers)
        assert (response.json()["score"], response.json()["total_points"]) == (5, 5)

    def test_delete(self, client, teacher, make_test):
        test = make_test()
        headers = auth_headers(teacher)

        assert client.delete(f"/tests/{test.id}", headers=headers).status_code == 204
        response = client.get(f"/tests/{test.id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"


class TestAttemptFlow:
    def test_full_flow(self, client, student, teacher, make_test):
        test = make_test(weights=(1, 3), passing_score=70)
        q1, q2 = test.questions
        headers = auth_headers(student)

        response = client.post("/attempts/", json={"test_id": test.id}, headers=headers)
        assert response.status_code == 201
        attempt_id = response.json()["id"]
        assert response.json()["status"] == "in_progress"

        response = client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_id": q1.id, "option_id": wrong_option(q1).id},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["is_correct"] is False

        response = client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_id": q2.id, "option_id": correct_option(q2).id},
            headers=headers,
        )
        assert response.json()["is_correct"] is True

        response = client.get(f"/attempts/{attempt_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["time_limit_seconds"] == 1800

        assert (
            client.get(f"/attempts/{attempt_id}/results", headers=headers).status_code
            == 409
        )

        response = client.post(f"/attempts/{attempt_id}/complete", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert (body["score"], body["total_points"]) == (3, 4)
        assert body["percentage"] == 75.0

        response = client.post(f"/attempts/{attempt_id}/complete", headers=headers)
        assert response.status_code == 409
        assert response.json()["type"] == "invalid_state"

        response = client.get(f"/attempts/{attempt_id}/results", headers=headers)
        assert response.status_code == 200
        assert response.json()["passed"] is True

        response = client.get("/stats/me", headers=headers)
        assert response.status_code == 200
        stats = response.json()
        assert stats["stats"]["tests_completed"] == 1
        assert stats["stats"]["tests_passed"] == 1
        assert stats["stats"]["total_points"] == 3
        assert stats["streak"] == {"current": 1, "best": 1}

        response = client.get(
            f"/tests/{test.id}/attempts", headers=auth_headers(teacher)
        )
        assert response.status_code == 200
        assert response.json()[0]["username"] == student.username

    def test_foreign_option_rejected(self, client, student, make_test):
        test = make_test(weights=(1, 1))
        q1, q2 = test.questions
        headers = auth_headers(student)
        attempt_id = client.post(
            "/attempts/", json={"test_id": test.id}, headers=headers
        ).json()["id"]

        response = client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_id": q1.id, "option_id": correct_option(q2).id},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["type"] == "invalid_input"

    def test_other_student_cannot_answer(self, client, student, make_user, make_test):
        test = make_test()
        question = test.questions[0]
        attempt_id = client.post(
            "/attempts/", json={"test_id": test.id}, headers=auth_headers(student)
        ).json()["id"]

        response = client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_id": question.id, "option_id": correct_option(question).id},
            headers=auth_headers(make_user()),
        )
        assert response.status_code == 403

    def test_student_cannot_start_draft(self, client, student, teacher, make_test):
        test = make_test(published=False)

        response = client.post(
            "/attempts/", json={"test_id": test.id}, headers=auth_headers(student)
        )
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

        response = client.post(
            "/attempts/", json={"test_id": test.id}, headers=auth_headers(teacher)
        )
        assert response.status_code == 201

    def test_unknown_attempt(self, client, student):
        response = client.post("/attempts/9999/complete", headers=auth_headers(student))
        assert response.status_code == 404

    def test_abandon_requires_admin(self, client, student, admin, make_test):
        test = make_test()
        attempt_id = client.post(
            "/attempts/", json={"test_id": test.id}, headers=auth_headers(student)
        ).json()["id"]

        assert (
            client.post(
                f"/attempts/{attempt_id}/abandon", headers=auth_headers(student)
            ).status_code
            == 403
        )
        response = client.post(
            f"/attempts/{attempt_id}/abandon", headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "abandoned"

    def test_search_requires_staff(self, client, student, teacher, make_test):
        test = make_test(title="Trigonometry")
        client.post("/attempts/", json={"test_id": test.id}, headers=auth_headers(student))

        assert client.get("/attempts/search", headers=auth_headers(student)).status_code == 403

        response = client.get(
            "/attempts/search",
            params={"test_name": "trig"},
            headers=auth_headers(teacher),
        )
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_my_attempts(self, client, student, make_test):
        test = make_test()
        headers = auth_headers(student)
        client.post("/attempts/", json={"test_id": test.id}, headers=headers)

        response = client.get("/attempts/me", headers=headers)
        assert response.status_code == 200
        assert response.json()[0]["test_title"] == test.title


class TestStatsEndpoints:
    def test_staff_views_student_stats(self, client, student, teacher):
        response = client.get(f"/stats/user/{student.id}", headers=auth_headers(teacher))
        assert response.status_code == 200
        assert response.json()["stats"]["tests_completed"] == 0

    def test_student_cannot_view_others(self, client, student, make_user):
        other = make_user()
        response = client.get(f"/stats/user/{other.id}", headers=auth_headers(student))
        assert response.status_code == 403

    def test_rebuild(self, client, student, admin):
        response = client.post(
            f"/stats/user/{student.id}/rebuild", headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["tests_completed"] == 0
