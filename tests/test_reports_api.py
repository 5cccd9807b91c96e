from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status

from app.models.report import Report

REPORT_TEXT = "<p>Shipped the new checkout flow, added integration tests and cut p95 latency by 30%.</p>"


def test_permissions_me_for_account_owner(client, team, headers):
    response = client.get("/api/permissions/me", headers=headers(team["owner"]))
    assert response.status_code == 200
    assert response.json() == {
        "can_set_global_frequency": True,
        "can_view_organization_wide": True,
        "can_manage_settings": True,
        "is_account_owner": True,
    }


def test_scope_two_levels_by_default(client, team, headers):
    response = client.get("/api/scope", headers=headers(team["lead"]))
    assert response.status_code == 200
    ids = set(response.json()["employee_ids"])
    assert ids == {team[k].id for k in ("alice", "bob", "sub_lead", "carol")}
    assert team["dave"].id not in ids


def test_organization_scope_degrades_without_permission(client, team, headers):
    response = client.get("/api/scope", params={"scope": "organization"}, headers=headers(team["lead"]))
    assert response.status_code == 200
    body = response.json()
    assert body["effective_scope"] == "direct-reports"
    assert team["erin"].id not in body["employee_ids"]


def test_organization_scope_with_permission(client, db_session, team, headers):
    team["lead"].permissions = {"can_view_organization_wide": True}
    db_session.commit()
    body = client.get("/api/scope", params={"scope": "organization"}, headers=headers(team["lead"])).json()
    assert body["effective_scope"] == "organization"
    assert team["erin"].id in body["employee_ids"]


def test_can_override_endpoint(client, team, headers):
    direct = client.get(f"/api/employees/{team['alice'].id}/can-override", headers=headers(team["lead"])).json()
    skip = client.get(f"/api/employees/{team['alice'].id}/can-override", headers=headers(team["owner"])).json()
    assert direct["can_override"] is True
    assert skip["can_override"] is False


def test_submit_report(client, db_session, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT},
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body[0]["evaluation_score"] == 6.8
    assert body[0]["display_score"] == 6.8
    assert db_session.query(Report).count() == 1


def test_submit_is_all_or_nothing(client, db_session, fake_scorer, team, make_goal, headers):
    goals = [make_goal("Ship checkout"), make_goal("Reduce latency")]
    fake_scorer.fail_on_call = 2
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [g.id for g in goals], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 503
    assert response.json()["errors"][0]["code"] == "AI_SERVICE_UNAVAILABLE"
    assert db_session.query(Report).count() == 0


def test_late_goal_is_blocked_when_policy_disallows(client, db_session, org, team, make_goal, headers):
    from app.models.manager_settings import ManagerSettingsRecord
    db_session.add(ManagerSettingsRecord(organization_id=org.id, data={"allow_late_submissions": False}))
    db_session.commit()
    late = make_goal("Q1 wrap-up", deadline=datetime.now(timezone.utc) - timedelta(days=1))

    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [late.id], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 409
    error = response.json()["errors"][0]
    assert error["code"] == "SUBMISSION_BLOCKED"
    assert error["details"]["goals"] == ["Q1 wrap-up"]

    status_body = client.get(f"/api/goals/{late.id}/submission-status", headers=headers(team["alice"])).json()
    assert status_body["blocked"] is True
    assert status_body["deadline_passed"] is True


def test_short_report_is_a_validation_error(client, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": "<b>Too short</b>"},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "report_text"


def test_manager_submits_for_in_scope_employee_only(client, team, make_goal, headers):
    goal = make_goal()
    ok = client.post(
        "/api/reports",
        headers=headers(team["lead"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT, "employee_id": team["carol"].id},
    )
    assert ok.status_code == 201
    assert ok.json()[0]["employee_id"] == team["carol"].id

    denied = client.post(
        "/api/reports",
        headers=headers(team["lead"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT, "employee_id": team["erin"].id},
    )
    assert denied.status_code == 403


def test_independent_submission(client, db_session, fake_scorer, team, make_goal, headers):
    goals = [make_goal("Ship checkout"), make_goal("Reduce latency")]
    fake_scorer.fail_on_call = 2
    response = client.post(
        "/api/reports/independent",
        headers=headers(team["alice"]),
        json={"goal_ids": [g.id for g in goals], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 207
    outcomes = response.json()
    assert outcomes[0]["report"] is not None
    assert outcomes[1]["error"]
    assert db_session.query(Report).count() == 1


def test_preview_and_feedback(client, db_session, team, make_goal, headers):
    goal = make_goal()
    preview = client.post(
        "/api/reports/preview",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT},
    )
    assert preview.status_code == 200
    assert preview.json()[0]["evaluation_score"] == 6.8
    assert preview.json()[0]["missing_criteria"] == []
    assert db_session.query(Report).count() == 0

    feedback = client.post(
        "/api/reports/feedback",
        headers=headers(team["alice"]),
        json={"goal_id": goal.id, "report_text": "Did stuff."},
    )
    assert feedback.status_code == 200
    assert feedback.json()["feedback"]


@pytest.fixture
def alice_report_id(client, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT},
    )
    return response.json()[0]["id"]


def test_override_round_trip(client, team, headers, alice_report_id):
    url = f"/api/reports/{alice_report_id}/override"
    applied = client.put(url, headers=headers(team["lead"]), json={"score": 9.5, "reasoning": "Outstanding launch"})
    assert applied.status_code == 200
    assert applied.json()["display_score"] == 9.5
    assert applied.json()["evaluation_score"] == 6.8

    cleared = client.delete(url, headers=headers(team["lead"]))
    assert cleared.status_code == 200
    assert cleared.json()["manager_overall_score"] is None
    assert cleared.json()["manager_override_reasoning"] is None


def test_skip_level_manager_cannot_override(client, team, headers, alice_report_id):
    response = client.put(
        f"/api/reports/{alice_report_id}/override",
        headers=headers(team["owner"]),
        json={"score": 9.5, "reasoning": "Outstanding launch"},
    )
    assert response.status_code == 403
    assert response.json()["errors"][0]["code"] == "PERMISSION_DENIED"


def test_override_out_of_range(client, team, headers, alice_report_id):
    response = client.put(
        f"/api/reports/{alice_report_id}/override",
        headers=headers(team["lead"]),
        json={"score": 11, "reasoning": "Outstanding launch"},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "score"


def test_report_listing_respects_scope(client, team, make_goal, headers, alice_report_id):
    visible = client.get("/api/reports", headers=headers(team["lead"])).json()
    assert [r["id"] for r in visible] == [alice_report_id]
    hidden = client.get("/api/reports", headers=headers(team["other_lead"])).json()
    assert hidden == []


def test_holistic_score_endpoint(client, team, headers, alice_report_id):
    response = client.get(f"/api/reports/holistic/{team['alice'].id}", headers=headers(team["lead"]))
    assert response.status_code == 200
    assert response.json()["holistic_score"] == 6.8

    denied = client.get(f"/api/reports/holistic/{team['alice'].id}", headers=headers(team["other_lead"]))
    assert denied.status_code == 403


def test_reliability_endpoint(client, team, headers, alice_report_id):
    response = client.get("/api/reports/reliability", headers=headers(team["lead"]))
    assert response.status_code == 200
    body = response.json()
    # Weekly project, one goal, 31 days -> ceil(31 / 7) = 5 expected
    assert body["expected"] == 5
    assert body["actual"] == 1
    assert body["rate"] == 20.0
    assert len(body["trend"]) == 4


def test_preview_rejects_blocked_goal_before_scoring(client, db_session, org, fake_scorer, team, make_goal, headers):
    from app.models.manager_settings import ManagerSettingsRecord
    db_session.add(ManagerSettingsRecord(organization_id=org.id, data={"allow_late_submissions": False}))
    db_session.commit()
    late = make_goal("Q1 wrap-up", deadline=datetime.now(timezone.utc) - timedelta(days=1))

    response = client.post(
        "/api/reports/preview",
        headers=headers(team["alice"]),
        json={"goal_ids": [late.id], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "SUBMISSION_BLOCKED"
    assert fake_scorer.calls == []


def test_duplicate_goal_ids_are_rejected(client, db_session, fake_scorer, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id, goal.id], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "goal_ids"
    assert fake_scorer.calls == []
    assert db_session.query(Report).count() == 0


def test_markup_is_stripped_before_scoring(client, db_session, fake_scorer, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": REPORT_TEXT},
    )
    assert response.status_code == 201
    assert fake_scorer.calls[0]["report_text"].startswith("Shipped the new checkout flow")
    assert "<p>" not in fake_scorer.calls[0]["report_text"]
    # The stored report keeps its rich text
    assert response.json()[0]["report_text"] == REPORT_TEXT

    client.post(
        "/api/reports/feedback",
        headers=headers(team["alice"]),
        json={"goal_id": goal.id, "report_text": "<p>Did <b>stuff</b>.</p>"},
    )
    assert fake_scorer.feedback_calls[0]["report_text"] == "Did stuff."


def test_overlong_report_is_a_validation_error(client, fake_scorer, team, make_goal, headers):
    goal = make_goal()
    response = client.post(
        "/api/reports",
        headers=headers(team["alice"]),
        json={"goal_ids": [goal.id], "report_text": "<p>" + "x" * 3001 + "</p>"},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "report_text"
    assert fake_scorer.calls == []


def test_holistic_includes_criterion_breakdown(client, team, make_goal, headers):
    goal = make_goal()
    for author in ("alice", "bob"):
        submitted = client.post(
            "/api/reports",
            headers=headers(team[author]),
            json={"goal_ids": [goal.id], "report_text": REPORT_TEXT},
        )
        assert submitted.status_code == 201

    body = client.get(f"/api/reports/holistic/{team['alice'].id}", headers=headers(team["lead"])).json()
    assert [s["name"] for s in body["key_skills"]] == ["Quality", "Speed"]
    assert [s["needs_coaching"] for s in body["key_skills"]] == [False, True]
    assert body["team_criterion_averages"] == {"Quality": 8.0, "Speed": 5.0}
    assert body["consistency"] is None
