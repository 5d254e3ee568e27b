# tests/test_routes.py

from studently.extensions import db
from studently.models import AttendanceRecord, AttendanceDaily, AuditLog

API = "/api/attendance"


class TestAccessControl:

    def test_missing_token_is_401(self, test_client, school_setup):
        response = test_client.get(f"{API}/admin-period-grid?date=2026-02-10")
        assert response.status_code == 401
        assert response.get_json()["success"] is False

    def test_teacher_cannot_override(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/bulk-override",
            json={"changes": [{"record_id": "x", "attendance_code_id": "y"}]},
            headers=headers_for(school_setup["teacher"]),
        )
        assert response.status_code == 403

    def test_admin_cannot_pick_another_school(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=2026-02-10&school_id={school_setup['other_school'].id}",
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 403

    def test_super_admin_must_name_a_school(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=2026-02-10",
            headers=headers_for(school_setup["super_admin"]),
        )
        assert response.status_code == 403

    def test_super_admin_may_pick_any_school(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=2026-02-10&school_id={school_setup['school'].id}",
            headers=headers_for(school_setup["super_admin"]),
        )
        assert response.status_code == 200
        assert len(response.get_json()["data"]["students"]) == 2

    def test_unknown_route_uses_envelope(self, test_client):
        response = test_client.get("/api/attendance/nowhere")
        assert response.status_code == 404
        assert response.get_json() == {"success": False, "data": None, "error": "Not found"}


class TestGridRoutes:

    def test_grid(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=2026-02-10", headers=headers_for(school_setup["admin"])
        )
        body = response.get_json()

        assert response.status_code == 200
        assert body["success"] is True
        assert len(body["data"]["periods"]) == 3
        assert body["data"]["students"][0]["student_name"] == "Amy Adams"

    def test_grid_requires_date(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/admin-period-grid", headers=headers_for(school_setup["admin"]))
        assert response.status_code == 400

    def test_grid_rejects_bad_date(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=yesterday", headers=headers_for(school_setup["admin"])
        )
        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.get_json()["error"]

    def test_exceptions_only(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/admin-period-grid?date=2026-02-10&exceptions_only=true",
            headers=headers_for(school_setup["admin"]),
        )
        assert response.get_json()["data"]["students"] == []

    def test_student_drill_down(self, test_client, school_setup, headers_for):
        student = school_setup["students"][1]
        response = test_client.get(
            f"{API}/admin/student/{student.id}/periods?date=2026-02-10",
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 200
        assert len(response.get_json()["data"]) == 3


class TestOverrideRoutes:

    def test_bulk_override(self, test_client, school_setup, headers_for):
        r2 = school_setup["records"][(0, 1)]
        response = test_client.post(
            f"{API}/bulk-override",
            json={"changes": [{"record_id": r2.id, "attendance_code_id": school_setup["codes"]["A"].id}]},
            headers=headers_for(school_setup["admin"]),
        )

        assert response.status_code == 200
        assert response.get_json()["data"] == {"updated": 1, "errors": []}
        assert db.session.get(AttendanceRecord, r2.id).status == "absent"

    def test_bulk_override_reports_unknown_record(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/bulk-override",
            json={"changes": [{"record_id": "nonexistent", "attendance_code_id": school_setup["codes"]["A"].id}]},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.get_json()["data"] == {
            "updated": 0,
            "errors": [{"item": "nonexistent", "reason": "InvalidReference"}],
        }

    def test_bulk_override_rejects_empty_batch(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/bulk-override", json={"changes": []}, headers=headers_for(school_setup["admin"])
        )
        assert response.status_code == 400

    def test_bulk_override_is_audited(self, test_app, test_client, school_setup, headers_for):
        r1 = school_setup["records"][(1, 0)]
        test_client.post(
            f"{API}/bulk-override",
            json={"changes": [{"record_id": r1.id, "attendance_code_id": school_setup["codes"]["H"].id}]},
            headers=headers_for(school_setup["admin"]),
        )

        with open(test_app.config["AUDIT_LOG_FILE"]) as fh:
            log = fh.read()
        assert "ATTENDANCE_BULK_OVERRIDE" in log
        assert "updated=1" in log

    def test_reconcile_codes_and_comments(self, test_client, school_setup, headers_for):
        r2 = school_setup["records"][(0, 1)]
        student = school_setup["students"][0]
        response = test_client.post(
            f"{API}/reconcile",
            json={
                "changes": [{"record_id": r2.id, "attendance_code_id": school_setup["codes"]["A"].id}],
                "comments": [{"student_id": student.id, "date": "2026-02-10", "comment": "Dentist"}],
            },
            headers=headers_for(school_setup["admin"]),
        )

        assert response.get_json()["data"] == {"updated": 1, "comments_updated": 1, "errors": []}
        daily = AttendanceDaily.query.filter_by(student_id=student.id).first()
        assert daily.comment == "Dentist"
        assert daily.state_value == 0.5

    def test_single_override(self, test_client, school_setup, headers_for):
        r3 = school_setup["records"][(1, 2)]
        response = test_client.post(
            f"{API}/override",
            json={"record_id": r3.id, "attendance_code_id": school_setup["codes"]["A"].id, "reason": "Sent home"},
            headers=headers_for(school_setup["admin"]),
        )
        data = response.get_json()["data"]
        assert data["status"] == "absent"
        assert data["override_reason"] == "Sent home"

    def test_single_override_unknown_record(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/override",
            json={"record_id": "nope", "attendance_code_id": school_setup["codes"]["A"].id},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 404

    def test_single_override_foreign_code(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/override",
            json={"record_id": school_setup["records"][(0, 0)].id,
                  "attendance_code_id": school_setup["foreign_code"].id},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 422

    def test_daily_comment(self, test_client, school_setup, headers_for):
        student = school_setup["students"][1]
        response = test_client.post(
            f"{API}/daily-comment",
            json={"student_id": student.id, "date": "2026-02-10", "comment": "Parent called"},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["comment"] == "Parent called"

    def test_add_absences(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/admin/add-absences",
            json={
                "student_ids": [school_setup["students"][0].id],
                "period_ids": [p.id for p in school_setup["periods"]],
                "date": "2026-02-13",
                "attendance_code_id": school_setup["codes"]["A"].id,
            },
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 201
        assert response.get_json()["data"]["created"] == 3

    def test_teacher_marks_period(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/mark",
            json={
                "period_id": school_setup["periods"][0].id,
                "date": "2026-02-10",
                "marks": [{"student_id": school_setup["students"][0].id,
                           "attendance_code_id": school_setup["codes"]["H"].id}],
            },
            headers=headers_for(school_setup["teacher"]),
        )
        assert response.get_json()["data"] == {"updated": 1, "errors": []}

    def test_teacher_completes_period(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/completed",
            json={"period_id": school_setup["periods"][0].id, "date": "2026-02-10"},
            headers=headers_for(school_setup["teacher"]),
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["staff_id"] == school_setup["teacher"].id


class TestCodeRoutes:

    def test_list_codes_as_teacher(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/codes", headers=headers_for(school_setup["teacher"]))
        assert [c["short_name"] for c in response.get_json()["data"]] == ["P", "A", "L"]

    def test_create_code(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/codes",
            json={"title": "Excused", "short_name": "E", "state_code": "A"},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 201
        assert response.get_json()["data"]["school_id"] == school_setup["school"].id

    def test_create_code_validation(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/codes", json={"title": "Excused"}, headers=headers_for(school_setup["admin"])
        )
        assert response.status_code == 400

    def test_default_code(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/codes/default", headers=headers_for(school_setup["teacher"]))
        assert response.get_json()["data"]["id"] == school_setup["codes"]["P"].id

    def test_update_code(self, test_client, school_setup, headers_for):
        code = school_setup["codes"]["H"]
        response = test_client.put(
            f"{API}/codes/{code.id}", json={"color": "#000000"}, headers=headers_for(school_setup["admin"])
        )
        assert response.get_json()["data"]["color"] == "#000000"

    def test_delete_code_in_use(self, test_client, school_setup, headers_for):
        code = school_setup["codes"]["P"]
        response = test_client.delete(f"{API}/codes/{code.id}", headers=headers_for(school_setup["admin"]))
        assert response.get_json()["data"] == {"deleted": True, "deactivated": True}

    def test_code_of_other_school_is_forbidden(self, test_client, school_setup, headers_for):
        code = school_setup["codes"]["A"]
        response = test_client.delete(f"{API}/codes/{code.id}", headers=headers_for(school_setup["other_admin"]))
        assert response.status_code == 403


class TestReportAndUtilityRoutes:

    def test_summary(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/reports/summary?start_date=2026-02-01&end_date=2026-02-28",
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 200
        assert len(response.get_json()["data"]) == 2

    def test_summary_requires_range(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/reports/summary", headers=headers_for(school_setup["admin"]))
        assert response.status_code == 400

    def test_summary_export(self, test_client, school_setup, headers_for):
        response = test_client.get(
            f"{API}/reports/summary/export?start_date=2026-02-01&end_date=2026-02-28",
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]

    def test_recalculate(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/utilities/recalculate",
            json={"start_date": "2026-02-10", "end_date": "2026-02-10"},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.get_json()["data"] == {"recalculated": 2}

    def test_duplicates(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/utilities/duplicates", headers=headers_for(school_setup["admin"]))
        assert response.get_json()["data"] == []

        response = test_client.post(
            f"{API}/utilities/duplicates/delete", json={}, headers=headers_for(school_setup["admin"])
        )
        assert response.get_json()["data"] == {"deleted": 0}


    def test_teacher_completion(self, test_client, school_setup, headers_for):
        test_client.post(
            f"{API}/completed",
            json={"period_id": school_setup["periods"][1].id, "date": "2026-02-10"},
            headers=headers_for(school_setup["teacher"]),
        )
        response = test_client.get(
            f"{API}/reports/teacher-completion?date=2026-02-10", headers=headers_for(school_setup["admin"])
        )
        rows = response.get_json()["data"]

        assert response.status_code == 200
        assert [r["staff_name"] for r in rows] == ["s1_teacher"]
        assert [p["completed"] for p in rows[0]["periods"]] == [False, True, False]

    def test_teacher_completion_requires_date(self, test_client, school_setup, headers_for):
        response = test_client.get(f"{API}/reports/teacher-completion", headers=headers_for(school_setup["admin"]))
        assert response.status_code == 400

    def test_duplicates_with_one_bound_is_rejected(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/utilities/duplicates/delete",
            json={"start_date": "2026-02-01"},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 400
        assert response.get_json()["success"] is False


class TestMalformedBodies:

    def test_reconcile_with_list_body(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/reconcile",
            json=[{"record_id": school_setup["records"][(0, 0)].id,
                   "attendance_code_id": school_setup["codes"]["A"].id}],
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "data": None, "error": "JSON object body required"}
        assert db.session.get(AttendanceRecord, school_setup["records"][(0, 0)].id).status == "present"

    def test_create_code_with_list_body(self, test_client, school_setup, headers_for):
        response = test_client.post(f"{API}/codes", json=["Excused"], headers=headers_for(school_setup["admin"]))
        assert response.status_code == 400

    def test_login_with_list_body(self, test_client):
        response = test_client.post("/auth/login", json=["s1_admin", "password123"])
        assert response.status_code == 400

    def test_login_with_non_string_username(self, test_client):
        response = test_client.post("/auth/login", json={"username": 42, "password": "password123"})
        assert response.status_code == 400

    def test_completed_with_non_numeric_table_name(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/completed",
            json={"period_id": school_setup["periods"][0].id, "date": "2026-02-10", "table_name": "abc"},
            headers=headers_for(school_setup["teacher"]),
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "table_name must be an integer"

    def test_create_code_with_non_string_title(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/codes",
            json={"title": 7, "short_name": "E", "state_code": "A"},
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "title must be a non-empty string"

    def test_add_absences_with_string_ids(self, test_client, school_setup, headers_for):
        response = test_client.post(
            f"{API}/admin/add-absences",
            json={
                "student_ids": school_setup["students"][0].id,
                "period_ids": [school_setup["periods"][0].id],
                "date": "2026-02-13",
                "attendance_code_id": school_setup["codes"]["A"].id,
            },
            headers=headers_for(school_setup["admin"]),
        )
        assert response.status_code == 400


class TestRateLimitHandler:

    def test_breach_is_logged(self, test_app):
        from types import SimpleNamespace
        from utils.logging import log_rate_limit_violation

        with test_app.test_request_context("/auth/login", method="POST"):
            response = log_rate_limit_violation(SimpleNamespace(limit="5 per minute"))

        assert response.status_code == 429
        assert AuditLog.query.count() == 1
        assert "RATE_LIMIT_EXCEEDED" in AuditLog.query.first().action
