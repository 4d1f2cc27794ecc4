def _payload(instructor_id, student_ids, **overrides):
    payload = {
        "instructor_id": instructor_id,
        "student_ids": student_ids,
        "subject_code": "MATH",
        "class_type_code": "ONE_TO_ONE",
        "schedule": {"mode": "recurring", "weekday": 3, "active_from": "2024-01-01"},
        "start_time": "10:00",
        "end_time": "11:00",
    }
    payload.update(overrides)
    return payload


def test_mutations_require_a_bearer_token(client, make_instructor, make_student):
    payload = _payload(make_instructor().id, [make_student().id])

    assert client.post("/api/schedules", json=payload).status_code in {401, 403}
    invalid = client.post("/api/schedules", json=payload, headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401


def test_create_and_read_week(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor("Kim")
    student = make_student("Lee")

    created = client.post("/api/schedules", json=_payload(instructor.id, [student.id]), headers=auth_headers)
    assert created.status_code == 201
    class_id = created.json()["class_id"]

    week = client.get(
        "/api/schedules/week",
        params={"week_start": "2024-01-08", "view": "instructor", "viewer_id": instructor.id},
    )
    assert week.status_code == 200
    body = week.json()
    assert body["week_end"] == "2024-01-14"
    assert len(body["events"]) == 1
    event = body["events"][0]
    assert event["id"] == class_id
    assert event["class_date"] == "2024-01-10"
    assert event["instructor_name"] == "Kim"
    assert event["student_names"] == ["Lee"]
    assert event["badge_text"] == "[1:1]"

    student_week = client.get(
        "/api/schedules/week",
        params={"week_start": "2024-01-08", "view": "student", "viewer_id": student.id},
    )
    assert [item["id"] for item in student_week.json()["events"]] == [class_id]


def test_conflicting_create_returns_409_with_details(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor()
    student = make_student()
    client.post("/api/schedules", json=_payload(instructor.id, [student.id]), headers=auth_headers)

    # Conflict checks are read-only and need no token.
    check = client.post(
        "/api/schedules/check-conflict",
        json=_payload(instructor.id, [student.id], start_time="10:30", end_time="11:30"),
    )
    assert check.status_code == 200
    assert check.json()["has_conflict"] is True

    response = client.post(
        "/api/schedules",
        json=_payload(instructor.id, [student.id], start_time="10:30", end_time="11:30"),
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["class_id"] is None
    assert len(response.json()["conflict"]["conflicts"]) == 1


def test_malformed_payloads_are_rejected(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor()
    student = make_student()

    bad_order = _payload(instructor.id, [student.id], start_time="11:00", end_time="10:00")
    no_students = _payload(instructor.id, [])
    missing_date = _payload(instructor.id, [student.id], schedule={"mode": "one_off"})
    bad_mode = _payload(instructor.id, [student.id], schedule={"mode": "weekly", "weekday": 1})

    for payload in (bad_order, no_students, missing_date, bad_mode):
        assert client.post("/api/schedules", json=payload, headers=auth_headers).status_code == 422


def test_student_week_requires_viewer(client):
    response = client.get("/api/schedules/week", params={"week_start": "2024-01-08", "view": "student"})

    assert response.status_code == 400
    assert "viewer_id" in response.json()["message"]


def test_day_off_and_missing_rows_map_to_error_codes(client, auth_headers, make_instructor, make_student):
    resting = make_instructor(days_off=[3])
    student = make_student()

    day_off = client.post("/api/schedules", json=_payload(resting.id, [student.id]), headers=auth_headers)
    assert day_off.status_code == 400

    missing = client.patch("/api/schedules/nope/status", json={"status": "confirmed"}, headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["details"]["resource_type"] == "Class"


def test_status_update_and_history(client, auth_headers, make_instructor, make_student):
    created = client.post(
        "/api/schedules", json=_payload(make_instructor().id, [make_student().id]), headers=auth_headers
    ).json()

    updated = client.patch(
        f"/api/schedules/{created['class_id']}/status",
        json={"status": "cancelled", "reason": "sick"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["progress_status"] == "cancelled"

    logs = client.get(f"/api/schedules/{created['class_id']}/status-logs").json()
    assert [(item["status"], item["reason"], item["changed_by"]) for item in logs] == [
        ("cancelled", "sick", "actor-1"),
        ("planned", "created", "actor-1"),
    ]


def test_move_endpoint(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor()
    student = make_student()
    first = client.post("/api/schedules", json=_payload(instructor.id, [student.id]), headers=auth_headers).json()
    client.post(
        "/api/schedules",
        json=_payload(instructor.id, [student.id], schedule={"mode": "recurring", "weekday": 4, "active_from": "2024-01-01"}),
        headers=auth_headers,
    )

    blocked = client.patch(
        f"/api/schedules/{first['class_id']}/move",
        json={"weekday": 4, "start_time": "10:00", "week_start": "2024-01-08"},
        headers=auth_headers,
    )
    assert blocked.status_code == 409
    assert blocked.json()["moved"] is False

    moved = client.patch(
        f"/api/schedules/{first['class_id']}/move",
        json={"weekday": 4, "start_time": "12:00", "week_start": "2024-01-08"},
        headers=auth_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["updated"]["end_time"] == "13:00"


def test_import_endpoints(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor()
    first = make_student("A")
    second = make_student("B")
    row = _payload(instructor.id, [first.id], class_type_code="REGULAR_MULTI")

    assert client.post("/api/schedules/import", json=row, headers=auth_headers).json()["status"] == "created"

    batch = client.post(
        "/api/schedules/import/batch",
        json={"items": [row, _payload(instructor.id, [second.id], class_type_code="REGULAR_MULTI")]},
        headers=auth_headers,
    )
    assert batch.status_code == 200
    assert [item["status"] for item in batch.json()["results"]] == ["existing", "enrolled"]

    clash = client.post(
        "/api/schedules/import",
        json=_payload(instructor.id, [first.id], start_time="10:30", end_time="11:30"),
        headers=auth_headers,
    )
    assert clash.status_code == 409


def test_override_endpoints(client, auth_headers, make_instructor, make_student):
    created = client.post(
        "/api/schedules", json=_payload(make_instructor().id, [make_student().id]), headers=auth_headers
    ).json()
    class_id = created["class_id"]

    put = client.put(f"/api/schedules/{class_id}/overrides/2024-01-10", json={"action": "cancel"}, headers=auth_headers)
    assert put.status_code == 200
    assert put.json()["action"] == "cancel"

    week = client.get("/api/schedules/week", params={"week_start": "2024-01-08"})
    assert week.json()["events"] == []

    listed = client.get(f"/api/schedules/{class_id}/overrides").json()
    assert [item["override_date"] for item in listed] == ["2024-01-10"]

    wrong_day = client.put(
        f"/api/schedules/{class_id}/overrides/2024-01-11", json={"action": "cancel"}, headers=auth_headers
    )
    assert wrong_day.status_code == 400

    deleted = client.delete(f"/api/schedules/{class_id}/overrides/2024-01-10", headers=auth_headers)
    assert deleted.status_code == 200
    assert len(client.get("/api/schedules/week", params={"week_start": "2024-01-08"}).json()["events"]) == 1


def test_options_and_days_off(client, auth_headers, make_instructor, make_student):
    instructor = make_instructor("Kim")
    make_student("Lee", default_instructor_id=instructor.id)

    updated = client.patch(
        f"/api/instructors/{instructor.id}/days-off", json={"days_off": [7, 6, 6]}, headers=auth_headers
    )
    assert updated.status_code == 200
    assert updated.json()["days_off"] == [6, 7]

    invalid = client.patch(f"/api/instructors/{instructor.id}/days-off", json={"days_off": [0]}, headers=auth_headers)
    assert invalid.status_code == 422

    options = client.get("/api/options").json()
    assert options["instructors"] == [{"id": instructor.id, "name": "Kim", "days_off": [6, 7]}]
    assert options["students"][0]["default_instructor_id"] == instructor.id
    assert {item["code"] for item in options["class_types"]} == {"ONE_TO_ONE", "TWO_TO_ONE", "REGULAR_MULTI", "SPECIAL"}


def test_compatibility_rule_endpoints(client, auth_headers):
    rules = client.get("/api/compatibility-rules")
    assert rules.status_code == 200
    assert len(rules.json()) == 16

    contradiction = client.put(
        "/api/compatibility-rules",
        json={"class_type_a": "SPECIAL", "class_type_b": "ONE_TO_ONE", "is_compatible": True},
        headers=auth_headers,
    )
    assert contradiction.status_code == 409

    updated = client.put(
        "/api/compatibility-rules",
        json={"class_type_a": "SPECIAL", "class_type_b": "SPECIAL", "is_compatible": False, "reason": "No doubling"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["reason"] == "No doubling"


def test_subject_endpoints(client, auth_headers):
    listed = client.get("/api/subjects")
    assert listed.status_code == 200
    assert [item["code"] for item in listed.json()] == ["ENGLISH", "MATH"]

    payload = {"code": "sat prep", "display_name": " SAT Prep "}
    assert client.post("/api/subjects", json=payload).status_code in {401, 403}

    created = client.post("/api/subjects", json=payload, headers=auth_headers)
    assert created.status_code == 201
    assert created.json() == {"code": "SAT_PREP", "display_name": "SAT Prep"}

    blank = client.post("/api/subjects", json={"code": "x", "display_name": "   "}, headers=auth_headers)
    assert blank.status_code == 422

    renamed = client.patch("/api/subjects/sat_prep", json={"display_name": "SAT"}, headers=auth_headers)
    assert renamed.status_code == 200
    assert renamed.json()["display_name"] == "SAT"

    missing = client.patch("/api/subjects/HISTORY", json={"display_name": "History"}, headers=auth_headers)
    assert missing.status_code == 404

    deleted = client.delete("/api/subjects/SAT_PREP", headers=auth_headers)
    assert deleted.status_code == 200
    assert [item["code"] for item in client.get("/api/subjects").json()] == ["ENGLISH", "MATH"]


def test_subject_in_use_cannot_be_deleted(client, auth_headers, make_instructor, make_student):
    client.post("/api/schedules", json=_payload(make_instructor().id, [make_student().id]), headers=auth_headers)

    response = client.delete("/api/subjects/MATH", headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["details"]["code"] == "MATH"
