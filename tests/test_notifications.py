# /tests/test_notifications.py


def assign(client, teacher, task_id, student_id):
    response = client.put(f"/api/academic/tasks/{task_id}/assign", json={"assigned_to_id": student_id},
                          headers=teacher["headers"])
    assert response.status_code == 200


def test_list_newest_first_with_task_title(client, make_teacher, make_student, make_task):
    teacher = make_teacher()
    student = make_student()
    first = make_task(teacher, title="Essay")
    second = make_task(teacher, title="Lab")
    assign(client, teacher, first["id"], student["id"])
    assign(client, teacher, second["id"], student["id"])

    notes = client.get("/api/notifications", headers=student["headers"]).json()
    assert [n["task_title"] for n in notes] == ["Lab", "Essay"]
    assert all(n["user_id"] == student["id"] for n in notes)
    assert all(n["is_read"] is False for n in notes)


def test_notifications_are_private(client, make_teacher, make_student, make_task):
    teacher = make_teacher()
    s1, s2 = make_student(), make_student()
    task = make_task(teacher)
    assign(client, teacher, task["id"], s1["id"])

    assert client.get("/api/notifications", headers=s2["headers"]).json() == []
    note_id = client.get("/api/notifications", headers=s1["headers"]).json()[0]["id"]

    response = client.post(f"/api/notifications/{note_id}/mark-read", headers=s2["headers"])
    assert response.status_code == 404
    assert response.json()["detail"] == "Notification not found"

    still_unread = client.get("/api/notifications", headers=s1["headers"]).json()[0]
    assert still_unread["is_read"] is False


def test_mark_read(client, make_teacher, make_student, make_task):
    teacher = make_teacher()
    student = make_student()
    task = make_task(teacher, title="Essay")
    assign(client, teacher, task["id"], student["id"])
    note_id = client.get("/api/notifications", headers=student["headers"]).json()[0]["id"]

    response = client.post(f"/api/notifications/{note_id}/mark-read", headers=student["headers"])
    assert response.status_code == 200
    assert response.json()["is_read"] is True
    assert response.json()["task_title"] == "Essay"

    assert client.post("/api/notifications/9999/mark-read", headers=student["headers"]).status_code == 404


def test_mark_all_read_only_touches_own(client, make_teacher, make_student, make_task):
    teacher = make_teacher()
    s1, s2 = make_student(), make_student()
    for title in ("A", "B"):
        task = make_task(teacher, title=title)
        assign(client, teacher, task["id"], s1["id"])
    other = make_task(teacher, title="C")
    assign(client, teacher, other["id"], s2["id"])

    response = client.post("/api/notifications/mark-all-read", headers=s1["headers"])
    assert response.status_code == 200

    assert all(n["is_read"] for n in client.get("/api/notifications", headers=s1["headers"]).json())
    assert not client.get("/api/notifications", headers=s2["headers"]).json()[0]["is_read"]


def test_notifications_survive_task_deletion(client, make_teacher, make_student, make_task):
    teacher = make_teacher()
    student = make_student()
    task = make_task(teacher, title="Essay")
    assign(client, teacher, task["id"], student["id"])

    response = client.delete(f"/api/academic/tasks/{task['id']}", headers=teacher["headers"])
    assert response.status_code == 200

    notes = client.get("/api/notifications", headers=student["headers"]).json()
    assert len(notes) == 1
    assert notes[0]["task_id"] == task["id"]
    assert notes[0]["task_title"] is None
    assert notes[0]["message"] == "You have been assigned to task: Essay"

    marked = client.post(f"/api/notifications/{notes[0]['id']}/mark-read", headers=student["headers"])
    assert marked.status_code == 200
    assert marked.json()["is_read"] is True
    assert marked.json()["task_title"] is None


def test_notifications_require_authentication(client):
    assert client.get("/api/notifications").status_code == 401
