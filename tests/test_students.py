import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_and_get_student(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/students",
        json={
            "student_number": "JSS1A001",
            "first_name": "Adebayo",
            "last_name": "Ogundimu",
            "gender": "male",
            "parent_email": "folake@example.com",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Student created successfully"
    student = body["data"]
    assert student["status"] == "active"

    response = await client.get(f"/api/students/{student['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["first_name"] == "Adebayo"


@pytest.mark.asyncio
async def test_create_student_validation(client: AsyncClient, admin_headers) -> None:
    response = await client.post("/api/students", json={"first_name": "NoNumber"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_duplicate_student_number(client: AsyncClient, admin_headers, create_student) -> None:
    await create_student("JSS1A001")
    response = await client.post(
        "/api/students",
        json={"student_number": "JSS1A001", "first_name": "B", "last_name": "C"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Student number already exists"


@pytest.mark.asyncio
async def test_get_missing_student(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/students/9999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Student not found"}


@pytest.mark.asyncio
async def test_list_filters_and_search(client: AsyncClient, admin_headers, create_student) -> None:
    classes = (await client.get("/api/classes", headers=admin_headers)).json()["data"]
    jss1a = next(c["id"] for c in classes if c["name"] == "JSS1A")
    await create_student("JSS1A001", "Chioma", "Okwu", class_id=jss1a)
    await create_student("JSS1A002", "Ibrahim", "Musa", class_id=jss1a)
    await create_student("JSS2A001", "Funmi", "Adeyemi")

    response = await client.get(f"/api/students?class_id={jss1a}", headers=admin_headers)
    body = response.json()
    assert body["total"] == 2
    assert [s["last_name"] for s in body["data"]] == ["Musa", "Okwu"]
    assert body["data"][0]["class_name"] == "JSS1A"
    assert body["pagination"] == {"limit": 50, "offset": 0}

    response = await client.get("/api/students?search=funm", headers=admin_headers)
    assert [s["student_number"] for s in response.json()["data"]] == ["JSS2A001"]

    response = await client.get("/api/students/search/JSS1A", headers=admin_headers)
    assert response.json()["total"] == 2

    response = await client.get(f"/api/students/class/{jss1a}", headers=admin_headers)
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_partial_update(client: AsyncClient, admin_headers, create_student) -> None:
    student = await create_student("JSS1A001", "Kemi", "Adebisi", parent_name="Dr. Adebisi")
    response = await client.put(
        f"/api/students/{student['id']}",
        json={"parent_phone": "080-1234-5005", "unknown_field": "ignored"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["parent_phone"] == "080-1234-5005"
    assert data["parent_name"] == "Dr. Adebisi"
    assert data["first_name"] == "Kemi"
    assert "unknown_field" not in data

    response = await client.put(f"/api/students/{student['id']}", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"

    response = await client.put("/api/students/9999", json={"notes": "x"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_change_and_soft_delete(
    client: AsyncClient, admin_headers, teacher_headers, create_student
) -> None:
    student = await create_student("JSS3A001")

    response = await client.patch(
        f"/api/students/{student['id']}/status", json={"status": "graduated"}, headers=teacher_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "graduated"

    response = await client.patch(
        f"/api/students/{student['id']}/status", json={"status": "expelled"}, headers=teacher_headers
    )
    assert response.status_code == 400

    response = await client.delete(f"/api/students/{student['id']}", headers=teacher_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/students/{student['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Student deactivated successfully"

    response = await client.get(f"/api/students/{student['id']}", headers=admin_headers)
    assert response.json()["data"]["status"] == "inactive"

    response = await client.get("/api/students", headers=admin_headers)
    assert response.json()["total"] == 0
    response = await client.get("/api/students?status=inactive", headers=admin_headers)
    assert response.json()["total"] == 1

    response = await client.delete("/api/students/9999", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bulk_create(client: AsyncClient, teacher_headers) -> None:
    response = await client.post(
        "/api/students/bulk",
        json=[
            {"student_number": "JSS1B001", "first_name": "Tunde", "last_name": "Bakare"},
            {"student_number": "JSS1B001", "first_name": "Dup", "last_name": "Licate"},
            {"first_name": "Missing", "last_name": "Number"},
        ],
        headers=teacher_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total": 3, "successful": 1, "failed": 2}
    assert body["message"] == "Bulk import completed: 1 successful, 2 failed"
    assert body["results"][1]["error"] == "Student number already exists"
    assert body["results"][2]["error"] == "Missing required fields: student_number, first_name, last_name"

    response = await client.post("/api/students/bulk", json=[], headers=teacher_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_student_attendance_and_grades(client: AsyncClient, admin_headers, create_student) -> None:
    student = await create_student("JSS2B001")
    await client.post(
        "/api/attendance",
        json=[
            {"student_id": student["id"], "date": "2024-09-16", "status": "present"},
            {"student_id": student["id"], "date": "2024-09-17", "status": "late"},
        ],
        headers=admin_headers,
    )

    response = await client.get(
        f"/api/students/{student['id']}/attendance?start_date=2024-09-17", headers=admin_headers
    )
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["status"] == "late"

    response = await client.get(f"/api/students/{student['id']}/grades", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "total": 0}


@pytest.mark.asyncio
async def test_classes_list_and_detail(client: AsyncClient, admin_headers, create_student) -> None:
    classes = (await client.get("/api/classes", headers=admin_headers)).json()["data"]
    assert [c["name"] for c in classes] == ["JSS1A", "JSS1B", "JSS2A", "JSS2B", "JSS3A", "JSS3B"]

    jss3a = next(c["id"] for c in classes if c["name"] == "JSS3A")
    await create_student("JSS3A001", "Folake", "Ogundipe", class_id=jss3a)
    gone = await create_student("JSS3A002", "Murtala", "Sani", class_id=jss3a)
    await client.delete(f"/api/students/{gone['id']}", headers=admin_headers)

    response = await client.get(f"/api/classes/{jss3a}", headers=admin_headers)
    data = response.json()["data"]
    assert data["student_count"] == 1
    assert [s["student_number"] for s in data["students"]] == ["JSS3A001"]

    response = await client.get("/api/classes/9999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Class not found"


@pytest.mark.asyncio
async def test_unknown_class_is_rejected(client: AsyncClient, admin_headers, create_student) -> None:
    response = await client.post(
        "/api/students",
        json={"student_number": "JSS1A050", "first_name": "Bola", "last_name": "Ade", "class_id": 9999},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Class not found"

    student = await create_student("JSS1A051")
    response = await client.put(
        f"/api/students/{student['id']}", json={"class_id": 9999}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Class not found"


@pytest.mark.asyncio
async def test_update_rejects_null_required_fields(client: AsyncClient, admin_headers, create_student) -> None:
    student = await create_student("JSS1A052", "Sade", "Bello")
    for field in ("first_name", "last_name", "student_number"):
        response = await client.put(
            f"/api/students/{student['id']}", json={field: None}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    response = await client.get(f"/api/students/{student['id']}", headers=admin_headers)
    assert response.json()["data"]["first_name"] == "Sade"
