"""Integration tests for the server-rendered pages and the Excel export."""

from io import BytesIO

import openpyxl

from daywheel.main import COOKIE_NAME

DAY = "2024-05-01"


def login(client, nickname="mika", action="register"):
    return client.post("/login", data={"nickname": nickname, "action": action}, follow_redirects=False)


def test_pages_require_login(client) -> None:
    for path in ("/", "/categories", "/export/excel"):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


def test_register_and_login(client) -> None:
    response = login(client)
    assert response.status_code == 303
    assert COOKIE_NAME in response.cookies

    client.cookies.clear()
    assert login(client, action="register").status_code == 400
    assert login(client, action="login").status_code == 303
    assert login(client, nickname="nobody", action="login").status_code == 400


def test_dashboard_shows_day(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()
    categories = client.get(f"/api/users/{user['id']}/categories").json()

    response = client.post(
        "/activities/add",
        data={
            "date_value": DAY,
            "category_id": categories[0]["id"],
            "start_hour": 9,
            "end_hour": 17,
            "title": "Shipping",
        },
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == f"/?day={DAY}"

    page = client.get("/", params={"day": DAY})
    assert page.status_code == 200
    assert "Shipping" in page.text
    assert "33%" in page.text
    assert page.text.count("<path") == 24


def test_add_activity_validates_hours(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()
    category_id = client.get(f"/api/users/{user['id']}/categories").json()[0]["id"]

    response = client.post(
        "/activities/add",
        data={"date_value": DAY, "category_id": category_id, "start_hour": 12, "end_hour": 8},
    )
    assert response.status_code == 400


def test_category_pages(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()

    assert client.post("/categories/add", data={"name": "Reading", "color": "#E74C3C"},
                       follow_redirects=False).status_code == 303
    categories = client.get(f"/api/users/{user['id']}/categories").json()
    reading = categories[-1]
    assert reading["name"] == "Reading"

    client.post(f"/categories/{reading['id']}/edit", data={"name": "Books", "color": "#E74C3C"})
    assert "Books" in client.get("/categories").text

    client.post("/activities/add", data={"date_value": DAY, "category_id": reading["id"],
                                         "start_hour": 20, "end_hour": 22})
    assert client.post(f"/categories/{reading['id']}/delete").status_code == 400


def test_export_excel(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()
    category_id = client.get(f"/api/users/{user['id']}/categories").json()[1]["id"]
    client.post("/activities/add", data={"date_value": DAY, "category_id": category_id,
                                         "start_hour": 0, "end_hour": 6, "notes": "early night"})

    response = client.get("/export/excel", params={"day": DAY})
    assert response.status_code == 200
    assert f"activities_{DAY}.xlsx" in response.headers["content-disposition"]

    wb = openpyxl.load_workbook(BytesIO(response.content))
    rows = list(wb["Activities"].iter_rows(values_only=True))
    assert rows[1][:6] == (DAY, "Sleep", "Activity", "00:00", "06:00", 6)
    summary = {row[0]: row[2:] for row in wb["Summary"].iter_rows(min_row=2, values_only=True)}
    assert summary["Sleep"] == (6, 25)
    assert summary["Work"] == (0, 0)


def test_edit_activity(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()
    work, sleep = client.get(f"/api/users/{user['id']}/categories").json()[:2]
    client.post("/activities/add", data={"date_value": DAY, "category_id": work["id"],
                                         "start_hour": 9, "end_hour": 12})
    activity = client.get(f"/api/users/{user['id']}/activities", params={"date": DAY}).json()[0]

    page = client.get("/", params={"day": DAY})
    assert f'action="/activities/{activity["id"]}/edit"' in page.text

    response = client.post(
        f"/activities/{activity['id']}/edit",
        data={"category_id": sleep["id"], "start_hour": 13, "end_hour": 18, "notes": "siesta"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == f"/?day={DAY}"

    edited = client.get(f"/api/users/{user['id']}/activities", params={"date": DAY}).json()[0]
    assert (edited["categoryId"], edited["startHour"], edited["endHour"]) == (sleep["id"], 13, 18)
    assert edited["notes"] == "siesta"


def test_edit_activity_rejects_bad_input(client) -> None:
    login(client)
    user = client.get("/api/users/mika").json()
    work = client.get(f"/api/users/{user['id']}/categories").json()[0]
    client.post("/activities/add", data={"date_value": DAY, "category_id": work["id"],
                                         "start_hour": 9, "end_hour": 12})
    activity_id = client.get(f"/api/users/{user['id']}/activities", params={"date": DAY}).json()[0]["id"]

    backwards = client.post(f"/activities/{activity_id}/edit",
                            data={"category_id": work["id"], "start_hour": 15, "end_hour": 10})
    assert backwards.status_code == 400

    other = client.post("/api/users", json={"nickname": "sora"}).json()
    foreign = client.get(f"/api/users/{other['id']}/categories").json()[0]
    moved = client.post(f"/activities/{activity_id}/edit",
                        data={"category_id": foreign["id"], "start_hour": 9, "end_hour": 12})
    assert moved.status_code == 404

    unchanged = client.get(f"/api/users/{user['id']}/activities", params={"date": DAY}).json()[0]
    assert (unchanged["categoryId"], unchanged["startHour"], unchanged["endHour"]) == (work["id"], 9, 12)


def test_cannot_edit_someone_elses_activity(client) -> None:
    login(client, nickname="sora")
    sora = client.get("/api/users/sora").json()
    category_id = client.get(f"/api/users/{sora['id']}/categories").json()[0]["id"]
    client.post("/activities/add", data={"date_value": DAY, "category_id": category_id,
                                         "start_hour": 1, "end_hour": 2})
    activity_id = client.get(f"/api/users/{sora['id']}/activities", params={"date": DAY}).json()[0]["id"]

    client.cookies.clear()
    login(client, nickname="mika")
    mika = client.get("/api/users/mika").json()
    own_category = client.get(f"/api/users/{mika['id']}/categories").json()[0]["id"]
    response = client.post(f"/activities/{activity_id}/edit",
                           data={"category_id": own_category, "start_hour": 3, "end_hour": 4})
    assert response.status_code == 404
