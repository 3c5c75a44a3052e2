"""Tests for the todo endpoints."""

from __future__ import annotations

import pytest


def _create(client, headers, title, **fields):
    response = client.post("/api/todos", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["todo"]


@pytest.fixture
def project(client, auth_headers):
    """A three-level tree plus one standalone todo."""

    root = _create(client, auth_headers, "Launch", dueDate="2024-05-01")
    design = _create(client, auth_headers, "Design", parentId=root["id"], completed=True)
    copy = _create(client, auth_headers, "Copy", parentId=design["id"], notes="ask marketing")
    build = _create(client, auth_headers, "Build", parentId=root["id"], priority="high")
    chore = _create(client, auth_headers, "Groceries", priority="low", dueDate="2024-04-01")
    return {"root": root, "design": design, "copy": copy, "build": build, "chore": chore}


def _tree(client, headers, query=""):
    response = client.get(f"/api/todos{query}", headers=headers)
    assert response.status_code == 200, response.get_json()
    return response.get_json()["tree"]


def test_create_defaults(client, auth_headers):
    todo = _create(client, auth_headers, "  Write tests  ")
    assert todo["title"] == "Write tests"
    assert todo["priority"] == "medium"
    assert todo["completed"] is False
    assert todo["parentId"] is None
    assert todo["dueDate"] is None
    assert todo["createdAt"]


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"title": "   "}, "Title is required"),
        ({"title": "x", "priority": "urgent"}, "Invalid priority. Must be high, medium, or low"),
        ({"title": "x", "dueDate": "tomorrow"}, "dueDate must be a YYYY-MM-DD date"),
    ],
)
def test_create_validation(client, auth_headers, payload, message):
    response = client.post("/api/todos", json=payload, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == message


def test_create_under_missing_parent(client, auth_headers):
    response = client.post("/api/todos", json={"title": "x", "parentId": "999"}, headers=auth_headers)
    assert response.status_code == 404


def test_list_returns_flat_rows_and_tree(client, auth_headers, project):
    body = client.get("/api/todos", headers=auth_headers).get_json()
    assert len(body["todos"]) == 5
    tree = body["tree"]
    assert [node["title"] for node in tree] == ["Groceries", "Launch"]
    launch = tree[1]
    assert launch["progress"] == 33
    assert [child["title"] for child in launch["children"]] == ["Design", "Build"]
    design = launch["children"][0]
    assert design["progress"] == 0
    assert design["children"][0]["title"] == "Copy"


def test_search_keeps_matching_branch(client, auth_headers, project):
    tree = _tree(client, auth_headers, "?q=MARKETING")
    assert [node["title"] for node in tree] == ["Launch"]
    assert [child["title"] for child in tree[0]["children"]] == ["Design"]
    assert [child["title"] for child in tree[0]["children"][0]["children"]] == ["Copy"]


def test_filters_and_sort(client, auth_headers, project):
    high = _tree(client, auth_headers, "?priority=high")
    assert [node["title"] for node in high] == ["Launch"]
    assert [child["title"] for child in high[0]["children"]] == ["Build"]

    done = _tree(client, auth_headers, "?status=done")
    assert [child["title"] for child in done[0]["children"]] == ["Design"]

    by_title = _tree(client, auth_headers, "?sort=title")
    assert [node["title"] for node in by_title] == ["Groceries", "Launch"]
    assert [child["title"] for child in by_title[1]["children"]] == ["Build", "Design"]

    by_due = _tree(client, auth_headers, "?sort=dueDesc&priority=all")
    assert [node["title"] for node in by_due] == ["Launch", "Groceries"]


@pytest.mark.parametrize("query", ["?status=later", "?sort=random", "?priority=urgent"])
def test_list_rejects_bad_query(client, auth_headers, query):
    assert client.get(f"/api/todos{query}", headers=auth_headers).status_code == 400


def test_update_is_partial(client, auth_headers, project):
    todo_id = project["build"]["id"]
    response = client.put(f"/api/todos/{todo_id}", json={"completed": True}, headers=auth_headers)
    todo = response.get_json()["todo"]
    assert todo["completed"] is True
    assert todo["priority"] == "high"
    assert todo["parentId"] == project["root"]["id"]

    cleared = client.put(f"/api/todos/{todo_id}", json={"dueDate": None}, headers=auth_headers)
    assert cleared.get_json()["todo"]["dueDate"] is None

    tree = _tree(client, auth_headers)
    assert tree[1]["progress"] == 67


@pytest.mark.parametrize("patch", [{"title": ""}, {"completed": None}, {"priority": "urgent"}])
def test_update_validation(client, auth_headers, project, patch):
    response = client.put(f"/api/todos/{project['chore']['id']}", json=patch, headers=auth_headers)
    assert response.status_code == 400


def test_delete_removes_subtree(client, auth_headers, project):
    response = client.delete(f"/api/todos/{project['design']['id']}", headers=auth_headers)
    body = response.get_json()
    assert body["message"] == "Todo deleted successfully"
    assert body["deleted"] == [project["design"]["id"], project["copy"]["id"]]

    titles = [row["title"] for row in client.get("/api/todos", headers=auth_headers).get_json()["todos"]]
    assert sorted(titles) == ["Build", "Groceries", "Launch"]
    assert client.delete(f"/api/todos/{project['copy']['id']}", headers=auth_headers).status_code == 404


def test_move_reorders_siblings(client, auth_headers, project):
    response = client.post(
        f"/api/todos/{project['build']['id']}/move", json={"index": 0}, headers=auth_headers
    )
    assert response.status_code == 200
    launch = _tree(client, auth_headers)[1]
    assert [child["title"] for child in launch["children"]] == ["Build", "Design"]

    rows = client.get("/api/todos", headers=auth_headers).get_json()["todos"]
    children = [row["title"] for row in rows if row["parentId"] == project["root"]["id"]]
    assert children == ["Build", "Design"]


def test_move_reparents(client, auth_headers, project):
    response = client.post(
        f"/api/todos/{project['chore']['id']}/move",
        json={"parentId": project["build"]["id"]},
        headers=auth_headers,
    )
    assert response.get_json()["todo"]["parentId"] == project["build"]["id"]

    tree = _tree(client, auth_headers)
    assert [node["title"] for node in tree] == ["Launch"]
    build = tree[0]["children"][1]
    assert [child["title"] for child in build["children"]] == ["Groceries"]

    back = client.post(
        f"/api/todos/{project['chore']['id']}/move", json={"parentId": None}, headers=auth_headers
    )
    assert back.get_json()["todo"]["parentId"] is None


def test_move_beneath_itself_is_rejected(client, auth_headers, project):
    response = client.post(
        f"/api/todos/{project['root']['id']}/move",
        json={"parentId": project["copy"]["id"]},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "A task cannot be moved beneath itself"


def test_todos_are_private(client, auth_headers, signup, project):
    bob = signup("bob")
    body = client.get("/api/todos", headers=bob).get_json()
    assert body["todos"] == [] and body["tree"] == []
    todo_id = project["chore"]["id"]
    assert client.put(f"/api/todos/{todo_id}", json={"title": "x"}, headers=bob).status_code == 404
    assert client.delete(f"/api/todos/{todo_id}", headers=bob).status_code == 404
    assert client.post(f"/api/todos/{todo_id}/move", json={}, headers=bob).status_code == 404
    assert (
        client.post("/api/todos", json={"title": "x", "parentId": todo_id}, headers=bob).status_code
        == 404
    )
