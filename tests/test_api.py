import pytest


@pytest.fixture
def board_id(client, alice):
    resp = client.post("/v1/boards", json={"title": "Roadmap"}, headers=alice)
    assert resp.status_code == 201
    return resp.json()["id"]


def add_list(client, headers, board_id, title):
    resp = client.post(f"/v1/boards/{board_id}/lists", json={"title": title}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def add_card(client, headers, list_id, title):
    resp = client.post(f"/v1/lists/{list_id}/cards", json={"title": title}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def get_board(client, headers, board_id):
    resp = client.get(f"/v1/boards/{board_id}", headers=headers)
    assert resp.status_code == 200
    return resp.json()


def test_boards_are_listed_for_owner_only(client, alice, bob, board_id):
    assert [b["id"] for b in client.get("/v1/boards", headers=alice).json()] == [board_id]
    assert client.get("/v1/boards", headers=bob).json() == []
    assert client.get(f"/v1/boards/{board_id}", headers=bob).status_code == 403


def test_members_can_read_and_write(client, alice, bob, board_id):
    resp = client.post(f"/v1/boards/{board_id}/members", json={"userId": "bob"}, headers=alice)
    assert resp.status_code == 201
    assert client.get(f"/v1/boards/{board_id}", headers=bob).json()["members"] == ["bob"]
    add_list(client, bob, board_id, "Todo")
    assert client.post(f"/v1/boards/{board_id}/members", json={"userId": "carol"}, headers=bob).status_code == 403


def test_creation_appends_with_gap(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    done = add_list(client, alice, board_id, "Done")
    assert (todo["order"], done["order"]) == (100, 200)
    first = add_card(client, alice, todo["id"], "one")
    second = add_card(client, alice, todo["id"], "two")
    assert (first["order"], second["order"]) == (100, 200)
    assert first["creator"] == "alice"


def test_board_is_nested_and_sorted(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    done = add_list(client, alice, board_id, "Done")
    one = add_card(client, alice, todo["id"], "one")
    two = add_card(client, alice, todo["id"], "two")
    resp = client.post(f"/v1/cards/{two['id']}:move", json={"listId": todo["id"], "order": 50}, headers=alice)
    assert resp.status_code == 200
    client.post(f"/v1/lists/{done['id']}:move", json={"order": 50}, headers=alice)

    board = get_board(client, alice, board_id)
    assert [lst["title"] for lst in board["lists"]] == ["Done", "Todo"]
    assert [c["id"] for c in board["lists"][1]["cards"]] == [two["id"], one["id"]]


def test_move_card_across_lists(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    done = add_list(client, alice, board_id, "Done")
    card = add_card(client, alice, todo["id"], "one")
    resp = client.post(f"/v1/cards/{card['id']}:move", json={"listId": done["id"], "order": 100}, headers=alice)
    assert resp.json()["listId"] == done["id"]
    board = get_board(client, alice, board_id)
    assert board["lists"][0]["cards"] == []
    assert [c["id"] for c in board["lists"][1]["cards"]] == [card["id"]]


def test_move_card_to_other_board_conflicts(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    card = add_card(client, alice, todo["id"], "one")
    other = client.post("/v1/boards", json={"title": "Other"}, headers=alice).json()["id"]
    elsewhere = add_list(client, alice, other, "Elsewhere")
    resp = client.post(f"/v1/cards/{card['id']}:move", json={"listId": elsewhere["id"], "order": 1}, headers=alice)
    assert resp.status_code == 409


def test_unknown_ids_are_404(client, alice):
    assert client.get("/v1/boards/missing", headers=alice).status_code == 404
    assert client.post("/v1/cards/missing:move", json={"listId": "x", "order": 1}, headers=alice).status_code == 404
    assert client.delete("/v1/lists/missing", headers=alice).status_code == 404


def test_update_card_labels_and_due_date(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    card = add_card(client, alice, todo["id"], "one")
    payload = {
        "labels": [{"name": "emerald", "color": "#10b981"}, {"name": "rose", "color": "#f43f5e"}],
        "dueDate": "2026-12-24T09:00:00Z",
        "description": "  wrap presents ",
    }
    resp = client.patch(f"/v1/cards/{card['id']}", json=payload, headers=alice)
    assert resp.status_code == 200
    body = resp.json()
    assert [label["name"] for label in body["labels"]] == ["emerald", "rose"]
    assert body["dueDate"].startswith("2026-12-24T09:00:00")
    assert body["description"] == "wrap presents"
    assert body["title"] == "one"

    cleared = client.patch(f"/v1/cards/{card['id']}", json={"dueDate": None}, headers=alice).json()
    assert cleared["dueDate"] is None
    assert len(cleared["labels"]) == 2


def test_duplicate_label_names_rejected(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    card = add_card(client, alice, todo["id"], "one")
    labels = [{"name": "blue", "color": "#3b82f6"}, {"name": "blue", "color": "#000000"}]
    resp = client.patch(f"/v1/cards/{card['id']}", json={"labels": labels}, headers=alice)
    assert resp.status_code == 422


def test_non_finite_order_rejected(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    resp = client.post(
        f"/v1/lists/{todo['id']}:move",
        content='{"order": Infinity}',
        headers={**alice, "Content-Type": "application/json"},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"][0]["loc"] == ["body", "order"]
    card = add_card(client, alice, todo["id"], "one")
    resp = client.post(
        f"/v1/cards/{card['id']}:move",
        content='{"listId": "' + todo["id"] + '", "order": -Infinity}',
        headers={**alice, "Content-Type": "application/json"},
    )
    assert resp.status_code == 422
    assert all("input" not in err for err in resp.json()["detail"])


def test_delete_list_cascades_cards(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    card = add_card(client, alice, todo["id"], "one")
    assert client.delete(f"/v1/lists/{todo['id']}", headers=alice).status_code == 204
    assert get_board(client, alice, board_id)["lists"] == []
    assert client.patch(f"/v1/cards/{card['id']}", json={"title": "x"}, headers=alice).status_code == 404


def test_delete_board_owner_only(client, alice, bob, board_id):
    client.post(f"/v1/boards/{board_id}/members", json={"userId": "bob"}, headers=alice)
    assert client.delete(f"/v1/boards/{board_id}", headers=bob).status_code == 403
    assert client.delete(f"/v1/boards/{board_id}", headers=alice).status_code == 204
    assert client.get(f"/v1/boards/{board_id}", headers=alice).status_code == 404


def test_audit_trail_newest_first(client, alice, board_id):
    todo = add_list(client, alice, board_id, "Todo")
    card = add_card(client, alice, todo["id"], "one")
    client.post(f"/v1/cards/{card['id']}:move", json={"listId": todo["id"], "order": 300}, headers=alice)

    events = client.get(f"/v1/boards/{board_id}/audit-logs", headers=alice).json()
    assert [(e["action"], e["entityType"]) for e in events] == [
        ("move", "Card"),
        ("create", "Card"),
        ("create", "List"),
        ("create", "Board"),
    ]
    assert events[0]["metadata"] == {"fromListId": todo["id"], "toListId": todo["id"], "order": 300}
    assert events[0]["user"] == "alice"

    limited = client.get(f"/v1/boards/{board_id}/audit-logs?limit=1", headers=alice).json()
    assert len(limited) == 1
