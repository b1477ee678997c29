# tests/test_layouts_api.py
from conftest import ADMIN, add_widget, checkout, key, make_layout

from signage import storage


def _playlist_id(layout, idx=0):
    return layout["regions"][idx]["regionPlaylist"]["playlistId"]


def test_new_layout_has_one_full_size_region(client):
    layout = make_layout(client, width=1280, height=720)
    assert layout["publishedStatusId"] == 1
    assert len(layout["regions"]) == 1
    region = layout["regions"][0]
    assert (region["width"], region["height"]) == (1280, 720)
    assert layout["status"] == 3  # empty region


def test_published_layout_cannot_be_edited(client):
    layout = make_layout(client)
    r = client.post(f"/region/{layout['layoutId']}", json={}, headers=ADMIN)
    assert r.status_code == 422
    assert r.get_json()["message"] == "This Layout is not a Draft, please checkout."
    r = client.post(f"/playlist/widget/{_playlist_id(layout)}", json={"type": "text"}, headers=ADMIN)
    assert r.status_code == 422


def test_checkout_creates_draft_with_new_ids(client):
    layout = make_layout(client)
    draft = checkout(client, layout["layoutId"])
    assert draft["publishedStatusId"] == 2
    assert draft["parentId"] == layout["layoutId"]
    assert draft["layoutId"] != layout["layoutId"]
    assert draft["regions"][0]["regionId"] != layout["regions"][0]["regionId"]
    assert draft["regions"][0]["isEditable"] is True

    # second checkout of the same layout is refused on the draft itself
    r = client.put(f"/layout/checkout/{draft['layoutId']}", headers=ADMIN)
    assert r.status_code == 422


def test_search_hides_drafts_unless_asked(client):
    layout = make_layout(client)
    checkout(client, layout["layoutId"])
    grid = client.get("/layout", headers=ADMIN).get_json()
    assert [l["layoutId"] for l in grid["data"]] == [layout["layoutId"]]
    grid = client.get("/layout", query_string={"showDrafts": 1}, headers=ADMIN).get_json()
    assert len(grid["data"]) == 2


def test_publish_copies_draft_onto_parent(client):
    layout = make_layout(client)
    draft = checkout(client, layout["layoutId"])
    add_widget(client, _playlist_id(draft), duration=15)

    r = client.put(f"/layout/publish/{layout['layoutId']}", headers=ADMIN)
    assert r.status_code == 200
    published = r.get_json()["data"]
    assert published["layoutId"] == layout["layoutId"]
    assert published["duration"] == 15
    assert published["status"] == 1
    assert client.get(f"/layout/{draft['layoutId']}", headers=ADMIN).status_code == 404


def test_discard_drops_draft(client):
    layout = make_layout(client)
    draft = checkout(client, layout["layoutId"])
    add_widget(client, _playlist_id(draft))
    r = client.put(f"/layout/discard/{layout['layoutId']}", headers=ADMIN)
    assert r.status_code == 200
    assert r.get_json()["data"]["regions"][0]["regionPlaylist"]["widgets"] == []
    assert client.get(f"/layout/{draft['layoutId']}", headers=ADMIN).status_code == 404
    r = client.put(f"/layout/discard/{layout['layoutId']}", headers=ADMIN)
    assert r.status_code == 422


def test_status_reports_durations_and_loops(client):
    layout = make_layout(client)
    draft = checkout(client, layout["layoutId"])
    pid = _playlist_id(draft)
    add_widget(client, pid, duration=10)
    add_widget(client, pid, duration=20)
    r = client.post(f"/region/{draft['layoutId']}", json={"width": 100, "height": 100}, headers=ADMIN)
    region = r.get_json()["data"]
    add_widget(client, region["regionPlaylist"]["playlistId"], duration=5)
    add_widget(client, region["regionPlaylist"]["playlistId"], duration=5)

    st = client.get(f"/layout/status/{draft['layoutId']}", headers=ADMIN).get_json()["data"]
    assert st["status"] == 1
    assert st["duration"] == 30
    regions = {int(k): v for k, v in st["regions"].items()}
    assert regions[region["regionId"]]["loop"] is True
    assert regions[draft["regions"][0]["regionId"]]["loop"] is False


def test_empty_region_reported(client):
    layout = make_layout(client, name="Empty")
    st = client.get(f"/layout/status/{layout['layoutId']}", headers=ADMIN).get_json()["data"]
    assert st["status"] == 3
    assert st["statusMessage"] == [f"Empty Region: {layout['regions'][0]['name']}"]


def test_transform_region_sets_loop_option(client):
    draft = checkout(client, make_layout(client)["layoutId"])
    region_id = draft["regions"][0]["regionId"]
    r = client.put(f"/region/{region_id}", json={"width": 640, "loop": 1}, headers=ADMIN)
    assert r.status_code == 200
    region = r.get_json()["data"]
    assert region["width"] == 640
    assert {"option": "loop", "value": "1"} in region["regionOptions"]

    r = client.put(f"/region/{region_id}", json={"height": 0}, headers=ADMIN)
    assert r.status_code == 422


def test_only_one_drawer(client):
    draft = checkout(client, make_layout(client)["layoutId"])
    assert client.post(f"/region/drawer/{draft['layoutId']}", headers=ADMIN).status_code == 201
    assert client.post(f"/region/drawer/{draft['layoutId']}", headers=ADMIN).status_code == 422


def test_order_playlist(client):
    draft = checkout(client, make_layout(client)["layoutId"])
    pid = _playlist_id(draft)
    w1 = add_widget(client, pid)["widgetId"]
    w2 = add_widget(client, pid)["widgetId"]

    r = client.post(f"/playlist/order/{pid}", json={"widgets": {str(w1): 2, str(w2): 1}}, headers=ADMIN)
    assert r.status_code == 200
    assert [w["widgetId"] for w in r.get_json()["data"]["widgets"]] == [w2, w1]

    r = client.post(f"/playlist/order/{pid}", json={"widgets": {str(w1): 1}}, headers=ADMIN)
    assert r.status_code == 422


def test_widget_edit_and_delete(client):
    draft = checkout(client, make_layout(client)["layoutId"])
    pid = _playlist_id(draft)
    w = add_widget(client, pid, duration=10, options={"text": "hi"})
    assert w["toDt"] == 2147483647
    assert w["fromDt"] == 0

    r = client.put(f"/playlist/widget/{w['widgetId']}", json={"duration": 12}, headers=ADMIN)
    assert r.get_json()["data"]["calculatedDuration"] == 12
    assert client.delete(f"/playlist/widget/{w['widgetId']}", headers=ADMIN).status_code == 204
    assert client.delete(f"/playlist/widget/{w['widgetId']}", headers=ADMIN).status_code == 404


def test_delete_layout_removes_draft(client):
    layout = make_layout(client)
    draft = checkout(client, layout["layoutId"])
    assert client.delete(f"/layout/{layout['layoutId']}", headers=ADMIN).status_code == 204
    assert client.get(f"/layout/{draft['layoutId']}", headers=ADMIN).status_code == 404


def _layout_author(data_path):
    with storage.transaction() as db:
        home = storage.insert_folder(db, {"parentId": 1, "text": "carol", "ownerId": 1})
    return storage.add_user("carol", api_key="carol-key", home_folder_id=home["folderId"], features=["layout.add"])


def test_changing_layouts_needs_modify_feature(client, data_path):
    carol = _layout_author(data_path)
    headers = key("carol")
    r = client.post("/layout", json={"name": "Mine", "folderId": carol["homeFolderId"]}, headers=headers)
    assert r.status_code == 201
    layout_id = r.get_json()["id"]

    assert client.put(f"/layout/checkout/{layout_id}", headers=headers).status_code == 403
    assert client.delete(f"/layout/{layout_id}", headers=headers).status_code == 403

    draft = checkout(client, layout_id)
    assert client.post(f"/region/{draft['layoutId']}", json={}, headers=headers).status_code == 403
    assert client.put(f"/layout/publish/{layout_id}", headers=headers).status_code == 403
    assert client.put(f"/layout/discard/{layout_id}", headers=headers).status_code == 403
