# tests/test_folders.py
from conftest import ADMIN, key

from signage.folders import PRIVATE_FOLDER_TEXT, ROOT_TITLE


def _add(client, text, parent_id=None, headers=ADMIN):
    body = {"text": text}
    if parent_id is not None:
        body["parentId"] = parent_id
    return client.post("/folders", json=body, headers=headers)


def test_tree_returns_root_list(client):
    r = client.get("/folders", headers=ADMIN)
    assert r.status_code == 200
    tree = r.get_json()
    assert len(tree) == 1
    assert tree[0]["id"] == 1
    assert tree[0]["a_attr"]["title"] == ROOT_TITLE


def test_create_edit_delete_folder(client):
    r = _add(client, "Marketing")
    assert r.status_code == 201
    body = r.get_json()
    assert body["success"] is True
    assert body["message"] == "Added Marketing"
    fid = body["id"]

    tree = client.get("/folders", headers=ADMIN).get_json()
    assert [c["text"] for c in tree[0]["children"]] == ["Marketing"]

    r = client.put(f"/folders/{fid}", json={"text": "Sales"}, headers=ADMIN)
    assert r.status_code == 200
    assert r.get_json()["data"]["text"] == "Sales"

    r = client.delete(f"/folders/{fid}", headers=ADMIN)
    assert r.status_code == 204
    assert client.get(f"/folders/{fid}", headers=ADMIN).status_code == 404


def test_root_cannot_be_edited_or_deleted(client):
    r = client.put("/folders/1", json={"text": "x"}, headers=ADMIN)
    assert r.status_code == 422
    assert r.get_json()["property"] == "isRoot"
    assert r.get_json()["message"] == "Cannot edit root Folder"

    r = client.delete("/folders/1", headers=ADMIN)
    assert r.status_code == 422
    assert r.get_json()["message"] == "Cannot remove root Folder"


def test_folder_with_content_cannot_be_deleted(client):
    parent = _add(client, "Parent").get_json()["id"]
    _add(client, "Child", parent)
    r = client.delete(f"/folders/{parent}", headers=ADMIN)
    assert r.status_code == 422
    err = r.get_json()
    assert err["message"] == "Cannot remove Folder with content"
    assert err["help"] == "Reassign objects from this Folder before deleting."


def test_folder_with_dataset_cannot_be_deleted(client):
    fid = _add(client, "Data").get_json()["id"]
    client.post("/dataset", json={"dataSet": "in folder", "folderId": fid}, headers=ADMIN)
    assert client.delete(f"/folders/{fid}", headers=ADMIN).status_code == 422


def test_folder_details_are_decorated(client):
    fid = _add(client, "Signs").get_json()["id"]
    r = client.get(f"/folders/{fid}", headers=ADMIN)
    data = r.get_json()
    assert data["id"] == fid
    assert data["buttons"] == {"create": True, "modify": True, "delete": True, "share": True}
    assert data["usage"] == {"folders": 0, "datasets": 0, "layouts": 0}
    assert data["homeFolderCount"] == 0

    root_buttons = client.get("/folders/contextButtons/1", headers=ADMIN).get_json()
    assert root_buttons == {"create": True}


def test_empty_name_rejected(client):
    r = _add(client, "  ")
    assert r.status_code == 422
    assert r.get_json()["property"] == "text"


def test_private_folder_in_tree_for_other_user(client, users):
    finance = _add(client, "Finance").get_json()["id"]
    tree = client.get("/folders", headers=key("alice")).get_json()
    child = next(c for c in tree[0]["children"] if c["id"] == finance)
    assert child["text"] == PRIVATE_FOLDER_TEXT
    assert child["li_attr"]["disabled"] is True

    r = client.get(f"/folders/{child['id']}", headers=key("alice"))
    assert r.status_code == 403


def test_user_without_feature_cannot_add(client, users):
    r = _add(client, "Nope", headers=key("bob"))
    assert r.status_code == 403
    assert r.get_json()["success"] is False


def test_unknown_key_requires_login(client):
    r = client.get("/folders", headers={"X-Api-Key": "wrong"})
    assert r.status_code == 401
    assert r.get_json()["login"] is True


def test_user_creates_content_in_home_folder(client, users):
    home = users["alice"]["homeFolderId"]
    headers = key("alice")

    r = _add(client, "Campaigns", home, headers=headers)
    assert r.status_code == 201
    assert r.get_json()["data"]["ownerId"] == users["alice"]["userId"]

    r = client.post("/dataset", json={"dataSet": "Menu", "folderId": home}, headers=headers)
    assert r.status_code == 201

    r = client.post("/layout", json={"name": "Window", "folderId": home}, headers=headers)
    assert r.status_code == 201

    tree = client.get("/folders", headers=headers).get_json()
    own = next(c for c in tree[0]["children"] if c["id"] == home)
    assert own["text"] == "alice"
    assert own["type"] == "home"
    assert [c["text"] for c in own["children"]] == ["Campaigns"]


def test_home_folder_is_private_to_its_user(client, users):
    bobs_home = users["bob"]["homeFolderId"]
    r = _add(client, "Sneaky", bobs_home, headers=key("alice"))
    assert r.status_code == 403


def test_share_folder_grants_and_revokes(client, users):
    fid = _add(client, "Shared").get_json()["id"]
    bob_id = users["bob"]["userId"]
    assert client.get(f"/folders/{fid}", headers=key("bob")).status_code == 403

    r = client.put(f"/folders/permissions/{fid}", json={"userId": bob_id, "view": 1}, headers=ADMIN)
    assert r.status_code == 200
    sharing = r.get_json()["data"]["sharing"]
    assert {"userId": bob_id, "userName": "bob", "view": True, "edit": False, "delete": False} in sharing
    assert client.get(f"/folders/{fid}", headers=key("bob")).status_code == 200

    r = client.put(f"/folders/permissions/{fid}", json={"userId": bob_id}, headers=ADMIN)
    assert all(s["userId"] != bob_id for s in r.get_json()["data"]["sharing"])
    assert client.get(f"/folders/{fid}", headers=key("bob")).status_code == 403


def test_share_folder_rules(client, users):
    fid = _add(client, "Shared").get_json()["id"]
    bob_id = users["bob"]["userId"]

    r = client.put(f"/folders/permissions/{fid}", json={"userId": bob_id, "view": 1}, headers=key("alice"))
    assert r.status_code == 403

    r = client.put("/folders/permissions/1", json={"userId": bob_id, "view": 1}, headers=ADMIN)
    assert r.status_code == 422
    assert r.get_json()["property"] == "isRoot"

    r = client.put(f"/folders/permissions/{fid}", json={"userId": 99, "view": 1}, headers=ADMIN)
    assert r.status_code == 404
