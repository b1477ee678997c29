# tests/test_datasets.py
from conftest import ADMIN, key


def _add(client, name, headers=ADMIN, **extra):
    return client.post("/dataset", json={"dataSet": name, **extra}, headers=headers)


def test_create_search_delete(client):
    r = _add(client, "X", description="test set")
    assert r.status_code == 201
    ds_id = r.get_json()["id"]
    _add(client, "Y")

    grid = client.get("/dataset", query_string={"dataSet": "X"}, headers=ADMIN).get_json()
    assert grid["recordsTotal"] == 2
    assert grid["recordsFiltered"] == 1
    assert [d["dataSet"] for d in grid["data"]] == ["X"]
    assert grid["data"][0]["rowCount"] == 0
    assert "rows" not in grid["data"][0]

    r = client.delete(f"/dataset/{ds_id}", headers=ADMIN)
    assert r.status_code == 204
    grid = client.get("/dataset", query_string={"dataSet": "X"}, headers=ADMIN).get_json()
    assert grid["data"] == []


def test_duplicate_name_rejected(client):
    _add(client, "Menu")
    r = _add(client, "Menu")
    assert r.status_code == 409
    assert "There is already dataSet called Menu" in r.get_json()["message"]


def test_name_validation(client):
    assert _add(client, "").status_code == 422
    assert _add(client, "n" * 51).status_code == 422


def test_edit_renames(client):
    ds_id = _add(client, "Old").get_json()["id"]
    r = client.put(f"/dataset/{ds_id}", json={"dataSet": "New", "code": "menu"}, headers=ADMIN)
    assert r.status_code == 200
    assert r.get_json()["data"]["dataSet"] == "New"
    grid = client.get("/dataset", query_string={"code": "menu"}, headers=ADMIN).get_json()
    assert [d["dataSetId"] for d in grid["data"]] == [ds_id]


def test_copy_names_increment(client):
    ds_id = _add(client, "X", columns=["title", "price"]).get_json()["id"]
    first = client.post(f"/dataset/copy/{ds_id}", headers=ADMIN)
    assert first.status_code == 201
    assert first.get_json()["data"]["dataSet"] == "X 2"
    assert [c["heading"] for c in first.get_json()["data"]["columns"]] == ["title", "price"]

    second = client.post(f"/dataset/copy/{ds_id}", headers=ADMIN)
    assert second.get_json()["data"]["dataSet"] == "X 3"

    named = client.post(f"/dataset/copy/{ds_id}", json={"dataSet": "Prices"}, headers=ADMIN)
    assert named.get_json()["data"]["dataSet"] == "Prices"


def test_copy_rows_only_when_asked(client):
    ds_id = _add(client, "Stock", columns=["item"]).get_json()["id"]
    client.post(f"/dataset/data/{ds_id}", json={"row": {"item": "apple"}}, headers=ADMIN)

    plain = client.post(f"/dataset/copy/{ds_id}", headers=ADMIN).get_json()["data"]
    assert plain["rowCount"] == 0
    with_rows = client.post(f"/dataset/copy/{ds_id}", json={"copyRows": 1}, headers=ADMIN).get_json()["data"]
    assert with_rows["rowCount"] == 1


def test_delete_with_rows_needs_delete_data(client):
    ds_id = _add(client, "Busy", columns=["item"]).get_json()["id"]
    r = client.post(f"/dataset/data/{ds_id}", json={"row": {"item": "pear"}}, headers=ADMIN)
    assert r.status_code == 201

    r = client.delete(f"/dataset/{ds_id}", headers=ADMIN)
    assert r.status_code == 422
    assert r.get_json()["message"] == "There is data assigned to this data set, cannot delete."

    r = client.delete(f"/dataset/{ds_id}", query_string={"deleteData": 1}, headers=ADMIN)
    assert r.status_code == 204


def test_unknown_column_rejected(client):
    ds_id = _add(client, "Cols", columns=["item"]).get_json()["id"]
    r = client.post(f"/dataset/data/{ds_id}", json={"row": {"colour": "red"}}, headers=ADMIN)
    assert r.status_code == 422


def test_paging(client):
    for n in range(5):
        _add(client, f"set {n}")
    grid = client.get("/dataset", query_string={"start": 1, "length": 2, "draw": 3}, headers=ADMIN).get_json()
    assert grid["draw"] == 3
    assert grid["recordsFiltered"] == 5
    assert [d["dataSet"] for d in grid["data"]] == ["set 1", "set 2"]


def test_other_users_do_not_see_datasets(client, users):
    _add(client, "Admin only")
    grid = client.get("/dataset", headers=key("alice")).get_json()
    assert grid["recordsTotal"] == 0
    assert grid["data"] == []


def test_folder_must_be_viewable(client, users):
    # alice has the feature but no view permission on the root folder
    r = _add(client, "Alice set", headers=key("alice"))
    assert r.status_code == 403


def test_user_without_feature_cannot_add(client, users):
    assert _add(client, "Bob set", headers=key("bob")).status_code == 403
