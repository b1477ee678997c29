# tests/test_tree_view.py
import copy

from signage.errors import NotFoundError
from signage.folders import PRIVATE_FOLDER_TEXT, build_tree_view
from signage.models import User

FOLDERS = {
    1: {"folderId": 1, "parentId": None, "text": "Root Folder", "isRoot": 1,
        "children": "2,3,99", "ownerId": 1, "permissions": {}},
    2: {"folderId": 2, "parentId": 1, "text": "Home", "isRoot": 0,
        "children": "4", "ownerId": 5, "permissions": {}},
    3: {"folderId": 3, "parentId": 1, "text": "Finance", "isRoot": 0,
        "children": "5", "ownerId": 1, "permissions": {}},
    4: {"folderId": 4, "parentId": 2, "text": "Drafts", "isRoot": 0,
        "children": "", "ownerId": 5, "permissions": {}},
    5: {"folderId": 5, "parentId": 3, "text": "Shared", "isRoot": 0,
        "children": "", "ownerId": 1, "permissions": {"5": {"view": True}}},
}


def resolve(folder_id):
    try:
        return FOLDERS[folder_id]
    except KeyError:
        raise NotFoundError(f"Folder {folder_id} not found")


def user5():
    return User(user_id=5, user_type_id=3, home_folder_id=2)


def test_children_follow_stored_order_and_skip_missing():
    tree = build_tree_view(1, user5(), resolve)
    assert [c["id"] for c in tree["children"]] == [2, 3]
    assert tree["type"] == "root"


def test_private_folder_is_masked_and_disabled():
    tree = build_tree_view(1, user5(), resolve)
    finance = tree["children"][1]
    assert finance["text"] == PRIVATE_FOLDER_TEXT
    assert finance["li_attr"]["disabled"] is True
    # children of a private folder are still walked
    shared = finance["children"][0]
    assert shared["text"] == "Shared"
    assert "disabled" not in shared["li_attr"]


def test_home_folder_type():
    tree = build_tree_view(1, user5(), resolve)
    home = tree["children"][0]
    assert home["type"] == "home"
    assert home["children"][0]["text"] == "Drafts"


def test_super_admin_sees_real_names():
    admin = User(user_id=1, user_type_id=1)
    tree = build_tree_view(1, admin, resolve)
    assert tree["children"][1]["text"] == "Finance"


def test_stored_folders_are_not_mutated():
    before = copy.deepcopy(FOLDERS)
    build_tree_view(1, user5(), resolve)
    assert FOLDERS == before


def test_order_changes_with_children_string():
    folders = copy.deepcopy(FOLDERS)
    folders[1]["children"] = "3,2"
    tree = build_tree_view(1, user5(), lambda fid: folders[fid])
    assert [c["id"] for c in tree["children"]] == [3, 2]
