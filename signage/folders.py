"""
Folder tree + folder CRUD.

The tree builder is a pure function: it reads folder records through a
resolver and returns fresh node dicts, so stored folders are never mutated.
"""
from __future__ import annotations
import copy
import logging
from typing import Any, Callable, Dict, List, Mapping

from . import settings, storage
from .errors import (
    AccessDeniedError,
    FolderNotEmptyError,
    InvalidArgumentError,
    NotFoundError,
)
from .models import User

log = logging.getLogger(__name__)

PRIVATE_FOLDER_TEXT = "Private Folder"
ROOT_TITLE = "Right click a Folder for further Options"

Resolver = Callable[[int], Mapping[str, Any]]


def _is_root(folder: Mapping[str, Any]) -> bool:
    return int(folder.get("isRoot") or 0) == 1


def _folder_type(folder: Mapping[str, Any], home_folder_id: int) -> str:
    if _is_root(folder):
        return "root"
    if folder.get("folderId") == home_folder_id:
        return "home"
    return ""


def build_tree_view(folder_id: int, user: User, resolve: Resolver) -> Dict[str, Any]:
    """
    Build the tree below `folder_id`.

    Children are resolved in the order of the stored comma-separated id list.
    A child that cannot be resolved is skipped (debug log only). A child the
    user may not view stays in the tree with placeholder text and disabled.
    The stored tree must be acyclic; nothing here checks for cycles.
    """
    folder = resolve(folder_id)
    node: Dict[str, Any] = {
        "id": folder["folderId"],
        "folderId": folder["folderId"],
        "parentId": folder.get("parentId"),
        "text": folder.get("text") or "",
        "isRoot": 1 if _is_root(folder) else 0,
        "type": _folder_type(folder, user.home_folder_id),
        "li_attr": {},
        "a_attr": {},
        "children": [],
    }

    children: List[Dict[str, Any]] = []
    for child_id in storage.child_ids(folder):
        try:
            child_folder = resolve(child_id)
            child = build_tree_view(child_id, user, resolve)
        except NotFoundError:
            log.debug("User does not have permissions to Folder ID %s", child_id)
            continue

        if not user.check_viewable(child_folder):
            child["text"] = PRIVATE_FOLDER_TEXT
            child["li_attr"]["disabled"] = True

        children.append(child)

    node["children"] = children
    return node


def get_tree(user: User) -> List[Dict[str, Any]]:
    db = storage.load_db()
    root = build_tree_view(
        settings.ROOT_FOLDER_ID, user, lambda fid: storage.get(db, "folders", fid)
    )
    root["a_attr"]["title"] = ROOT_TITLE
    return [root]


# ── decoration ────────────────────────────────────────────────────────────────
def decorate_with_buttons(folder: Mapping[str, Any], user: User) -> Dict[str, bool]:
    buttons: Dict[str, bool] = {}
    is_root = _is_root(folder)
    is_home = folder.get("folderId") == user.home_folder_id

    if user.feature_enabled("folder.add") and user.check_viewable(folder):
        buttons["create"] = True

    modify = user.feature_enabled("folder.modify")
    if modify and user.check_editable(folder) and not is_root and not is_home:
        buttons["modify"] = True
    if modify and user.check_deleteable(folder) and not is_root and not is_home:
        buttons["delete"] = True

    if user.is_super_admin() and not is_root:
        buttons["share"] = True
    return buttons


def _sharing(db: Dict[str, Any], folder: Mapping[str, Any]) -> List[Dict[str, Any]]:
    out = []
    for uid, perms in sorted((folder.get("permissions") or {}).items()):
        u = storage.find(db, "users", uid)
        out.append(
            {
                "userId": int(uid),
                "userName": (u or {}).get("userName", ""),
                "view": bool(perms.get("view")),
                "edit": bool(perms.get("edit")),
                "delete": bool(perms.get("delete")),
            }
        )
    return out


def _public(folder: Mapping[str, Any]) -> Dict[str, Any]:
    data = copy.deepcopy(dict(folder))
    data["id"] = data["folderId"]
    return data


def get_folder(folder_id: int, user: User) -> Dict[str, Any]:
    db = storage.load_db()
    folder = storage.get(db, "folders", folder_id)
    if not user.check_viewable(folder):
        raise AccessDeniedError()
    data = _public(folder)
    data["buttons"] = decorate_with_buttons(folder, user)
    data["homeFolderCount"] = sum(
        1 for u in db["users"] if u.get("homeFolderId") == folder["folderId"]
    )
    data["sharing"] = _sharing(db, folder)
    data["usage"] = storage.folder_usage(db, folder["folderId"])
    return data


def get_context_buttons(folder_id: int, user: User) -> Dict[str, bool]:
    db = storage.load_db()
    return decorate_with_buttons(storage.get(db, "folders", folder_id), user)


# ── CRUD ──────────────────────────────────────────────────────────────────────
def _clean_text(text: Any) -> str:
    s = str(text or "").strip()
    if not s:
        raise InvalidArgumentError("Please provide a Folder name", "text")
    if len(s) > 254:
        raise InvalidArgumentError("Folder name must be 254 characters or less", "text")
    return s


def create_folder(user: User, text: Any, parent_id: Any = None) -> Dict[str, Any]:
    if not user.feature_enabled("folder.add"):
        raise AccessDeniedError()
    name = _clean_text(text)
    pid = parent_id if parent_id not in (None, "") else settings.ROOT_FOLDER_ID
    try:
        pid = int(pid)
    except (TypeError, ValueError):
        raise InvalidArgumentError("Invalid parent Folder", "parentId")

    with storage.transaction() as db:
        parent = storage.get(db, "folders", pid)
        if not user.check_viewable(parent):
            raise AccessDeniedError()
        folder = storage.insert_folder(
            db,
            {"parentId": pid, "text": name, "ownerId": user.user_id},
        )
    log.info("Folder %s added under %s by user %s", folder["folderId"], pid, user.user_id)
    return _public(folder)


def edit_folder(user: User, folder_id: int, text: Any) -> Dict[str, Any]:
    with storage.transaction() as db:
        folder = storage.get(db, "folders", folder_id)
        if _is_root(folder):
            raise InvalidArgumentError("Cannot edit root Folder", "isRoot")
        if not user.check_editable(folder) or not user.feature_enabled("folder.modify"):
            raise AccessDeniedError()
        folder["text"] = _clean_text(text)
    return _public(folder)


def delete_folder(user: User, folder_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        folder = storage.get(db, "folders", folder_id)
        if _is_root(folder):
            raise InvalidArgumentError("Cannot remove root Folder", "isRoot")
        if not user.check_deleteable(folder) or not user.feature_enabled("folder.modify"):
            raise AccessDeniedError()
        try:
            storage.delete_folder(db, folder["folderId"])
        except FolderNotEmptyError as e:
            log.debug("Folder delete failed with message: %s", e)
            raise InvalidArgumentError(
                "Cannot remove Folder with content",
                "folderId",
                "Reassign objects from this Folder before deleting.",
            ) from e
    log.info("Folder %s deleted by user %s", folder_id, user.user_id)
    return _public(folder)


def _flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v or "").strip().lower() in ("1", "true", "yes", "on")


def share_folder(user: User, folder_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Sets one user's view/edit/delete grant on a folder (super admins only).
    A grant with all three levels off removes the user from the sharing list.
    """
    if not user.is_super_admin():
        raise AccessDeniedError()
    try:
        grantee_id = int(params.get("userId"))
    except (TypeError, ValueError):
        raise InvalidArgumentError("Please select a User", "userId")

    with storage.transaction() as db:
        folder = storage.get(db, "folders", folder_id)
        if _is_root(folder):
            raise InvalidArgumentError("Cannot share root Folder", "isRoot")
        storage.get(db, "users", grantee_id)
        perms = {level: _flag(params.get(level)) for level in ("view", "edit", "delete")}
        shared = folder.setdefault("permissions", {})
        if any(perms.values()):
            shared[str(grantee_id)] = perms
        else:
            shared.pop(str(grantee_id), None)
        data = _public(folder)
        data["sharing"] = _sharing(db, folder)
    log.info("Folder %s shared with user %s: %s", folder_id, grantee_id, perms)
    return data
