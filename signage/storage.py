# File: signage/storage.py
# Purpose: JSON document store (folders, datasets, layouts, users) with atomic writes.
from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

from . import settings
from .errors import FolderNotEmptyError, NotFoundError

log = logging.getLogger(__name__)

_LOCK = threading.RLock()

# ── defaults ──────────────────────────────────────────────────────────────────
_ROOT_FOLDER: Dict[str, Any] = {
    "folderId": settings.ROOT_FOLDER_ID,
    "parentId": None,
    "text": "Root Folder",
    "children": "",
    "isRoot": 1,
    "ownerId": 1,
    "permissions": {},
}

_ADMIN_USER: Dict[str, Any] = {
    "userId": 1,
    "userName": "admin",
    "userTypeId": 1,
    "homeFolderId": settings.ROOT_FOLDER_ID,
    "apiKey": None,
    "features": [],
}

_DEFAULTS: Dict[str, Any] = {
    "sequences": {
        "user": 1,
        "folder": settings.ROOT_FOLDER_ID,
        "dataset": 0,
        "layout": 0,
        "campaign": 0,
        "region": 0,
        "playlist": 0,
        "widget": 0,
    },
    "users": [_ADMIN_USER],
    "folders": [_ROOT_FOLDER],
    "datasets": [],
    "layouts": [],
}

# Key order used when a record is written; unknown keys go last
_RECORD_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "users": _ADMIN_USER,
    "folders": _ROOT_FOLDER,
    "datasets": {
        "dataSetId": 0,
        "dataSet": "",
        "description": "",
        "code": "",
        "folderId": 1,
        "ownerId": 1,
        "permissions": {},
        "lastDataEdit": 0,
        "columns": [],
        "rows": [],
    },
    "layouts": {
        "layoutId": 0,
        "layout": "",
        "publishedStatusId": 1,
        "parentId": None,
        "campaignId": 0,
        "folderId": 1,
        "ownerId": 1,
        "permissions": {},
        "width": 1920,
        "height": 1080,
        "backgroundColor": "#000000",
        "backgroundImageId": None,
        "code": "",
        "actions": [],
        "regions": [],
        "drawers": [],
    },
}

# Collection -> primary key
_KEYS = {
    "users": "userId",
    "folders": "folderId",
    "datasets": "dataSetId",
    "layouts": "layoutId",
}


# --- compact JSON support for selected lists ---------------------------------
class _CompactList(list):
    """Marks lists that are written as one item per line."""
    pass


def _mark_compact_lists(obj):
    """
    Walk the document and wrap dataset rows in _CompactList so that large
    datasets stay diffable (one row per line).
    """
    if isinstance(obj, dict):
        out = OrderedDict(obj) if isinstance(obj, OrderedDict) else dict(obj)
        for k, v in list(out.items()):
            if k == "rows" and isinstance(v, list):
                out[k] = _CompactList(v)
            else:
                out[k] = _mark_compact_lists(v)
        return out
    elif isinstance(obj, list):
        return [_mark_compact_lists(x) for x in obj]
    return obj


# ── utils ─────────────────────────────────────────────────────────────────────
def get_defaults() -> Dict[str, Any]:
    return json.loads(json.dumps(_DEFAULTS))  # deep copy


def _order_like_defaults(
    defaults: Mapping[str, Any], data: Dict[str, Any]
) -> "OrderedDict[str, Any]":
    """
    Build an OrderedDict for `data` following the key order of `defaults`.
    - Recursive for nested dicts.
    - Records inside the known collections follow their record template.
    - Keys missing from `defaults` are appended in their current order.
    """
    ordered: "OrderedDict[str, Any]" = OrderedDict()
    for key in defaults.keys():
        if key in data:
            ordered[key] = _order_value(key, defaults[key], data[key])
    for key, data_value in data.items():
        if key in ordered:
            continue
        ordered[key] = _order_value(key, defaults.get(key), data_value)
    return ordered


def _order_value(key: str, def_value: Any, data_value: Any) -> Any:
    if isinstance(def_value, dict) and isinstance(data_value, dict):
        return _order_like_defaults(def_value, data_value)
    template = _RECORD_TEMPLATES.get(key)
    if template is not None and isinstance(data_value, list):
        return [
            _order_like_defaults(template, rec) if isinstance(rec, dict) else rec
            for rec in data_value
        ]
    return data_value


# --- stable JSON dumper with _CompactList support -----------------------------
def _write_json_value(fp, value: Any, indent: int, level: int) -> None:
    """Writes JSON values deterministically without private encoder APIs."""
    indent_current = " " * (indent * level)
    indent_inner = " " * (indent * (level + 1))
    if isinstance(value, dict):
        items = list(value.items())
        if not items:
            fp.write("{}")
            return
        fp.write("{\n")
        for i, (k, v) in enumerate(items):
            fp.write(f"{indent_inner}{json.dumps(str(k), ensure_ascii=False)}: ")
            _write_json_value(fp, v, indent, level + 1)
            fp.write(",\n" if i < len(items) - 1 else "\n")
        fp.write(f"{indent_current}}}")
        return
    if isinstance(value, list):
        if not value:
            fp.write("[]")
            return
        fp.write("[\n")
        if isinstance(value, _CompactList):
            lines = [
                f"{indent_inner}{json.dumps(item, ensure_ascii=False, separators=(',', ': '))}"
                for item in value
            ]
            fp.write(",\n".join(lines))
            fp.write(f"\n{indent_current}]")
            return
        for i, item in enumerate(value):
            fp.write(indent_inner)
            _write_json_value(fp, item, indent, level + 1)
            fp.write(",\n" if i < len(value) - 1 else "\n")
        fp.write(f"{indent_current}]")
        return
    fp.write(json.dumps(value, ensure_ascii=False))


def _atomic_write(path: str, data: Dict[str, Any]) -> None:
    """
    Atomic write to path: temp file in the same directory, fsync, os.replace.
    Key order follows _DEFAULTS and the record templates.
    """
    dirpath = os.path.dirname(path) or "."
    os.makedirs(dirpath, exist_ok=True)
    serializable = _mark_compact_lists(_order_like_defaults(_DEFAULTS, data))
    fd, tmp = tempfile.mkstemp(prefix=".data.", dir=dirpath)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            _write_json_value(f, serializable, indent=2, level=0)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


def _seed() -> Dict[str, Any]:
    db = get_defaults()
    db["users"][0]["apiKey"] = settings.ADMIN_KEY
    return db


# ── public API ────────────────────────────────────────────────────────────────
def load_db() -> Dict[str, Any]:
    path = str(settings.DATA_PATH)
    with _LOCK:
        if not os.path.exists(path):
            db = _seed()
            _atomic_write(path, db)
            return db
        with open(path, "r", encoding="utf-8") as f:
            db = json.load(f)
    for key, value in get_defaults().items():
        db.setdefault(key, value)
    for key, value in get_defaults()["sequences"].items():
        db["sequences"].setdefault(key, value)
    return db


def save_db(db: Dict[str, Any]) -> None:
    with _LOCK:
        _atomic_write(str(settings.DATA_PATH), db)


@contextmanager
def transaction() -> Iterator[Dict[str, Any]]:
    """
    Read-modify-write under the store lock. The document is only written when
    the block finishes without an exception.
    """
    with _LOCK:
        db = load_db()
        yield db
        save_db(db)


def next_id(db: Dict[str, Any], kind: str) -> int:
    seq = db["sequences"]
    seq[kind] = int(seq.get(kind) or 0) + 1
    return seq[kind]


def find(db: Dict[str, Any], collection: str, record_id: Any) -> Optional[Dict[str, Any]]:
    key = _KEYS[collection]
    try:
        rid = int(record_id)
    except (TypeError, ValueError):
        return None
    for rec in db[collection]:
        if rec.get(key) == rid:
            return rec
    return None


def get(db: Dict[str, Any], collection: str, record_id: Any) -> Dict[str, Any]:
    rec = find(db, collection, record_id)
    if rec is None:
        raise NotFoundError(f"{collection[:-1].capitalize()} {record_id} not found")
    return rec


def remove(db: Dict[str, Any], collection: str, record_id: int) -> None:
    key = _KEYS[collection]
    db[collection] = [r for r in db[collection] if r.get(key) != record_id]


# ── folders ───────────────────────────────────────────────────────────────────
def child_ids(folder: Mapping[str, Any]) -> List[int]:
    out: List[int] = []
    for part in str(folder.get("children") or "").split(","):
        part = part.strip()
        if part.isdigit():
            out.append(int(part))
    return out


def insert_folder(db: Dict[str, Any], folder: Dict[str, Any]) -> Dict[str, Any]:
    parent = get(db, "folders", folder["parentId"])
    folder["folderId"] = next_id(db, "folder")
    folder.setdefault("children", "")
    folder.setdefault("isRoot", 0)
    folder.setdefault("permissions", {})
    db["folders"].append(folder)
    parent["children"] = ",".join(str(i) for i in [*child_ids(parent), folder["folderId"]])
    return folder


def folder_usage(db: Dict[str, Any], folder_id: int) -> Dict[str, int]:
    folder = get(db, "folders", folder_id)
    return {
        "folders": len(child_ids(folder)),
        "datasets": sum(1 for d in db["datasets"] if d.get("folderId") == folder_id),
        "layouts": sum(1 for l in db["layouts"] if l.get("folderId") == folder_id),
    }


def delete_folder(db: Dict[str, Any], folder_id: int) -> None:
    usage = folder_usage(db, folder_id)
    if any(usage.values()):
        raise FolderNotEmptyError(
            "Folder {} still holds {folders} folders, {datasets} datasets, {layouts} layouts".format(
                folder_id, **usage
            )
        )
    folder = get(db, "folders", folder_id)
    parent = find(db, "folders", folder.get("parentId"))
    if parent is not None:
        parent["children"] = ",".join(str(i) for i in child_ids(parent) if i != folder_id)
    remove(db, "folders", folder_id)


# ── users ─────────────────────────────────────────────────────────────────────
def add_user(
    user_name: str,
    *,
    api_key: Optional[str] = None,
    super_admin: bool = False,
    home_folder_id: int = settings.ROOT_FOLDER_ID,
    features: Optional[List[str]] = None,
) -> Dict[str, Any]:
    with transaction() as db:
        if any(u.get("userName") == user_name for u in db["users"]):
            raise ValueError(f"user '{user_name}' already exists")
        home = get(db, "folders", home_folder_id)
        user = {
            "userId": next_id(db, "user"),
            "userName": user_name,
            "userTypeId": 1 if super_admin else 3,
            "homeFolderId": int(home_folder_id),
            "apiKey": api_key,
            "features": list(features or []),
        }
        db["users"].append(user)
        # full access to the home folder
        home.setdefault("permissions", {})[str(user["userId"])] = {"view": True, "edit": True, "delete": True}
    log.info("Added user %s (id %s)", user_name, user["userId"])
    return user
