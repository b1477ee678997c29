"""
DataSet CRUD, copy and grid search.
"""
from __future__ import annotations
import copy
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from . import settings, storage
from .errors import AccessDeniedError, DuplicateEntityError, InvalidArgumentError
from .models import User

log = logging.getLogger(__name__)


def _i(v, d: int) -> int:
    if v in (None, ""):
        return d
    try:
        return int(v)
    except (TypeError, ValueError):
        return d


def _public(rec: Mapping[str, Any]) -> Dict[str, Any]:
    data = copy.deepcopy(dict(rec))
    data["id"] = data["dataSetId"]
    data["rowCount"] = len(data.pop("rows", []) or [])
    return data


def _clean_name(name: Any) -> str:
    s = str(name or "").strip()
    if not s:
        raise InvalidArgumentError("Please enter a DataSet name", "dataSet")
    if len(s) > 50:
        raise InvalidArgumentError("Name must be between 1 and 50 characters", "dataSet")
    return s


def _assert_unique(db: Dict[str, Any], name: str, owner_id: int, exclude_id: Optional[int] = None) -> None:
    for d in db["datasets"]:
        if d["dataSetId"] == exclude_id:
            continue
        if d.get("ownerId") == owner_id and d.get("dataSet") == name:
            raise DuplicateEntityError(
                f"There is already dataSet called {name}. Please choose another name.",
                "dataSet",
            )


def _clean_columns(columns: Any) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    if not isinstance(columns, list):
        return out
    for idx, col in enumerate(columns, start=1):
        if isinstance(col, str):
            col = {"heading": col}
        if not isinstance(col, dict) or not str(col.get("heading") or "").strip():
            continue
        out.append(
            {
                "dataSetColumnId": idx,
                "heading": str(col["heading"]).strip(),
                "dataTypeId": int(col.get("dataTypeId") or 1),
                "columnOrder": idx,
            }
        )
    return out


def _folder_id(db: Dict[str, Any], user: User, folder_id: Any) -> int:
    fid = folder_id if folder_id not in (None, "") else settings.ROOT_FOLDER_ID
    try:
        fid = int(fid)
    except (TypeError, ValueError):
        raise InvalidArgumentError("Invalid Folder", "folderId")
    folder = storage.get(db, "folders", fid)
    if not user.check_viewable(folder):
        raise AccessDeniedError()
    return fid


# ── search ────────────────────────────────────────────────────────────────────
def search(user: User, params: Mapping[str, Any]) -> Dict[str, Any]:
    """Grid search. Filters: dataSet (substring), dataSetId, code, folderId."""
    db = storage.load_db()
    rows = [d for d in db["datasets"] if user.check_viewable(d)]
    total = len(rows)

    name = str(params.get("dataSet") or "").strip().lower()
    if name:
        rows = [d for d in rows if name in str(d.get("dataSet") or "").lower()]
    for key in ("dataSetId", "folderId"):
        val = params.get(key)
        if val not in (None, ""):
            try:
                ival = int(val)
            except (TypeError, ValueError):
                raise InvalidArgumentError(f"{key} must be an integer", key)
            rows = [d for d in rows if d.get(key) == ival]
    code = str(params.get("code") or "").strip()
    if code:
        rows = [d for d in rows if d.get("code") == code]

    filtered = len(rows)
    start = max(0, _i(params.get("start"), 0))
    length = _i(params.get("length"), 0)
    page = rows[start:start + length] if length > 0 else rows[start:]
    return {
        "draw": _i(params.get("draw"), 0),
        "recordsTotal": total,
        "recordsFiltered": filtered,
        "data": [_public(d) for d in page],
    }


def get_dataset(user: User, dataset_id: int) -> Dict[str, Any]:
    db = storage.load_db()
    rec = storage.get(db, "datasets", dataset_id)
    if not user.check_viewable(rec):
        raise AccessDeniedError()
    return _public(rec)


# ── CRUD ──────────────────────────────────────────────────────────────────────
def add(user: User, params: Mapping[str, Any]) -> Dict[str, Any]:
    if not user.feature_enabled("dataset.add"):
        raise AccessDeniedError()
    name = _clean_name(params.get("dataSet"))
    with storage.transaction() as db:
        _assert_unique(db, name, user.user_id)
        rec = {
            "dataSetId": storage.next_id(db, "dataset"),
            "dataSet": name,
            "description": str(params.get("description") or ""),
            "code": str(params.get("code") or ""),
            "folderId": _folder_id(db, user, params.get("folderId")),
            "ownerId": user.user_id,
            "permissions": {},
            "lastDataEdit": 0,
            "columns": _clean_columns(params.get("columns")),
            "rows": [],
        }
        db["datasets"].append(rec)
    log.info("DataSet %s (%s) added by user %s", rec["dataSetId"], name, user.user_id)
    return _public(rec)


def edit(user: User, dataset_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    with storage.transaction() as db:
        rec = storage.get(db, "datasets", dataset_id)
        if not user.check_editable(rec) or not user.feature_enabled("dataset.modify"):
            raise AccessDeniedError()
        if "dataSet" in params:
            name = _clean_name(params.get("dataSet"))
            _assert_unique(db, name, rec["ownerId"], exclude_id=rec["dataSetId"])
            rec["dataSet"] = name
        for key in ("description", "code"):
            if key in params:
                rec[key] = str(params.get(key) or "")
        if "folderId" in params:
            rec["folderId"] = _folder_id(db, user, params.get("folderId"))
    return _public(rec)


def _copy_name(db: Dict[str, Any], name: str, owner_id: int) -> str:
    taken = {d.get("dataSet") for d in db["datasets"] if d.get("ownerId") == owner_id}
    n = 2
    while f"{name} {n}" in taken:
        n += 1
    return f"{name} {n}"


def copy_dataset(user: User, dataset_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Copy a dataset with its columns. Rows come along when `copyRows` is set.
    Without an explicit name the copy is called "<name> 2" (or the next free number).
    """
    if not user.feature_enabled("dataset.add"):
        raise AccessDeniedError()
    with storage.transaction() as db:
        src = storage.get(db, "datasets", dataset_id)
        if not user.check_viewable(src):
            raise AccessDeniedError()
        if params.get("dataSet"):
            name = _clean_name(params.get("dataSet"))
            _assert_unique(db, name, user.user_id)
        else:
            name = _copy_name(db, src["dataSet"], user.user_id)
        rec = copy.deepcopy(src)
        rec.update(
            {
                "dataSetId": storage.next_id(db, "dataset"),
                "dataSet": name,
                "ownerId": user.user_id,
                "permissions": {},
            }
        )
        if "description" in params:
            rec["description"] = str(params.get("description") or "")
        if str(params.get("copyRows") or "0").lower() not in ("1", "true", "on"):
            rec["rows"] = []
            rec["lastDataEdit"] = 0
        db["datasets"].append(rec)
    log.info("DataSet %s copied to %s (%s)", dataset_id, rec["dataSetId"], name)
    return _public(rec)


def add_row(user: User, dataset_id: int, row: Mapping[str, Any]) -> Dict[str, Any]:
    with storage.transaction() as db:
        rec = storage.get(db, "datasets", dataset_id)
        if not user.check_editable(rec):
            raise AccessDeniedError()
        headings = [c["heading"] for c in rec.get("columns") or []]
        if headings:
            unknown = [k for k in row if k not in headings]
            if unknown:
                raise InvalidArgumentError(f"Unknown column(s): {', '.join(unknown)}", "row")
        clean = {str(k): v for k, v in row.items()}
        clean["id"] = len(rec["rows"]) + 1
        rec["rows"].append(clean)
        rec["lastDataEdit"] = int(time.time())
    return clean


def delete(user: User, dataset_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    with storage.transaction() as db:
        rec = storage.get(db, "datasets", dataset_id)
        if not user.check_deleteable(rec) or not user.feature_enabled("dataset.modify"):
            raise AccessDeniedError()
        delete_data = str(params.get("deleteData") or "0").lower() in ("1", "true", "on")
        if rec.get("rows") and not delete_data:
            raise InvalidArgumentError(
                "There is data assigned to this data set, cannot delete.", "dataSetId"
            )
        storage.remove(db, "datasets", rec["dataSetId"])
    log.info("DataSet %s deleted by user %s", dataset_id, user.user_id)
    return _public(rec)
