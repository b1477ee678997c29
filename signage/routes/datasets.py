# File: signage/routes/datasets.py
from __future__ import annotations
from flask import Blueprint, Response

from .. import datasets
from ..auth import current_user, require_user
from ..errors import InvalidArgumentError
from .common import json_ok, json_raw, no_content, request_params

bp = Blueprint("datasets", __name__)


@bp.get("/dataset")
@require_user
def dataset_search() -> Response:
    return json_raw(datasets.search(current_user(), request_params()))


@bp.get("/dataset/<int:dataset_id>")
@require_user
def dataset_get(dataset_id: int) -> Response:
    return json_ok(datasets.get_dataset(current_user(), dataset_id))


@bp.post("/dataset")
@require_user
def dataset_add() -> Response:
    rec = datasets.add(current_user(), request_params())
    return json_ok(rec, message=f"Added {rec['dataSet']}", id=rec["dataSetId"], status=201)


@bp.put("/dataset/<int:dataset_id>")
@require_user
def dataset_edit(dataset_id: int) -> Response:
    rec = datasets.edit(current_user(), dataset_id, request_params())
    return json_ok(rec, message=f"Edited {rec['dataSet']}", id=rec["dataSetId"])


@bp.post("/dataset/copy/<int:dataset_id>")
@require_user
def dataset_copy(dataset_id: int) -> Response:
    rec = datasets.copy_dataset(current_user(), dataset_id, request_params())
    return json_ok(rec, message=f"Copied as {rec['dataSet']}", id=rec["dataSetId"], status=201)


@bp.post("/dataset/data/<int:dataset_id>")
@require_user
def dataset_add_row(dataset_id: int) -> Response:
    params = request_params()
    row = params.get("row", params)
    if not isinstance(row, dict):
        raise InvalidArgumentError("row must be an object", "row")
    added = datasets.add_row(current_user(), dataset_id, row)
    return json_ok(added, message="Added Row", id=added["id"], status=201)


@bp.delete("/dataset/<int:dataset_id>")
@require_user
def dataset_delete(dataset_id: int) -> Response:
    datasets.delete(current_user(), dataset_id, request_params())
    return no_content()
