# File: signage/routes/folders.py
from __future__ import annotations
from flask import Blueprint, Response

from .. import folders
from ..auth import current_user, require_user
from .common import json_ok, json_raw, no_content, request_params

bp = Blueprint("folders", __name__)


@bp.get("/folders")
@require_user
def folder_tree() -> Response:
    """Tree view of every folder below the root: [root]."""
    return json_raw(folders.get_tree(current_user()))


@bp.get("/folders/<int:folder_id>")
@require_user
def folder_get(folder_id: int) -> Response:
    return json_raw(folders.get_folder(folder_id, current_user()))


@bp.get("/folders/contextButtons/<int:folder_id>")
@require_user
def folder_buttons(folder_id: int) -> Response:
    return json_raw(folders.get_context_buttons(folder_id, current_user()))


@bp.post("/folders")
@require_user
def folder_add() -> Response:
    params = request_params()
    folder = folders.create_folder(current_user(), params.get("text"), params.get("parentId"))
    return json_ok(folder, message=f"Added {folder['text']}", id=folder["folderId"], status=201)


@bp.put("/folders/<int:folder_id>")
@require_user
def folder_edit(folder_id: int) -> Response:
    params = request_params()
    folder = folders.edit_folder(current_user(), folder_id, params.get("text"))
    return json_ok(folder, message=f"Edited {folder['text']}", id=folder["folderId"])


@bp.delete("/folders/<int:folder_id>")
@require_user
def folder_delete(folder_id: int) -> Response:
    folders.delete_folder(current_user(), folder_id)
    return no_content()


@bp.put("/folders/permissions/<int:folder_id>")
@require_user
def folder_share(folder_id: int) -> Response:
    folder = folders.share_folder(current_user(), folder_id, request_params())
    return json_ok(folder, message=f"Shared {folder['text']}", id=folder["folderId"])
