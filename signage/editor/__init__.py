# signage/editor/__init__.py
from __future__ import annotations
# Client-side layout editor: API client, object model, change manager.
from .client import ApiClient, ApiError, LoginRequiredError
from .designer import EditorError, LayoutEditor
from .layout import Canvas, Layout, Region, Widget
from .manager import Change, ChangeError, ChangeManager, ChangeResult

__all__ = [
    "ApiClient", "ApiError", "LoginRequiredError",
    "EditorError", "LayoutEditor",
    "Canvas", "Layout", "Region", "Widget",
    "Change", "ChangeError", "ChangeManager", "ChangeResult",
]
