# signage/routes/__init__.py
from __future__ import annotations
# Re-export the blueprint objects. No @app decorators here.
from .pages import bp as pages_bp
from .folders import bp as folders_bp
from .datasets import bp as datasets_bp
from .layouts import bp as layouts_bp
__all__ = ["pages_bp", "folders_bp", "datasets_bp", "layouts_bp"]
