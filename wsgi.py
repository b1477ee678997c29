# path: wsgi.py
"""
wsgi.py
"""
from __future__ import annotations

from signage import create_app
from signage.log import setup_logging

setup_logging()
app = create_app()

if __name__ == "__main__":
    # Local dev: waitress when installed, otherwise the Flask dev server.
    try:
        from waitress import serve  # type: ignore[reportMissingImports]
    except ImportError:
        app.run(host="0.0.0.0", port=5000, debug=True)
    else:
        serve(app, listen="0.0.0.0:5000")
