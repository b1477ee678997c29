# signage/__init__.py
from __future__ import annotations
from flask import Flask, request, Response
from werkzeug.exceptions import HTTPException

from .errors import GeneralError


def create_app(*, testing: bool = False) -> Flask:
    app = Flask(__name__)
    app.testing = testing

    # Register blueprints from the routes package
    from .routes import pages_bp, folders_bp, datasets_bp, layouts_bp
    app.register_blueprint(pages_bp)
    app.register_blueprint(folders_bp)
    app.register_blueprint(datasets_bp)
    app.register_blueprint(layouts_bp)

    from .routes.common import json_err

    @app.errorhandler(GeneralError)
    def handle_general_error(e: GeneralError) -> Response:
        if e.http_status >= 500:
            app.logger.error("%s %s failed: %s", request.method, request.path, e.message)
        else:
            app.logger.debug("%s %s rejected: %s", request.method, request.path, e.message)
        data = e.to_dict()
        return json_err(data.pop("message"), status=e.http_status, code=data.pop("error"), extra=data)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException) -> Response:
        return json_err(e.description or e.name, status=e.code or 500, code=e.name.lower().replace(" ", "_"))

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception) -> Response:
        app.logger.exception("%s %s failed", request.method, request.path)
        return json_err("internal error", status=500, code="internal_error")

    @app.after_request
    def apply_common_headers(resp: Response) -> Response:
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        # Everything here is dynamic JSON
        resp.headers.setdefault("Cache-Control", "no-store")
        return resp

    return app
