"""Error handlers for the application.

Every failure leaves the API as the JSON error envelope
``{"success": false, "error": ..., "details"?: ...}``.
"""
from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from storeadmin.api.decorators import get_caller
from storeadmin.core.errors import ApiError

HTTP_ERROR_MESSAGES = {
    400: "Bad Request",
    401: "Authentication required",
    403: "Insufficient permissions",
    404: "Resource not found",
    405: "Method not allowed",
    413: "Request payload too large",
}


def _envelope(message: str, status: int, details: str | None = None):
    body = {"success": False, "error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        """Handle application errors raised by services and the guard."""
        if error.status >= 500:
            app.logger.error("%s %s failed: %s (%s)", request.method, request.path, error.message, error.details)
        return jsonify(error.to_dict()), error.status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Render werkzeug errors (bad JSON, unknown route, wrong method) as JSON."""
        status = error.code or 500
        message = HTTP_ERROR_MESSAGES.get(status, error.name)
        details = error.description if status == 400 else None
        response, status = _envelope(message, status, details)
        # Keep werkzeug headers such as Allow on 405
        for name, value in error.get_headers():
            if name.lower() != "content-type":
                response.headers[name] = value
        return response, status

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Pass through HTTP errors
        if isinstance(error, HTTPException):
            return handle_http_exception(error)

        # ALWAYS log the full error (even in production) - logs are secure
        caller = get_caller()
        app.logger.error(
            "Unhandled exception on %s %s (caller=%s): %s",
            request.method,
            request.path,
            caller.user_id if caller else "-",
            error,
            exc_info=True,
        )

        # SECURITY: Show exception text ONLY in debug/demo mode, never in production
        cfg = app.config.get("APP_CONFIG")
        show_details = app.debug or getattr(cfg, "demo_mode", False)
        return _envelope("Internal server error", 500, str(error) if show_details else None)
