# log_analysis/app.py
import logging
from typing import Optional

from flask import Flask, request

from .decoder import decode_push_event
from .errors import DecodeError
from .models import AppSettings
from .pipeline import PipelineLauncher

logger = logging.getLogger(__name__)

TEXT_PLAIN = {"Content-Type": "text/plain; charset=utf-8"}


def create_app(settings: Optional[AppSettings] = None, launcher: Optional[PipelineLauncher] = None) -> Flask:
    """Flask application factory for the Pub/Sub push endpoint."""
    app = Flask(__name__)

    if settings is None:
        settings = AppSettings()
    if launcher is None:
        launcher = PipelineLauncher(settings)

    # Store components on app for access in tests
    app.config["components"] = {
        "settings": settings,
        "launcher": launcher,
    }

    # --- Routes ---

    # Pub/Sub may be pointed at any path; every path is the push endpoint, POST only.
    @app.route("/", defaults={"subpath": ""}, methods=["POST"], provide_automatic_options=False)
    @app.route("/<path:subpath>", methods=["POST"], provide_automatic_options=False)
    def handle_push(subpath):
        try:
            record = decode_push_event(request.get_data())
        except DecodeError as e:
            logger.warning(f"Rejecting push request: {e}")
            return "Bad request", 400, TEXT_PLAIN

        logger.info(f"Received log entry: severity={record.severity}")

        # The push is acknowledged before the pipeline does any work.
        launcher.submit(record)
        return "OK", 200, TEXT_PLAIN

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return "Method not allowed", 405, TEXT_PLAIN

    return app


def main() -> None:
    settings = AppSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )

    app = create_app(settings)
    logger.info(f"Starting log-analysis-server on port {settings.port}")
    app.run(host="0.0.0.0", port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
