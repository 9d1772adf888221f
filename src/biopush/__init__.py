from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS
import os
import logging
import sentry_sdk
import atexit
from sentry_sdk.integrations.flask import FlaskIntegration

load_dotenv()

from biopush.api.push_devices import push_devices_bp
from biopush.api.devices import bp as device_blueprint
from biopush.api.organizations import bp as organization_blueprint
from biopush.api.storage import bp as storage_blueprint
from biopush.shared.logger import create_log_handler
from biopush.services.scheduler_service import scheduler_service
from biopush.services.notification_service import notification_dispatcher


class EndpointFilter(logging.Filter):
    """Suppress noisy request logs for specific endpoints."""

    def __init__(self, *paths):
        super().__init__()
        self.paths = paths

    def filter(self, record):
        message = record.getMessage()
        return not any(path in message for path in self.paths)


def create_app(config_overrides=None):
    # create and configure the app
    app = Flask(__name__)

    app.config.from_object("biopush.config.settings")
    if config_overrides:
        app.config.update(config_overrides)

    init_sentry(app.config.get("SENTRY_DSN"))

    # Device endpoints set their own CORS headers; only the management API uses flask-cors
    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"])

    handler = create_log_handler()

    app.logger.addHandler(handler)
    app.logger.setLevel(logging.INFO)

    # Devices heartbeat every few seconds; keep them out of werkzeug request logs
    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.addFilter(EndpointFilter('/iclock/getrequest'))

    app.register_blueprint(push_devices_bp)
    app.register_blueprint(device_blueprint)
    app.register_blueprint(organization_blueprint)
    app.register_blueprint(storage_blueprint)
    app.logger.info("Push protocol routes registered")

    @app.teardown_appcontext
    def teardown_db(exception=None):
        """Close database connection at the end of each request"""
        try:
            from biopush.database.connection import db_manager
            db_manager.close_connection()
        except Exception as e:
            app.logger.debug(f"Error during database teardown: {e}")

    # When the reloader is enabled, only the reloader child (== "true") starts background services
    run_main_flag = os.environ.get('WERKZEUG_RUN_MAIN')
    if app.config.get("SCHEDULER_ENABLED") and (run_main_flag == 'true' or run_main_flag is None):
        try:
            scheduler_service.start(
                offline_after_seconds=app.config.get("DEVICE_OFFLINE_AFTER_SECONDS"),
                interval_seconds=app.config.get("DEVICE_SWEEP_INTERVAL_SECONDS"),
            )

            def cleanup_services():
                app.logger.info("Shutting down services...")
                try:
                    scheduler_service.stop()
                except Exception as e:
                    app.logger.error(f"Error stopping scheduler: {e}")

                try:
                    notification_dispatcher.stop()
                except Exception as e:
                    app.logger.error(f"Error stopping notification dispatcher: {e}")

                app.logger.info("Services shutdown completed")

            atexit.register(cleanup_services)

        except Exception as e:
            app.logger.error(f"Failed to start scheduler service: {e}")
    else:
        app.logger.info("Scheduler disabled or running in reloader parent process")

    return app


def init_sentry(dsn=None):
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
    )
