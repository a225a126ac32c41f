# run.py
import logging
import os
import signal
import sys
import threading

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from werkzeug.serving import make_server

from dog_api import create_app
from dog_api.core.config import config_by_name, resolve_project_id
from dog_api.core.logging_config import AppLogger, setup_logging
from dog_api.core.tracing import init_tracing
from dog_api.services.firestore_service import create_firestore_client, close_firestore_client


def run():
    """
    Builds every dependency, serves until SIGINT/SIGTERM, then shuts down in
    reverse order: HTTP server, Firestore client, tracer, log handlers.
    """
    config_name = os.getenv('FLASK_ENV', 'development')
    config = config_by_name[config_name]

    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
    project_id = resolve_project_id(config.GOOGLE_CLOUD_PROJECT)
    app_logger = AppLogger.for_project(project_id)
    logger = app_logger.logger

    shutdown_tracer = init_tracing(config.TRACE_EXPORTER, project_id, config.OTEL_EXPORTER_OTLP_ENDPOINT)
    try:
        db = create_firestore_client({
            'GOOGLE_CLOUD_PROJECT': project_id,
            'FIREBASE_CREDENTIALS_PATH': config.FIREBASE_CREDENTIALS_PATH,
            'FIRESTORE_EMULATOR_HOST': config.FIRESTORE_EMULATOR_HOST,
        })
        try:
            app = create_app(config_name, db=db, app_logger=app_logger)
            server = make_server(config.HOST, config.PORT, app, threaded=True)
            # track request threads so server_close() can wait for them
            server.daemon_threads = False

            handle_signal = _make_signal_handler(server, logger)
            signal.signal(signal.SIGINT, handle_signal)
            signal.signal(signal.SIGTERM, handle_signal)

            logger.info(f"starting server on {config.HOST}:{config.PORT}")
            server.serve_forever()
            _close_server(server, config.SHUTDOWN_TIMEOUT_SECONDS, logger)
        finally:
            close_firestore_client(db)
    finally:
        shutdown_tracer()
        app_logger.close()


def _make_signal_handler(server, logger: logging.Logger):
    def handle_signal(signum, frame):
        logger.info(f"sig: {signal.Signals(signum).name} - starting shutdown sequence...")
        # shutdown() blocks until serve_forever returns, so it cannot run on the serving thread
        threading.Thread(target=server.shutdown, daemon=True).start()
    return handle_signal


def _close_server(server, timeout: float, logger: logging.Logger) -> bool:
    """
    Closes the listening socket and waits up to ``timeout`` seconds for
    in-flight requests. Returns False when the timeout was reached.
    """
    closer = threading.Thread(target=server.server_close, daemon=True)
    closer.start()
    closer.join(timeout)
    if closer.is_alive():
        logger.warning(f"shutdown timeout of {timeout}s reached with requests still running")
        return False
    logger.info("server has shutdown gracefully")
    return True


def main():
    try:
        run()
    except Exception as e:
        print(f"run(): {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
