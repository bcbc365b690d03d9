"""
ARTCC Sync Flask Application.

Main entry point for the service. Initializes:
- Database schema
- Active-set cache connection (fatal if unreachable)
- Reconciler and report ingester
- Background polling loops
- Read-only status API

Usage:
    python -m artcc_sync.app

Or with gunicorn (single worker, the pollers live in-process):
    gunicorn -w 1 'artcc_sync.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS
from sqlalchemy.orm import sessionmaker

from artcc_sync import facility
from artcc_sync.api import status_bp
from artcc_sync.cache import ActiveSetCache
from artcc_sync.config import config
from artcc_sync.ingestion import (
    AccountingClient,
    PirepClient,
    PollScheduler,
    Reconciler,
    ReportIngester,
    SessionLedger,
    VatsimClient,
)
from artcc_sync.models import SessionLocal, init_db

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    start_polling: bool = True,
    cache: Optional[ActiveSetCache] = None,
    session_factory: Optional[sessionmaker] = None,
    reconciler: Optional[Reconciler] = None,
    ingester: Optional[ReportIngester] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_polling: Whether to start the background polling loops.
                       Set to False for testing.
        cache, session_factory, reconciler, ingester: injected
            collaborators; production ones are built from config.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.secret_key

    CORS(app, resources={r'/api/*': {'origins': '*'}})

    session_factory = session_factory or SessionLocal
    if session_factory is SessionLocal:
        logger.info('Initializing database...')
        init_db()

    # The engine cannot reconcile without its cache; refuse to start
    cache = cache or ActiveSetCache.from_config()
    cache.ping()
    cache.set_airports(facility.AIRPORTS)

    ledger = SessionLedger(AccountingClient.from_config())
    reconciler = reconciler or Reconciler(
        client=VatsimClient.from_config(),
        cache=cache,
        session_factory=session_factory,
        ledger=ledger,
    )
    ingester = ingester or ReportIngester(
        client=PirepClient.from_config(),
        session_factory=session_factory,
    )

    app.config['SESSION_FACTORY'] = session_factory
    app.config['ACTIVE_SET_CACHE'] = cache
    app.config['RECONCILER'] = reconciler
    app.config['REPORT_INGESTER'] = ingester
    app.config['SCHEDULER'] = None

    app.register_blueprint(status_bp)

    if start_polling:
        scheduler = PollScheduler()
        scheduler.add('network-poll', reconciler.run_cycle, config.polling.interval_seconds)
        scheduler.add('pirep-poll', ingester.poll, config.polling.report_interval_seconds)
        scheduler.start()
        app.config['SCHEDULER'] = scheduler

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))
    logger.info(f'Starting ARTCC Sync on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate poller threads
    )


if __name__ == '__main__':
    run_development_server()
