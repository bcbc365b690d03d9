"""
Read-only status and snapshot endpoints.

Provides endpoints for:
- GET /api/status - Poller, database and cache health
- GET /api/online - Current pilots, controllers and ATIS in the facility
- GET /api/pireps  - Stored pilot reports, newest first

These readers never write; the snapshot tables are owned by the
reconciler and swapped in a single transaction each poll.
"""

import logging
import time
from datetime import datetime, timezone

import redis
from flask import Blueprint, jsonify, current_app
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from artcc_sync.config import config
from artcc_sync.ingestion.pireps import recent_reports
from artcc_sync.models import AtcOnline, AtisOnline, PilotOnline

logger = logging.getLogger(__name__)

status_bp = Blueprint('status', __name__, url_prefix='/api')


def _session_factory():
    return current_app.config['SESSION_FACTORY']


@status_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Reconciler and report ingester statistics
    - Database connectivity
    - Cache connectivity
    - Polling configuration
    """
    start_time = time.perf_counter()

    reconciler = current_app.config.get('RECONCILER')
    ingester = current_app.config.get('REPORT_INGESTER')
    scheduler = current_app.config.get('SCHEDULER')
    cache = current_app.config.get('ACTIVE_SET_CACHE')

    db_ok = True
    db_backend = None
    try:
        with _session_factory()() as session:
            db_backend = session.get_bind().url.get_backend_name()
            session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db_ok = False
        logger.error(f'Database health check failed: {e}')

    cache_ok = False
    if cache is not None:
        try:
            cache.client.ping()
            cache_ok = True
        except redis.RedisError as e:
            logger.error(f'Cache health check failed: {e}')

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': 'healthy' if (db_ok and cache_ok) else 'degraded',
        'database': {
            'connected': db_ok,
            'type': db_backend,
        },
        'cache': {'connected': cache_ok},
        'reconciler': reconciler.stats if reconciler else None,
        'reports': ingester.stats if ingester else None,
        'scheduler': scheduler.stats if scheduler else None,
        'config': {
            'poll_interval': config.polling.interval_seconds,
            'report_interval': config.polling.report_interval_seconds,
            'report_retention_hours': config.polling.report_retention_hours,
            'accounting_configured': config.accounting.is_configured,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@status_bp.route('/online', methods=['GET'])
def get_online():
    """Current snapshot of everything online in the facility."""
    with _session_factory()() as session:
        pilots = session.execute(select(PilotOnline).order_by(PilotOnline.callsign)).scalars()
        controllers = session.execute(select(AtcOnline).order_by(AtcOnline.pos)).scalars()
        atis = session.execute(select(AtisOnline).order_by(AtisOnline.airport)).scalars()

        return jsonify({
            'pilots': [p.to_dict() for p in pilots],
            'atc': [c.to_dict() for c in controllers],
            'atis': [a.to_dict() for a in atis],
        })


@status_bp.route('/pireps', methods=['GET'])
def get_pireps():
    reports = recent_reports(_session_factory())
    return jsonify({
        'pireps': [r.to_dict() for r in reports],
        'count': len(reports),
    })
