"""
ARTCC Sync Backend Package.

Keeps a facility's view of the VATSIM network in sync: who is flying
through or to the Memphis ARTCC, which controllers and ATIS stations are
online, and what pilot reports fall inside its airspace. Built with
Flask, SQLAlchemy, requests and Redis.

Modules:
    api/          Read-only status and snapshot endpoints
    models/       SQLAlchemy ORM models (online snapshots, sessions, PIREPs)
    ingestion/    Network and weather clients, reconciler, background polling
    cache.py      Redis active-set cache and leave/update notifications
    config.py     Centralized configuration from environment variables
    facility.py   Static facility data (airports, positions, boundary)
    geofence.py   Point-in-polygon test against the facility boundary
"""

__version__ = '1.0.0'
