"""
Live hike tracking and safety monitoring.

Usage:
    from app.features.tracking import SessionRegistry, HikeSession
    from app.features.tracking.statistics import compute_statistics

Available components:
- HikeSession: records a hike and keeps its statistics fresh
- SharingSession: location sharing, anomaly checks, SOS
- AnomalyDetector: rule-based stuck / no movement / GPS loss checks
- SessionRegistry: live sessions per account
- SqlHikeRecordStore, SqlShareStore: SQLAlchemy persistence
- export_gpx: GPX 1.1 export of a record
"""
from .alerts import (
    AlertDispatcher,
    HttpAlertDispatcher,
    LoggingAlertDispatcher,
    get_alert_dispatcher,
)
from .anomaly import AnomalyDetector
from .config import AnomalyConfig, SessionTimings
from .errors import (
    DispatchError,
    NoEmergencyContactsError,
    NoKnownPositionError,
    PersistenceError,
    SosUnavailableError,
    TrackingError,
)
from .export import export_gpx
from .hike import HikeSession
from .provider import LocationProvider, PushLocationProvider
from .registry import SessionRegistry
from .sharing import SharingSession
from .statistics import compute_statistics, elevation_profile, motion_statistics
from .store import HikeRecordStore, ShareStore, SqlHikeRecordStore, SqlShareStore
from .types import (
    Anomaly,
    Coordinate,
    DispatchReport,
    EmergencyContact,
    HikeRecord,
    HikeStatistics,
    ShareSession,
    TrackPoint,
)

__all__ = [
    # Sessions
    "HikeSession",
    "SharingSession",
    "SessionRegistry",
    "SessionTimings",
    # Location
    "LocationProvider",
    "PushLocationProvider",
    # Statistics / anomalies
    "compute_statistics",
    "elevation_profile",
    "motion_statistics",
    "AnomalyDetector",
    "AnomalyConfig",
    # Persistence
    "HikeRecordStore",
    "ShareStore",
    "SqlHikeRecordStore",
    "SqlShareStore",
    # Alerts
    "AlertDispatcher",
    "HttpAlertDispatcher",
    "LoggingAlertDispatcher",
    "get_alert_dispatcher",
    # Export
    "export_gpx",
    # Types
    "Anomaly",
    "Coordinate",
    "DispatchReport",
    "EmergencyContact",
    "HikeRecord",
    "HikeStatistics",
    "ShareSession",
    "TrackPoint",
    # Errors
    "TrackingError",
    "PersistenceError",
    "DispatchError",
    "SosUnavailableError",
    "NoKnownPositionError",
    "NoEmergencyContactsError",
]
