"""
config.py
=========

LRS API configuration module.

All environment variables and fixed settings are managed here in one place.
The statement store backend, the xAPI namespaces used by the interpretation
layer, report settings and the notification webhook are all read from the
environment (a local .env file is honoured).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# ============================================================================
# ENV LOAD
# ============================================================================

load_dotenv()

# ============================================================================
# BASIC SETTINGS
# ============================================================================

ENV = os.getenv("ENV", "development").lower()
DEBUG = ENV in ("dev", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# ============================================================================
# STATEMENT STORE CONFIG
# ============================================================================

# "mongo" for the real LRS collection, "memory" for local runs and tests
LRS_STORE_BACKEND = os.getenv("LRS_STORE_BACKEND", "mongo").lower()

LRS_MONGO_HOST = os.getenv("LRS_MONGO_HOST", "lrs-mongo")
LRS_MONGO_PORT = int(os.getenv("LRS_MONGO_PORT", 27017))
LRS_MONGO_DB = os.getenv("LRS_MONGO_DB", "lrs")
LRS_MONGO_COLLECTION = os.getenv("LRS_MONGO_COLLECTION", "statements")

LRS_MONGO_URI = os.getenv(
    "LRS_MONGO_URI",
    f"mongodb://{LRS_MONGO_HOST}:{LRS_MONGO_PORT}",
)

# ============================================================================
# xAPI NAMESPACES
# ============================================================================


@dataclass(frozen=True)
class XapiNamespaces:
    """
    URI prefixes used when interpreting simplified learning events.

    Injected into InterpretationService so a deployment can rebrand its
    verbs / activities / extensions without code changes.
    """

    verb: str = "http://adlnet.gov/expapi/verbs/"
    activity: str = "http://example.com/activities/"
    activity_type: str = "http://adlnet.gov/expapi/activities/"
    extension: str = "http://example.com/extensions/"


XAPI_NAMESPACES = XapiNamespaces(
    verb=os.getenv("XAPI_VERB_NAMESPACE", XapiNamespaces.verb),
    activity=os.getenv("XAPI_ACTIVITY_NAMESPACE", XapiNamespaces.activity),
    activity_type=os.getenv("XAPI_ACTIVITY_TYPE_NAMESPACE", XapiNamespaces.activity_type),
    extension=os.getenv("XAPI_EXTENSION_NAMESPACE", XapiNamespaces.extension),
)

XAPI_VERSION = os.getenv("XAPI_VERSION", "1.0.3")

# ============================================================================
# REPORT SETTINGS
# ============================================================================

# Daily trend buckets use the calendar date in this time zone
REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "UTC")
TOP_N_DEFAULT = int(os.getenv("TOP_N_DEFAULT", 10))

# ============================================================================
# NOTIFICATION SETTINGS
# ============================================================================

# Empty → webhook listener disabled, only log listener runs
NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL", "")
NOTIFY_QUEUE_SIZE = int(os.getenv("NOTIFY_QUEUE_SIZE", 1000))
NOTIFY_TIMEOUT_SEC = float(os.getenv("NOTIFY_TIMEOUT_SEC", 10))

# ============================================================================
# DASHBOARD
# ============================================================================

LRS_API_URL = os.getenv("LRS_API_URL", "http://lrs-api:8000")

# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    # Basic
    "ENV",
    "DEBUG",
    "LOG_LEVEL",
    # Store
    "LRS_STORE_BACKEND",
    "LRS_MONGO_HOST",
    "LRS_MONGO_PORT",
    "LRS_MONGO_DB",
    "LRS_MONGO_COLLECTION",
    "LRS_MONGO_URI",
    # xAPI
    "XapiNamespaces",
    "XAPI_NAMESPACES",
    "XAPI_VERSION",
    # Reports
    "REPORT_TIMEZONE",
    "TOP_N_DEFAULT",
    # Notification
    "NOTIFY_WEBHOOK_URL",
    "NOTIFY_QUEUE_SIZE",
    "NOTIFY_TIMEOUT_SEC",
    # Dashboard
    "LRS_API_URL",
]
