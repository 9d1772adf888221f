import os

def strtobool(val):
    """Convert a string representation of truth to true (1) or false (0)."""
    val = val.lower()
    if val in ('y', 'yes', 't', 'true', 'on', '1'):
        return 1
    elif val in ('n', 'no', 'f', 'false', 'off', '0'):
        return 0
    else:
        raise ValueError(f"invalid truth value {val!r}")


def default_data_dir():
    """Per-user data directory, kept outside the installed package"""
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or os.path.expanduser("~")
        return os.path.join(base, "BioPush")
    return os.path.join(os.path.expanduser("~"), ".local", "share", "biopush")


def resolve_data_path(path):
    """Absolute form of a configured storage path"""
    if os.path.isabs(path):
        return path
    return os.path.join(DATA_DIR, path)


SECRET_KEY = os.getenv("SECRET_KEY", "default-secret-key-for-push-service")
DEBUG = bool(strtobool(os.getenv("FLASK_DEBUG", "false")))


# Storage locations; relative paths are resolved against DATA_DIR
DATA_DIR = os.path.abspath(os.getenv("BIOPUSH_DATA_DIR") or default_data_dir())
DB_PATH = os.getenv("BIOPUSH_DB_PATH", "biopush.db")
BLOB_DIR = os.getenv("BIOPUSH_BLOB_DIR", "storage")

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:57575")

# Auto-enrollment from device roster pushes
ENROLLMENT_EMAIL_DOMAIN = os.getenv("ENROLLMENT_EMAIL_DOMAIN", "paradigm.com")
DEFAULT_ENROLLMENT_ROLE = os.getenv("DEFAULT_ENROLLMENT_ROLE", "field_staff")

# Device liveness sweep
SCHEDULER_ENABLED = bool(strtobool(os.getenv("SCHEDULER_ENABLED", "true")))
DEVICE_OFFLINE_AFTER_SECONDS = int(os.getenv("DEVICE_OFFLINE_AFTER_SECONDS", "600"))
DEVICE_SWEEP_INTERVAL_SECONDS = int(os.getenv("DEVICE_SWEEP_INTERVAL_SECONDS", "60"))

SENTRY_DSN = os.getenv("SENTRY_DSN")
LOG_FILE_SIZE = os.getenv("LOG_FILE_SIZE", "10485760")
