import os
import sys


VERSION = "v0.3.0"


def _is_packaged_runtime() -> bool:
    """Return True when running from a frozen executable."""
    return bool(getattr(sys, "frozen", False))


def _env_int(name: str, default: int) -> int:
    """Read an integer env var, keeping the default for malformed values."""
    raw = str(os.environ.get(name, "") or "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


DEFAULT_PASSCODE_TTL_MS = 300_000

PASSCODE_TTL_MS = _env_int("PASSCODES_TTL_MS", DEFAULT_PASSCODE_TTL_MS)
SWEEP_INTERVAL_S = _env_int("PASSCODES_SWEEP_INTERVAL_S", 60)
SWEEP_ENABLED = os.environ.get("PASSCODES_SWEEP_ENABLED", "1") == "1"

HOST = str(os.environ.get("PASSCODES_HOST", "127.0.0.1") or "127.0.0.1").strip()
PORT = _env_int("PASSCODES_PORT", 8085)
API_LOCAL_ONLY = os.environ.get("PASSCODES_API_LOCAL_ONLY", "1") == "1"

DEBUG = os.environ.get("PASSCODES_DEBUG", "0") == "1"
CONSOLE_LOG = os.environ.get("PASSCODES_CONSOLE", "0") == "1"
LOG_ENABLED = os.environ.get("PASSCODES_LOG", "0") == "1" or CONSOLE_LOG
VERBOSE_HTTP_LOG = os.environ.get("PASSCODES_VERBOSE_HTTP_LOG", "1") == "1"

if _is_packaged_runtime():
    BASE_DIR = os.path.dirname(sys.executable)
else:
    # repository root (parent of the package directory)
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DATA_DIR = os.path.abspath(str(os.environ.get("PASSCODES_DATA_DIR", BASE_DIR) or BASE_DIR))
LOG_FILE = os.path.join(DATA_DIR, "passcodes.log")


def reload_from_env() -> None:
    """Reload runtime configuration from environment variables."""
    global PASSCODE_TTL_MS, SWEEP_INTERVAL_S, SWEEP_ENABLED
    global HOST, PORT, API_LOCAL_ONLY
    global DEBUG, CONSOLE_LOG, LOG_ENABLED, VERBOSE_HTTP_LOG
    global DATA_DIR, LOG_FILE

    PASSCODE_TTL_MS = _env_int("PASSCODES_TTL_MS", PASSCODE_TTL_MS)
    SWEEP_INTERVAL_S = _env_int("PASSCODES_SWEEP_INTERVAL_S", SWEEP_INTERVAL_S)
    SWEEP_ENABLED = os.environ.get("PASSCODES_SWEEP_ENABLED", "1") == "1"

    HOST = str(os.environ.get("PASSCODES_HOST", HOST) or HOST).strip()
    PORT = _env_int("PASSCODES_PORT", PORT)
    API_LOCAL_ONLY = os.environ.get("PASSCODES_API_LOCAL_ONLY", "1") == "1"

    DEBUG = os.environ.get("PASSCODES_DEBUG", "0") == "1"
    CONSOLE_LOG = os.environ.get("PASSCODES_CONSOLE", "0") == "1"
    LOG_ENABLED = os.environ.get("PASSCODES_LOG", "0") == "1" or CONSOLE_LOG
    VERBOSE_HTTP_LOG = os.environ.get("PASSCODES_VERBOSE_HTTP_LOG", "1") == "1"

    DATA_DIR = os.path.abspath(str(os.environ.get("PASSCODES_DATA_DIR", DATA_DIR) or DATA_DIR))
    LOG_FILE = os.path.join(DATA_DIR, "passcodes.log")
