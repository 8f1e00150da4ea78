"""Constants for IMAP Expire."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".imap-expire"
DELETE_LOG_PATH = CONFIG_DIR / "delete_log.json"

# --- Connection ---
SSL_PORT = 993
PLAIN_PORT = 143
SOCKET_TIMEOUT = 30  # seconds
CONNECT_ATTEMPTS = 3

# --- Mailbox ---
DEFAULT_MAILBOX = "INBOX"
DEFAULT_KEEP_FLAG = "\\Flagged"
DELETED_FLAG = "(\\Deleted)"
FETCH_ITEMS = "(UID INTERNALDATE FLAGS)"

# IMAP dates always use English month names, whatever the locale
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# System flags that have a dedicated SEARCH key
SYSTEM_FLAG_KEYS = {
    "\\answered": "ANSWERED",
    "\\deleted": "DELETED",
    "\\draft": "DRAFT",
    "\\flagged": "FLAGGED",
    "\\seen": "SEEN",
}

# --- Display ---
CONFIRM_WORD = "DELETE"
DATE_FORMAT = "%Y-%m-%d"
