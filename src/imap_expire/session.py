"""IMAP session: connecting, logging in and the UID commands the cleanup needs."""

from __future__ import annotations

import imaplib
import logging
import re
import ssl
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import Protocol

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from imap_expire.constants import (
    CONNECT_ATTEMPTS,
    DELETED_FLAG,
    FETCH_ITEMS,
    MONTHS,
    PLAIN_PORT,
    SOCKET_TIMEOUT,
    SSL_PORT,
    SYSTEM_FLAG_KEYS,
)
from imap_expire.errors import (
    AuthenticationError,
    ConnectError,
    DeleteError,
    FetchError,
    MailboxError,
    QueryError,
)
from imap_expire.models import MessagePreview, UidRange

logger = logging.getLogger(__name__)

_UID_RE = re.compile(rb"\bUID (\d+)")
_INTERNALDATE_RE = re.compile(
    rb'INTERNALDATE "\s?(?P<day>\d{1,2})-(?P<mon>[A-Za-z]{3})-(?P<year>\d{4})'
    rb" (?P<hour>\d{2}):(?P<min>\d{2}):(?P<sec>\d{2})"
    rb' (?P<zonen>[-+])(?P<zoneh>\d{2})(?P<zonem>\d{2})"'
)
_FLAGS_RE = re.compile(rb"FLAGS \((?P<flags>[^)]*)\)")
_MAILBOX_SPECIALS = re.compile(r'[\s"\\(){%*\]]')


class MailboxSession(Protocol):
    """Operations the cleanup workflow needs from a mailbox connection."""

    def select(self, mailbox: str, readonly: bool = False) -> None: ...

    def search(self, before: date, keep_flag: str) -> Iterable[int]: ...

    def fetch_metadata(self, uid_range: UidRange) -> list[MessagePreview]: ...

    def mark_deleted(self, uid_range: UidRange) -> None: ...

    def purge(self) -> None: ...


def _is_retryable_connect_error(exc: BaseException) -> bool:
    # A certificate that fails verification will not pass on a second try
    return isinstance(exc, OSError) and not isinstance(exc, ssl.SSLCertVerificationError)


def _describe(data) -> str:
    parts = []
    for item in data or []:
        if isinstance(item, bytes):
            parts.append(item.decode("utf-8", "replace"))
        elif item is not None:
            parts.append(str(item))
    return " ".join(parts) or "no response text"


def format_imap_date(day: date) -> str:
    """Format a date the way IMAP SEARCH expects it, e.g. ``5-Mar-2024``."""
    return f"{day.day}-{MONTHS[day.month - 1]}-{day.year}"


def search_criteria(before: date, keep_flag: str) -> list[str]:
    """Build SEARCH keys matching messages before ``before`` without ``keep_flag``.

    System flags map to their dedicated keys (``\\Flagged`` -> ``NOT FLAGGED``),
    anything else is treated as a keyword (``$Keep`` -> ``NOT KEYWORD $Keep``).
    """
    criteria = ["BEFORE", format_imap_date(before)]
    system_key = SYSTEM_FLAG_KEYS.get(keep_flag.lower())
    if system_key:
        criteria += ["NOT", system_key]
    else:
        criteria += ["NOT", "KEYWORD", keep_flag]
    return criteria


def quote_mailbox(name: str) -> str:
    """Quote a mailbox name when it contains characters IMAP treats specially."""
    if name.startswith('"') or not _MAILBOX_SPECIALS.search(name):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_fetch_response(data) -> list[MessagePreview]:
    """Parse the untagged lines of a ``UID FETCH (UID INTERNALDATE FLAGS)``."""
    previews: list[MessagePreview] = []
    for item in data or []:
        # Literal payloads arrive as tuples; these items never carry one
        line = item[0] if isinstance(item, tuple) else item
        if not isinstance(line, bytes):
            continue

        uid_match = _UID_RE.search(line)
        date_match = _INTERNALDATE_RE.search(line)
        if not uid_match:
            # Unsolicited FETCH, e.g. a flag change made by another client
            continue
        if not date_match:
            raise FetchError(f"Unexpected FETCH response: {line.decode('utf-8', 'replace')}")

        flags_match = _FLAGS_RE.search(line)
        flags: tuple[str, ...] = ()
        if flags_match:
            flags = tuple(f.decode("utf-8", "replace") for f in flags_match.group("flags").split())

        previews.append(
            MessagePreview(
                uid=int(uid_match.group(1)),
                internal_date=_parse_internal_date(date_match),
                flags=flags,
            )
        )
    return previews


def _parse_internal_date(match: re.Match) -> datetime:
    month_name = match.group("mon").decode().title()
    if month_name not in MONTHS:
        raise FetchError(f"Unknown month in INTERNALDATE: {month_name}")

    offset = timedelta(hours=int(match.group("zoneh")), minutes=int(match.group("zonem")))
    if match.group("zonen") == b"-":
        offset = -offset

    return datetime(
        int(match.group("year")),
        MONTHS.index(month_name) + 1,
        int(match.group("day")),
        int(match.group("hour")),
        int(match.group("min")),
        int(match.group("sec")),
        tzinfo=timezone(offset),
    )


class ImapSession:
    """A logged-in IMAP connection addressing messages by UID."""

    def __init__(self, conn: imaplib.IMAP4) -> None:
        self._conn = conn

    def __enter__(self) -> ImapSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.logout()

    def logout(self) -> None:
        try:
            self._conn.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.debug("Logout failed: %s", exc)

    def _uid(self, error_cls: type[Exception], command: str, *args: str) -> list:
        """Run a UID command, raising ``error_cls`` unless the server answers OK."""
        logger.debug("UID %s %s", command, " ".join(args))
        try:
            typ, data = self._conn.uid(command, *args)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise error_cls(f"UID {command} failed: {exc}") from exc
        if typ != "OK":
            raise error_cls(f"UID {command} failed: {_describe(data)}")
        return data

    def select(self, mailbox: str, readonly: bool = False) -> None:
        logger.debug("%s %s", "EXAMINE" if readonly else "SELECT", mailbox)
        try:
            typ, data = self._conn.select(quote_mailbox(mailbox), readonly=readonly)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"Cannot select mailbox {mailbox!r}: {exc}") from exc
        if typ != "OK":
            raise MailboxError(f"Cannot select mailbox {mailbox!r}: {_describe(data)}")

    def search(self, before: date, keep_flag: str) -> set[int]:
        data = self._uid(QueryError, "SEARCH", *search_criteria(before, keep_flag))
        uids: set[int] = set()
        for chunk in data:
            if chunk:
                uids.update(int(uid) for uid in chunk.split())
        return uids

    def fetch_metadata(self, uid_range: UidRange) -> list[MessagePreview]:
        data = self._uid(FetchError, "FETCH", str(uid_range), FETCH_ITEMS)
        return parse_fetch_response(data)

    def mark_deleted(self, uid_range: UidRange) -> None:
        self._uid(DeleteError, "STORE", str(uid_range), "+FLAGS.SILENT", DELETED_FLAG)

    def purge(self) -> None:
        logger.debug("EXPUNGE")
        try:
            typ, data = self._conn.expunge()
        except (imaplib.IMAP4.error, OSError) as exc:
            raise DeleteError(f"EXPUNGE failed: {exc}") from exc
        if typ != "OK":
            raise DeleteError(f"EXPUNGE failed: {_describe(data)}")


@retry(
    retry=retry_if_exception(_is_retryable_connect_error),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    stop=stop_after_attempt(CONNECT_ATTEMPTS),
    reraise=True,
)
def _open_connection(host: str, port: int, use_ssl: bool, timeout: float) -> imaplib.IMAP4:
    if use_ssl:
        return imaplib.IMAP4_SSL(host, port, ssl_context=ssl.create_default_context(), timeout=timeout)
    return imaplib.IMAP4(host, port, timeout=timeout)


def connect(
    host: str,
    username: str,
    password: str,
    port: int | None = None,
    use_ssl: bool = True,
    timeout: float = SOCKET_TIMEOUT,
) -> ImapSession:
    """Open a connection to ``host`` and log in.

    Opening the socket is retried with exponential backoff; a rejected login
    is not.
    """
    port = port or (SSL_PORT if use_ssl else PLAIN_PORT)
    logger.info("Connecting to %s:%d", host, port)
    try:
        conn = _open_connection(host, port, use_ssl, timeout)
    except (OSError, imaplib.IMAP4.error) as exc:
        raise ConnectError(f"Cannot connect to {host}:{port}: {exc}") from exc

    try:
        conn.login(username, password)
    except (OSError, imaplib.IMAP4.abort) as exc:
        ImapSession(conn).logout()
        raise ConnectError(f"Connection to {host}:{port} lost during login: {exc}") from exc
    except imaplib.IMAP4.error as exc:
        ImapSession(conn).logout()
        raise AuthenticationError(f"Login failed for {username}: {exc}") from exc

    logger.info("Logged in as %s", username)
    return ImapSession(conn)
