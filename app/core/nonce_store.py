"""
Wallet Challenge Nonce Store

Single-use challenges for wallet authentication, kept in memory and keyed by
the normalized wallet address.

Lifecycle of a nonce:
1. generate() issues a fresh value, replacing any earlier one for the address
2. verify() checks a candidate in constant time; a mismatch counts as a failed attempt
3. invalidate() burns the nonce once the login has gone through

A nonce is dropped when it expires (15 minutes by default) or when the client
runs out of attempts (MAX_ATTEMPTS - 1 failures are tolerated). A background
reaper thread sweeps abandoned challenges every few minutes.

Nothing here raises on client input: bad input yields False / None.
A process restart loses every outstanding nonce; clients simply ask again.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.constant_time import bytes_eq

from app.core.wallet import WalletAddress

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 32  # random bytes before hashing
NONCE_TTL_SECONDS = 15 * 60
MAX_ATTEMPTS = 5
CLEANUP_INTERVAL_SECONDS = 5 * 60


@dataclass
class Nonce:
    value: str
    issued_to: WalletAddress
    issued_at: float
    expires_at: float
    failed_attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now


def _strip_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def _matches(stored: str, candidate: str) -> bool:
    """Constant-time comparison of two hex strings, ignoring an optional 0x prefix."""
    a = _strip_hex_prefix(stored).encode()
    b = _strip_hex_prefix(candidate).encode()
    if len(a) != len(b):
        return False
    return bytes_eq(a, b)


class NonceStore:
    """
    In-memory challenge registry, one outstanding nonce per wallet address.

    All mutations happen under a single lock; the table is small and no
    external I/O is done while holding it.
    """

    def __init__(
        self,
        ttl_seconds: int = NONCE_TTL_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        cleanup_interval_seconds: int = CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_attempts < 2:
            raise ValueError("max_attempts must be at least 2")

        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock

        self._nonces: Dict[WalletAddress, Nonce] = {}
        self._lock = threading.RLock()

        # Background reaper state
        self._stop_event = threading.Event()
        self._reaper_thread: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._nonces)

    def _new_value(self, issued_at: float) -> str:
        digest = hashes.Hash(hashes.SHA512_224())
        digest.update(secrets.token_bytes(NONCE_NUM_BYTES))
        digest.update(repr(issued_at).encode())
        return "0x" + digest.finalize().hex()

    def generate(self, address: Optional[WalletAddress]) -> Optional[Nonce]:
        """
        Issue a new nonce for an already validated address.

        Any previous nonce for the same address is overwritten, so a second
        device logging in with the same wallet invalidates the first challenge.

        Returns:
            A copy of the stored Nonce, or None when no address was given
        """
        if not address:
            return None

        now = self._clock()
        nonce = Nonce(
            value=self._new_value(now),
            issued_to=address,
            issued_at=now,
            expires_at=now + self.ttl_seconds,
        )
        with self._lock:
            self._nonces[address] = nonce
        logger.debug("Issued nonce for %s", address.short())
        return replace(nonce)

    def get(self, address: Optional[WalletAddress]) -> Optional[Nonce]:
        """Snapshot of the live nonce for an address, None if absent or expired."""
        if not address:
            return None
        with self._lock:
            nonce = self._nonces.get(address)
            if nonce is None or nonce.is_expired(self._clock()):
                return None
            return replace(nonce)

    def verify(self, address: Optional[WalletAddress], candidate: Optional[str]) -> bool:
        """
        Check a candidate nonce for an address.

        A match does not consume the nonce; call invalidate() once the login
        has completed.
        """
        if not address or not candidate or not isinstance(candidate, str):
            return False

        with self._lock:
            nonce = self._nonces.get(address)
            if nonce is None:
                return False

            if nonce.is_expired(self._clock()):
                del self._nonces[address]
                logger.info("Expired nonce evicted for %s", address.short())
                return False

            if _matches(nonce.value, candidate):
                return True

            self._register_failure(address, nonce)
            return False

    def record_failure(self, address: Optional[WalletAddress]) -> int:
        """
        Count a failed attempt made with the right nonce but a bad signature.

        Returns:
            Attempts left before the nonce is burned (0 if it is gone)
        """
        if not address:
            return 0
        with self._lock:
            nonce = self._nonces.get(address)
            if nonce is None:
                return 0
            return self._register_failure(address, nonce)

    def _register_failure(self, address: WalletAddress, nonce: Nonce) -> int:
        # caller holds the lock
        nonce.failed_attempts += 1
        remaining = self.max_attempts - 1 - nonce.failed_attempts
        if remaining <= 0:
            del self._nonces[address]
            logger.warning(
                "Nonce for %s evicted after %d failed attempts",
                address.short(),
                nonce.failed_attempts,
            )
            return 0
        return remaining

    def invalidate(self, address: Optional[WalletAddress], expected_value: Optional[str] = None) -> bool:
        """
        Delete the nonce for an address; True if one was removed.

        With expected_value the delete only happens while that exact nonce is
        still the live one, so of two concurrent logins with the same nonce
        only one gets True, and a nonce issued in the meantime survives.
        """
        if not address:
            return False
        with self._lock:
            nonce = self._nonces.get(address)
            if nonce is None:
                return False
            if expected_value is not None and not _matches(nonce.value, expected_value):
                return False
            del self._nonces[address]
            return True

    def sweep(self) -> int:
        """Evict every expired nonce. Returns the number removed."""
        with self._lock:
            addresses = list(self._nonces.keys())

        removed = 0
        for address in addresses:
            with self._lock:
                nonce = self._nonces.get(address)
                if nonce is not None and nonce.is_expired(self._clock()):
                    del self._nonces[address]
                    removed += 1
        if removed:
            logger.info("Nonce sweep removed %d expired entries", removed)
        return removed

    def _reaper_loop(self):
        while not self._stop_event.wait(self.cleanup_interval_seconds):
            try:
                self.sweep()
            except Exception as e:
                logger.error("Error in nonce sweep: %s", e, exc_info=True)

    def start_reaper(self):
        """Start the background sweep thread (no-op if already running)."""
        if self._reaper_thread and self._reaper_thread.is_alive():
            return

        self._stop_event.clear()
        self._reaper_thread = threading.Thread(
            target=self._reaper_loop,
            daemon=True,
            name="NonceReaper",
        )
        self._reaper_thread.start()

    def stop_reaper(self):
        """Stop the background sweep thread."""
        self._stop_event.set()
        if self._reaper_thread:
            self._reaper_thread.join(timeout=5)
            self._reaper_thread = None

    @property
    def reaper_running(self) -> bool:
        return self._reaper_thread is not None and self._reaper_thread.is_alive()
