"""Thread-safe in-memory registry of phone -> one-time verification code."""
import logging
import secrets
import threading
import time
from typing import Dict, Tuple

from app.config import settings

logger = logging.getLogger(__name__)


class VerificationCodeStore:
    def __init__(self, ttl_seconds: float, code_length: int = 6, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.code_length = code_length
        self._clock = clock
        self._lock = threading.Lock()
        self._codes: Dict[str, Tuple[str, float]] = {}

    def _generate(self) -> str:
        low = 10 ** (self.code_length - 1)
        return str(low + secrets.randbelow(9 * low))

    def _purge_expired(self, now: float) -> None:
        expired = [phone for phone, (_, expiry) in self._codes.items() if expiry <= now]
        for phone in expired:
            del self._codes[phone]

    def issue(self, phone: str) -> str:
        """Issue a fresh code for phone, replacing any outstanding one."""
        code = self._generate()
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._codes[phone] = (code, now + self.ttl_seconds)
        logger.debug(f"Issued verification code for {phone}")
        return code

    def verify(self, phone: str, code: str) -> bool:
        """Consume the code for phone. False if missing, expired or wrong."""
        with self._lock:
            now = self._clock()
            entry = self._codes.get(phone)
            if entry is None:
                return False
            stored, expiry = entry
            if expiry <= now:
                del self._codes[phone]
                return False
            if not secrets.compare_digest(stored.encode(), code.encode()):
                return False
            del self._codes[phone]
            return True

    def has_pending(self, phone: str) -> bool:
        with self._lock:
            entry = self._codes.get(phone)
            return entry is not None and entry[1] > self._clock()

    def clear(self) -> None:
        with self._lock:
            self._codes.clear()


verification_codes = VerificationCodeStore(
    ttl_seconds=settings.verification_code_ttl_minutes * 60,
    code_length=settings.verification_code_length,
)


def get_code_store() -> VerificationCodeStore:
    return verification_codes

