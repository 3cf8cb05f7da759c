"""
In-memory cache for session users, revoked tokens and security events.
Single-instance only; data is lost on restart.
"""

from datetime import datetime, timedelta
from typing import Optional, List
import threading

from loguru import logger


class InMemoryCacheManager:
    """In-memory cache manager using Python dicts"""

    def __init__(self):
        self.session_users = {}  # session_user:user_id -> (session dict, expiry)
        self.blacklist = {}  # blacklist:token -> expiry time
        self.login_attempts = {}  # login_attempts:email -> (count, expiry)
        self.security_events = {}  # security_events:user_id -> list of events
        self.lock = threading.Lock()
        logger.debug("In-memory cache initialized")

    def _is_expired(self, expiry_time):
        """Check if timestamp has expired"""
        if expiry_time is None:
            return False
        return datetime.utcnow() > expiry_time

    def _cleanup_expired(self):
        """Drop expired entries"""
        now = datetime.utcnow()
        self.blacklist = {k: v for k, v in self.blacklist.items() if v > now}
        self.login_attempts = {k: v for k, v in self.login_attempts.items() if v[1] > now}
        self.session_users = {k: v for k, v in self.session_users.items() if v[1] > now}

    # ==================== SESSION USER CACHE ====================

    def cache_session_user(self, user_id: int, session: dict, ttl: int = 300):
        """Cache the rebuilt session object of a user"""
        with self.lock:
            expiry = datetime.utcnow() + timedelta(seconds=ttl)
            self.session_users[f"session_user:{user_id}"] = (session, expiry)

    def get_cached_session_user(self, user_id: int) -> Optional[dict]:
        with self.lock:
            key = f"session_user:{user_id}"
            if key in self.session_users:
                session, expiry = self.session_users[key]
                if not self._is_expired(expiry):
                    return session
                del self.session_users[key]
            return None

    def invalidate_user_cache(self, user_id: int):
        """Invalidate cached session/permissions of a user"""
        with self.lock:
            self.session_users.pop(f"session_user:{user_id}", None)

    def clear(self):
        with self.lock:
            self.session_users.clear()
            self.blacklist.clear()
            self.login_attempts.clear()
            self.security_events.clear()

    # ==================== TOKEN BLACKLIST ====================

    def blacklist_token(self, token: str, ttl: int = 3600):
        """Blacklist access token"""
        with self.lock:
            expiry = datetime.utcnow() + timedelta(seconds=ttl)
            self.blacklist[f"blacklist:{token}"] = expiry

    def is_token_blacklisted(self, token: str) -> bool:
        """Check if token is blacklisted"""
        with self.lock:
            key = f"blacklist:{token}"
            if key in self.blacklist:
                if not self._is_expired(self.blacklist[key]):
                    return True
                del self.blacklist[key]
            return False

    # ==================== LOGIN THROTTLING ====================

    def record_failed_login(self, email: str, window: int = 900) -> int:
        """Count a failed login; returns attempts within the window"""
        with self.lock:
            self._cleanup_expired()
            key = f"login_attempts:{email.lower()}"
            count, expiry = self.login_attempts.get(key, (0, datetime.utcnow() + timedelta(seconds=window)))
            self.login_attempts[key] = (count + 1, expiry)
            return count + 1

    def failed_login_count(self, email: str) -> int:
        with self.lock:
            key = f"login_attempts:{email.lower()}"
            if key in self.login_attempts:
                count, expiry = self.login_attempts[key]
                if not self._is_expired(expiry):
                    return count
                del self.login_attempts[key]
            return 0

    def reset_failed_logins(self, email: str):
        with self.lock:
            self.login_attempts.pop(f"login_attempts:{email.lower()}", None)

    # ==================== SECURITY EVENTS ====================

    def log_security_event(self, user_id, event_type: str, details: dict = None):
        """Cache security events"""
        with self.lock:
            event_data = {
                "event_type": event_type,
                "details": details or {},
                "timestamp": datetime.utcnow().isoformat()
            }

            key = f"security_events:{user_id}"
            if key not in self.security_events:
                self.security_events[key] = []

            self.security_events[key].insert(0, event_data)
            self.security_events[key] = self.security_events[key][:1000]  # Keep last 1000

    def get_security_events(self, user_id, limit: int = 50) -> List[dict]:
        """Get recent security events for user"""
        with self.lock:
            return self.security_events.get(f"security_events:{user_id}", [])[:limit]


# Global instance
cache_manager = InMemoryCacheManager()
