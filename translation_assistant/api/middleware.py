"""
API Middleware
==============
Rate limiting, authentication, and request handling middleware.
"""
import math
import threading
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, Dict, Tuple

import jwt
from flask import request, jsonify, g

from translation_assistant.config import config
from translation_assistant.config.settings import RateLimitRule
from translation_assistant.database.repositories import UserRepository
from translation_assistant.services.auth_service import decode_token
from translation_assistant.utils.logging import get_logger


def client_ip() -> str:
    """Get the client address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get('X-Forwarded-For')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr or 'anonymous'


def user_key() -> str:
    """Key by authenticated user, falling back to the client address."""
    user = getattr(g, 'current_user', None)
    if user is not None:
        return f"user:{user.id}"
    return client_ip()


class FixedWindowRateLimiter:
    """
    In-memory fixed window rate limiter.

    Each key gets a counter that resets when its window ends. Expired
    windows are purged every ``cleanup_interval`` seconds, checked on access.
    """

    def __init__(
        self,
        name: str,
        rule: RateLimitRule,
        key_func: Callable[[], str] = client_ip,
        skip_successful_requests: bool = False,
        cleanup_interval: int = 600,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.rule = rule
        self.key_func = key_func
        self.skip_successful_requests = skip_successful_requests
        self.cleanup_interval = cleanup_interval
        self.clock = clock

        self._windows: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()
        self._next_cleanup = clock() + cleanup_interval
        self.logger = get_logger().api_logger

    def hit(self, key: str) -> Tuple[bool, dict]:
        """
        Count a request against a key.

        Returns:
            Tuple of (allowed, info_dict)
        """
        now = self.clock()
        with self._lock:
            if now >= self._next_cleanup:
                self._purge(now)

            window = self._windows.get(key)
            if window is None or window['reset_time'] <= now:
                window = {'count': 0, 'reset_time': now + self.rule.window_seconds}
                self._windows[key] = window

            if window['count'] >= self.rule.max_requests:
                return False, self._info(window, now)

            window['count'] += 1
            return True, self._info(window, now)

    def release(self, key: str) -> None:
        """Give back one request, used for successful responses."""
        with self._lock:
            window = self._windows.get(key)
            if window and window['count'] > 0:
                window['count'] -= 1

    def cleanup(self) -> int:
        """Drop expired windows; returns how many were removed."""
        with self._lock:
            return self._purge(self.clock())

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _purge(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if window['reset_time'] <= now]
        for key in expired:
            del self._windows[key]
        self._next_cleanup = now + self.cleanup_interval
        if expired:
            self.logger.debug(f"Rate limiter '{self.name}' purged {len(expired)} expired windows")
        return len(expired)

    def _info(self, window: Dict[str, float], now: float) -> dict:
        return {
            'limit': self.rule.max_requests,
            'remaining': max(0, self.rule.max_requests - int(window['count'])),
            'reset_time': window['reset_time'],
            'retry_after': max(0, math.ceil(window['reset_time'] - now)),
        }


# Global instances
_rate_limiters: Dict[str, FixedWindowRateLimiter] = {}


def _build_rate_limiters() -> Dict[str, FixedWindowRateLimiter]:
    rules = config.rate_limit
    interval = rules.cleanup_interval
    return {
        'general': FixedWindowRateLimiter('general', rules.general, cleanup_interval=interval),
        'translation': FixedWindowRateLimiter(
            'translation', rules.translation, key_func=user_key, cleanup_interval=interval
        ),
        'auth': FixedWindowRateLimiter(
            'auth', rules.auth, skip_successful_requests=True, cleanup_interval=interval
        ),
        'password': FixedWindowRateLimiter(
            'password', rules.password, key_func=user_key, cleanup_interval=interval
        ),
        'export': FixedWindowRateLimiter(
            'export', rules.export, key_func=user_key, cleanup_interval=interval
        ),
    }


def get_rate_limiter(name: str) -> FixedWindowRateLimiter:
    """Get a named rate limiter instance."""
    if not _rate_limiters:
        _rate_limiters.update(_build_rate_limiters())
    return _rate_limiters[name]


def reset_rate_limiters() -> None:
    """Forget all limiters so they are rebuilt from the current config."""
    _rate_limiters.clear()


def _check_rate_limit(limiter: FixedWindowRateLimiter):
    """Count the current request; returns a 429 response when blocked."""
    key = limiter.key_func()
    allowed, info = limiter.hit(key)

    # Add rate limit headers
    g.rate_limit_info = info

    if not allowed:
        get_logger().api_logger.warning(
            f"Rate limit '{limiter.name}' exceeded for {key} on {request.method} {request.path}"
        )
        response = jsonify({
            'success': False,
            'message': limiter.rule.message,
            'retryAfter': info['retry_after'],
            'limit': info['limit'],
            'windowMs': limiter.rule.window_seconds,
        })
        response.status_code = 429
        response.headers['Retry-After'] = str(info['retry_after'])
        return response

    if limiter.skip_successful_requests:
        g.rate_limit_release = (limiter, key)
    return None


def rate_limit(name: str) -> Callable:
    """Rate limiting decorator using the named limiter."""
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated(*args, **kwargs):
            if config.rate_limit.enabled:
                blocked = _check_rate_limit(get_rate_limiter(name))
                if blocked is not None:
                    return blocked
            return f(*args, **kwargs)

        return decorated

    return decorator


def apply_general_rate_limit():
    """before_request hook: general limit on every API call."""
    if not config.rate_limit.enabled or request.method == 'OPTIONS':
        return None
    if not request.path.startswith('/api/'):
        return None
    return _check_rate_limit(get_rate_limiter('general'))


def _auth_error(message: str):
    return jsonify({'success': False, 'message': message}), 401


def require_auth(f: Callable) -> Callable:
    """Bearer token authentication decorator; sets ``g.current_user``."""
    @wraps(f)
    def decorated(*args, **kwargs):
        logger = get_logger().auth_logger
        header = request.headers.get('Authorization', '')
        scheme, _, token = header.partition(' ')

        if scheme != 'Bearer':
            return _auth_error("Access denied. No token provided.")

        token = token.strip()
        if not token:
            return _auth_error("Access denied. Invalid token format.")

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            return _auth_error("Token has expired.")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return _auth_error("Invalid token.")

        try:
            user_id = int(payload.get('userId'))
        except (TypeError, ValueError):
            return _auth_error("Invalid token.")

        users = UserRepository()
        user = users.get_by_id(user_id)
        if not user:
            return _auth_error("Token is valid but user no longer exists.")

        users.touch_last_login(user.id)
        g.current_user = user

        return f(*args, **kwargs)

    return decorated


def release_successful_requests(response):
    """Give back skip-successful rate limit hits for responses below 400."""
    release = getattr(g, 'rate_limit_release', None)
    if release and response.status_code < 400:
        limiter, key = release
        limiter.release(key)
    return response


def add_rate_limit_headers(response):
    """Add rate limit headers to response."""
    if hasattr(g, 'rate_limit_info'):
        info = g.rate_limit_info
        reset_at = datetime.fromtimestamp(info['reset_time'], tz=timezone.utc)
        response.headers['X-RateLimit-Limit'] = str(info['limit'])
        response.headers['X-RateLimit-Remaining'] = str(info['remaining'])
        response.headers['X-RateLimit-Reset'] = reset_at.isoformat()
    return response


def log_request(response):
    """Log one line per API request."""
    if config.logging.log_requests and request.path.startswith('/api/'):
        user = getattr(g, 'current_user', None)
        get_logger().api_logger.info(
            f"{request.method} {request.path} -> {response.status_code} "
            f"(ip={client_ip()}, user={user.id if user else '-'}, "
            f"agent={request.user_agent.string or '-'})"
        )
    return response
