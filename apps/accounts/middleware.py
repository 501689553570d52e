"""
Throttle for the public forms (waitlist signup, password login).

POSTs are counted per (path, client IP) in a sliding window kept in process
memory. A bucket is dropped as soon as all of its timestamps have expired,
so the table only holds clients seen within the last window.
"""
import logging
import math
import time
from collections import deque
from threading import Lock

from django.conf import settings
from django.http import HttpResponse
from django.utils.translation import gettext as _

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """
    Settings:
        RATE_LIMIT_REQUESTS = 5   # default max POSTs per window
        RATE_LIMIT_WINDOW = 60    # seconds
        RATE_LIMIT_PATHS = {'/signup/': 3, '/accounts/login/': None}
            # path -> its own max, None for the default
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.hits = {}
        self.lock = Lock()

    def __call__(self, request):
        if request.method == 'POST':
            max_requests = self._limit_for(request.path)
            if max_requests is not None:
                window = getattr(settings, 'RATE_LIMIT_WINDOW', 60)
                key = (request.path, self._get_client_ip(request))
                retry_after = self._hit(key, max_requests, window)
                if retry_after:
                    logger.warning(f'Rate limit reached for {key[1]} on {key[0]}')
                    response = HttpResponse(
                        _('Too many attempts. Please wait a minute and try again.'),
                        status=429,
                    )
                    response['Retry-After'] = str(retry_after)
                    return response

        return self.get_response(request)

    def _limit_for(self, path):
        """Max POSTs per window for path, or None when path is not throttled"""
        paths = getattr(settings, 'RATE_LIMIT_PATHS', {})
        if path not in paths:
            return None
        limit = paths[path] if isinstance(paths, dict) else None
        return limit or getattr(settings, 'RATE_LIMIT_REQUESTS', 5)

    def _get_client_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')

    def _hit(self, key, max_requests, window):
        """Record a POST; returns seconds to wait when over the limit, else 0"""
        now = time.monotonic()

        with self.lock:
            self._evict(now, window)
            stamps = self.hits.setdefault(key, deque())

            if len(stamps) >= max_requests:
                return max(1, math.ceil(stamps[0] + window - now))

            stamps.append(now)
            return 0

    def _evict(self, now, window):
        for key in list(self.hits):
            stamps = self.hits[key]
            while stamps and now - stamps[0] >= window:
                stamps.popleft()
            if not stamps:
                del self.hits[key]
