from rest_framework.settings import api_settings
from rest_framework.throttling import ScopedRateThrottle


class ScopedRateThrottleIsolated(ScopedRateThrottle):
    """
    Scoped throttle that resolves rates from the current settings and keys
    its history by the resolved rate, so overriding DEFAULT_THROTTLE_RATES
    (tests, per-environment settings) neither reads stale rates nor collides
    with history recorded under another rate.
    """

    @property
    def THROTTLE_RATES(self):
        return api_settings.DEFAULT_THROTTLE_RATES

    def get_cache_key(self, request, view):
        key = super().get_cache_key(request, view)
        if key is None:
            return None
        return f"{key}:{self.get_rate() or 'none'}"
