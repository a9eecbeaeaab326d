from __future__ import annotations

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle


class SettingsRateThrottle(SimpleRateThrottle):
    """Per-client throttle whose rate a single setting can override.

    Subclasses name the throttle `scope` and the `rate_setting` to read; an empty
    setting falls back to DEFAULT_THROTTLE_RATES[scope].
    """

    rate_setting = ""

    def get_cache_key(self, request, view):
        ident = self.get_ident(request)
        if not ident:
            return None
        return self.cache_format % {"scope": self.scope, "ident": ident}

    def get_rate(self):
        if self.rate_setting:
            explicit = str(getattr(settings, self.rate_setting, "") or "").strip()
            if explicit:
                return explicit
        return super().get_rate()


class PublicCheckHashRateThrottle(SettingsRateThrottle):
    scope = "public_check_hash"
    rate_setting = "PUBLIC_CHECK_HASH_THROTTLE_RATE"
