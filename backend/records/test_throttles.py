from django.test import SimpleTestCase, override_settings

from .throttles import PublicCheckHashRateThrottle, SettingsRateThrottle


class SettingsRateThrottleTests(SimpleTestCase):
    @override_settings(PUBLIC_CHECK_HASH_THROTTLE_RATE="5/hour")
    def test_setting_overrides_default_rate(self):
        throttle = PublicCheckHashRateThrottle()
        self.assertEqual(throttle.rate, "5/hour")
        self.assertEqual((throttle.num_requests, throttle.duration), (5, 3600))

    @override_settings(PUBLIC_CHECK_HASH_THROTTLE_RATE="  ")
    def test_blank_setting_falls_back_to_default_rates(self):
        self.assertEqual(PublicCheckHashRateThrottle().rate, "60/min")

    @override_settings(EXPORT_THROTTLE_RATE="3/min")
    def test_subclass_names_its_own_setting(self):
        class ExportRateThrottle(SettingsRateThrottle):
            scope = "public_check_hash"
            rate_setting = "EXPORT_THROTTLE_RATE"

        self.assertEqual(ExportRateThrottle().rate, "3/min")
        self.assertEqual(PublicCheckHashRateThrottle().rate, "60/min")
