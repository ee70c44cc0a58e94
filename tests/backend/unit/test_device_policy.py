"""
Unit tests for the device-limit policy (services.verification.device_admits).
"""
import pytest

from licensehub.services.verification import device_admits


class TestBelowLimit:
    """Any IP is admitted while the key has fewer uses than its limit."""

    @pytest.mark.parametrize("limit", [1, 2, 100])
    def test_first_use_admitted(self, limit):
        assert device_admits(limit, [], "1.1.1.1") is True

    def test_second_device_on_two_device_key(self):
        assert device_admits(2, ["1.1.1.1"], "2.2.2.2") is True


class TestSingleDeviceKey:
    def test_other_ip_refused(self):
        assert device_admits(1, ["1.1.1.1"], "2.2.2.2") is False

    def test_bound_ip_admitted_again(self):
        assert device_admits(1, ["1.1.1.1", "1.1.1.1"], "1.1.1.1") is True


class TestAdvisoryLimitsPolicyQuirk:
    """
    Limits above one are never enforced once reached. Kept on purpose for
    compatibility with existing keys; these tests pin the behaviour.
    """

    def test_two_device_key_admits_third_ip(self):
        assert device_admits(2, ["1.1.1.1", "2.2.2.2"], "3.3.3.3") is True

    def test_hundred_device_key_admits_past_limit(self):
        prior = [f"10.0.0.{i}" for i in range(100)]
        assert device_admits(100, prior, "192.168.1.1") is True
