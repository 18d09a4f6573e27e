import pytest

from liveshark.follow import (
    FollowSeen,
    WarningThrottle,
    follow_should_analyze,
    is_transient_error,
)
from liveshark.udp import UdpTooShortError


def test_first_look_is_a_change():
    assert follow_should_analyze(FollowSeen(10, 1.0), None) == (True, False)


def test_shrinking_file_is_rotation():
    assert follow_should_analyze(FollowSeen(5, 2.0), FollowSeen(10, 1.0)) == (True, True)


def test_growing_file_is_change():
    assert follow_should_analyze(FollowSeen(20, 1.0), FollowSeen(10, 1.0)) == (True, False)


def test_same_size_newer_mtime_is_change():
    assert follow_should_analyze(FollowSeen(10, 2.0), FollowSeen(10, 1.0)) == (True, False)


@pytest.mark.parametrize(
    "current,last",
    [
        (FollowSeen(10, 1.0), FollowSeen(10, 1.0)),
        (FollowSeen(10, 0.5), FollowSeen(10, 1.0)),
        (FollowSeen(10, None), FollowSeen(10, 1.0)),
        (FollowSeen(10, 2.0), FollowSeen(10, None)),
    ],
)
def test_same_size_without_newer_mtime_is_unchanged(current, last):
    assert follow_should_analyze(current, last) == (False, False)


@pytest.mark.parametrize(
    "err",
    [
        UdpTooShortError(8, 3),
        "Incomplete block",
        "Unexpected end of file",
        "read hit EOF",
        "failed to fill whole buffer",
    ],
)
def test_transient_errors(err):
    assert is_transient_error(err) is True


@pytest.mark.parametrize("err", ["permission denied", ValueError("bad magic")])
def test_non_transient_errors(err):
    assert is_transient_error(err) is False


def test_warning_throttle_limits_rate():
    now = [100.0]
    throttle = WarningThrottle(clock=lambda: now[0])
    assert throttle.should_warn() is True
    now[0] = 101.0
    assert throttle.should_warn() is False
    now[0] = 105.0
    assert throttle.should_warn() is True
    now[0] = 109.9
    assert throttle.should_warn() is False


def test_warning_throttle_zero_interval_always_warns():
    throttle = WarningThrottle(interval_s=0.0, clock=lambda: 1.0)
    assert [throttle.should_warn() for _ in range(3)] == [True, True, True]