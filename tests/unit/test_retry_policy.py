# tests/unit/test_retry_policy.py
import pytest

from provider_gateway.resilience.errors import InvalidArgumentError, RequestTimeoutError, TransientNetworkError
from provider_gateway.resilience.retry_policies import RetryPolicy, retry_policy_for


def test_default_backoff_is_two_to_the_attempt():
    assert list(RetryPolicy(max_retry_attempts=3).delays()) == [2.0, 4.0, 8.0]


def test_maximum_interval_caps_delays():
    policy = RetryPolicy(max_retry_attempts=5, maximum_interval=10.0)
    assert list(policy.delays()) == [2.0, 4.0, 8.0, 10.0, 10.0]


def test_should_retry_stops_at_max_retries():
    policy = retry_policy_for(2)
    exc = TransientNetworkError("reset")
    assert policy.should_retry(0, exc)
    assert policy.should_retry(1, exc)
    assert not policy.should_retry(2, exc)


def test_timeouts_retry_but_invalid_arguments_do_not():
    policy = RetryPolicy()
    assert policy.should_retry(0, RequestTimeoutError("slow"))
    assert not policy.should_retry(0, InvalidArgumentError("bad tn"))


@pytest.mark.parametrize("kwargs", [{"max_retry_attempts": 0}, {"backoff_coefficient": 0}])
def test_invalid_policies_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
