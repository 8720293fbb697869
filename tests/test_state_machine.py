import pytest

from marketplace.billing.state_machine import (
    SubscriptionStatus,
    assert_transition,
    can_transition,
)
from marketplace.errors import InvalidStateTransition


@pytest.mark.parametrize("current,target", [
    ("trial", "active"),
    ("trial", "cancelled"),
    ("active", "cancelled"),
    ("active", "paused"),
    ("paused", "active"),
    ("paused", "cancelled"),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    assert_transition(current, target)


@pytest.mark.parametrize("current", ["active", "paused", "cancelled"])
def test_nothing_re_enters_trial(current):
    with pytest.raises(InvalidStateTransition):
        assert_transition(current, SubscriptionStatus.TRIAL)


@pytest.mark.parametrize("target", ["active", "paused"])
def test_cancelled_is_terminal(target):
    assert not can_transition("cancelled", target)


def test_trial_cannot_pause():
    assert not can_transition("trial", "paused")
