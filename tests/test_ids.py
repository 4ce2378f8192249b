"""Tests for the derived id namespace."""

import pytest

from alarms import ids
from alarms.ids import ActionKind


def test_offsets_for_base_id():
    assert ids.snooze_action_id(7) == 10007
    assert ids.dismiss_action_id(7) == 20007
    assert ids.wake_action_id(7) == 30007
    assert ids.snoozed_id(7) == 50007


def test_derived_ids_are_disjoint_over_base_range():
    base = set(range(1, ids.MAX_BASE_ID + 1))
    snooze = {ids.snooze_action_id(i) for i in base}
    dismiss = {ids.dismiss_action_id(i) for i in base}
    wake = {ids.wake_action_id(i) for i in base}
    snoozed = {ids.snoozed_id(i) for i in base}

    groups = [base, snooze, dismiss, wake, snoozed]
    for i, left in enumerate(groups):
        for right in groups[i + 1:]:
            assert left.isdisjoint(right)


@pytest.mark.parametrize("value, expected", [
    (1, True),
    (9999, True),
    (0, False),
    (10000, False),
    (-3, False),
    (True, False),
])
def test_is_base_id(value, expected):
    assert ids.is_base_id(value) is expected


def test_resolve_action_on_base_notification():
    assert ids.resolve_action(10007) == (ActionKind.SNOOZE, 7)
    assert ids.resolve_action(20007) == (ActionKind.DISMISS, 7)
    assert ids.resolve_action(30007) == (ActionKind.WAKE, 7)


def test_resolve_action_on_snoozed_notification():
    snoozed = ids.snoozed_id(7)
    assert ids.resolve_action(ids.snooze_action_id(snoozed)) == (ActionKind.SNOOZE, snoozed)
    assert ids.resolve_action(ids.dismiss_action_id(snoozed)) == (ActionKind.DISMISS, snoozed)


@pytest.mark.parametrize("request_id", [7, 9999, 50007, 200000])
def test_resolve_action_rejects_non_action_ids(request_id):
    with pytest.raises(ValueError):
        ids.resolve_action(request_id)


def test_snooze_target_reuses_snoozed_id():
    assert ids.snooze_target(7) == 50007
    assert ids.snooze_target(50007) == 50007


def test_base_of_snoozed():
    assert ids.base_of_snoozed(50007) == 7
    with pytest.raises(ValueError):
        ids.base_of_snoozed(7)
