import threading

import pytest

from habit_tracker.core.config import settings
from habit_tracker.core.constants import COMPLETIONS_TABLE, HABITS_TABLE, STREAK_UPDATE_ATTEMPTS
from habit_tracker.core.exceptions import (
    HabitNotFoundError,
    InvalidHabitDataError,
    PersistenceError,
    Unauthenticated
)
from habit_tracker.services import habits
from habit_tracker.services.storage import InMemoryGateway

ALICE = "user-alice"
BOB = "user-bob"


class RecordingGateway(InMemoryGateway):
    """Counts every gateway call"""

    def __init__(self):
        super().__init__()
        self.calls = []

    def select(self, table, filters, order_by=None, desc=False):
        self.calls.append(("select", table))
        return super().select(table, filters, order_by, desc)

    def insert(self, table, record):
        self.calls.append(("insert", table))
        return super().insert(table, record)

    def update(self, table, filters, patch):
        self.calls.append(("update", table))
        return super().update(table, filters, patch)

    def delete(self, table, filters):
        self.calls.append(("delete", table))
        return super().delete(table, filters)


class BarrierGateway(InMemoryGateway):
    """Holds each per-habit completion lookup until all parties have made it"""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)
        self.armed = False

    def select(self, table, filters, order_by=None, desc=False):
        rows = super().select(table, filters, order_by, desc)
        if self.armed and table == COMPLETIONS_TABLE and "habit_id" in filters and "date" in filters:
            self.barrier.wait()
        return rows


class StreakReadBarrierGateway(InMemoryGateway):
    """Holds the first habit read of each toggle until all parties have read"""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)
        self.completion_inserted = threading.Event()
        self.holds = 0
        self._holds_lock = threading.Lock()

    def arm(self):
        self.holds = self.barrier.parties

    def insert(self, table, record):
        row = super().insert(table, record)
        if table == COMPLETIONS_TABLE:
            self.completion_inserted.set()
        return row

    def select(self, table, filters, order_by=None, desc=False):
        rows = super().select(table, filters, order_by, desc)
        if table == HABITS_TABLE and "id" in filters:
            with self._holds_lock:
                hold = self.holds > 0
                if hold:
                    self.holds -= 1
            if hold:
                self.barrier.wait()
        return rows


class ShiftingStreakGateway(InMemoryGateway):
    """Bumps the stored streak right after every habit read"""

    def __init__(self):
        super().__init__()
        self.conflicts = 0

    def select(self, table, filters, order_by=None, desc=False):
        rows = super().select(table, filters, order_by, desc)
        if table == HABITS_TABLE and "id" in filters and rows:
            self.conflicts += 1
            super().update(table, filters, {"streak": rows[0]["streak"] + 1})
        return rows


class FailingStreakGateway(InMemoryGateway):
    """Fails the first habit update, then behaves normally"""

    def __init__(self):
        super().__init__()
        self.failures_left = 1

    def update(self, table, filters, patch):
        if table == HABITS_TABLE and self.failures_left:
            self.failures_left -= 1
            raise PersistenceError("connection reset")
        return super().update(table, filters, patch)


def _run_concurrently(fn, *args, parties=2):
    results, errors = [], []

    def worker():
        try:
            results.append(fn(*args))
        except Exception as e:  # surfaced through the errors list
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(parties)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results, errors


def _listed(actor, habit_id):
    return next(h for h in habits.list_habits(actor) if h["id"] == habit_id)


# ============================================================================
# Authentication gate
# ============================================================================

@pytest.mark.parametrize("operation, args", [
    (habits.list_habits, ()),
    (habits.create_habit, ("Drink Water", None)),
    (habits.update_habit, ("h1", {"name": "x"})),
    (habits.delete_habit, ("h1",)),
    (habits.toggle_habit_completion, ("h1",)),
    (habits.update_habit_streak, ("h1", True)),
    (habits.get_daily_summary, ()),
    (habits.reconcile_streak, ("h1",)),
    (habits.purge_orphaned_completions, ()),
])
@pytest.mark.parametrize("actor", [None, ""])
def test_operations_require_actor_and_touch_no_storage(use_gateway, operation, args, actor):
    store = use_gateway(RecordingGateway())

    with pytest.raises(Unauthenticated):
        operation(actor, *args)

    assert store.calls == []


# ============================================================================
# Listing
# ============================================================================

def test_new_habit_is_listed_not_completed_with_zero_streak():
    habit = habits.create_habit(ALICE, "Drink Water", None)

    listed = habits.list_habits(ALICE)

    assert len(listed) == 1
    assert listed[0]["id"] == habit["id"]
    assert listed[0]["name"] == "Drink Water"
    assert listed[0]["streak"] == 0
    assert listed[0]["completed_today"] is False
    assert listed[0]["last_completed"] is None


def test_list_habits_newest_first(clock):
    names = ["Read", "Stretch", "Meditate"]
    for name in names:
        habits.create_habit(ALICE, name)
        clock.advance(minutes=5)

    assert [h["name"] for h in habits.list_habits(ALICE)] == list(reversed(names))


def test_list_habits_newest_first_with_identical_timestamps():
    for name in ["first", "second", "third"]:
        habits.create_habit(ALICE, name)

    assert [h["name"] for h in habits.list_habits(ALICE)] == ["third", "second", "first"]


def test_list_habits_isolates_owners():
    alice_habit = habits.create_habit(ALICE, "Alice habit")
    bob_habit = habits.create_habit(BOB, "Bob habit")
    habits.toggle_habit_completion(BOB, bob_habit["id"])

    listed = habits.list_habits(ALICE)

    assert [h["id"] for h in listed] == [alice_habit["id"]]
    assert all(h["user_id"] == ALICE for h in listed)
    assert listed[0]["completed_today"] is False


def test_completion_from_yesterday_is_not_today(clock):
    habit = habits.create_habit(ALICE, "Walk")
    habits.toggle_habit_completion(ALICE, habit["id"])

    clock.advance(days=1)

    listed = _listed(ALICE, habit["id"])
    assert listed["completed_today"] is False
    assert listed["streak"] == 1


# ============================================================================
# Create / update / delete
# ============================================================================

def test_create_habit_trims_and_defaults():
    habit = habits.create_habit(ALICE, "  Journal  ", "   ")

    assert habit["name"] == "Journal"
    assert habit["description"] is None
    assert habit["streak"] == 0
    assert habit["user_id"] == ALICE
    assert habit["id"]
    assert habit["created_at"] and habit["updated_at"]


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_habit_rejects_blank_name(name):
    with pytest.raises(InvalidHabitDataError):
        habits.create_habit(ALICE, name)


def test_update_habit_changes_fields_and_timestamp(clock):
    habit = habits.create_habit(ALICE, "Run")
    clock.advance(hours=1)

    updated = habits.update_habit(ALICE, habit["id"], {"name": "Run 5k", "description": "mornings"})

    assert updated["name"] == "Run 5k"
    assert updated["description"] == "mornings"
    assert updated["updated_at"] > habit["updated_at"]


def test_update_habit_rejects_negative_streak_and_unknown_fields():
    habit = habits.create_habit(ALICE, "Run")

    with pytest.raises(InvalidHabitDataError):
        habits.update_habit(ALICE, habit["id"], {"streak": -1})
    with pytest.raises(InvalidHabitDataError):
        habits.update_habit(ALICE, habit["id"], {"user_id": BOB})
    with pytest.raises(InvalidHabitDataError):
        habits.update_habit(ALICE, habit["id"], {})


def test_update_habit_of_another_owner_is_not_found():
    habit = habits.create_habit(BOB, "Bob habit")

    with pytest.raises(HabitNotFoundError):
        habits.update_habit(ALICE, habit["id"], {"name": "stolen"})

    assert habits.list_habits(BOB)[0]["name"] == "Bob habit"


def test_delete_habit_leaves_completions_orphaned_by_default(gateway):
    habit = habits.create_habit(ALICE, "Drink Water")
    habits.toggle_habit_completion(ALICE, habit["id"])

    result = habits.delete_habit(ALICE, habit["id"])

    assert result["deleted"] is True
    assert result["completions_deleted"] == 0
    assert habits.list_habits(ALICE) == []
    assert len(gateway.select(COMPLETIONS_TABLE, {"habit_id": habit["id"]})) == 1


def test_delete_habit_cascades_when_configured(gateway, monkeypatch):
    monkeypatch.setattr(settings, "CASCADE_DELETE_COMPLETIONS", True)
    habit = habits.create_habit(ALICE, "Drink Water")
    habits.toggle_habit_completion(ALICE, habit["id"])

    result = habits.delete_habit(ALICE, habit["id"])

    assert result["completions_deleted"] == 1
    assert gateway.select(COMPLETIONS_TABLE, {"habit_id": habit["id"]}) == []


def test_delete_missing_or_foreign_habit_is_not_an_error():
    bob_habit = habits.create_habit(BOB, "Bob habit")

    assert habits.delete_habit(ALICE, "does-not-exist")["deleted"] is False
    assert habits.delete_habit(ALICE, bob_habit["id"])["deleted"] is False
    assert len(habits.list_habits(BOB)) == 1


# ============================================================================
# Toggle and streak
# ============================================================================

def test_toggle_on_then_off_same_day(clock):
    habit = habits.create_habit(ALICE, "Drink Water")

    on = habits.toggle_habit_completion(ALICE, habit["id"])
    assert on == {"status": "success", "habit_id": habit["id"], "completed": True, "streak": 1, "changed": True}
    listed = _listed(ALICE, habit["id"])
    assert listed["completed_today"] is True
    assert listed["streak"] == 1
    assert listed["last_completed"] == clock.now.isoformat()

    off = habits.toggle_habit_completion(ALICE, habit["id"])
    assert off["completed"] is False
    assert off["streak"] == 0
    listed = _listed(ALICE, habit["id"])
    assert listed["completed_today"] is False
    assert listed["streak"] == 0
    assert listed["last_completed"] is None


def test_toggle_pair_restores_existing_streak():
    habit = habits.create_habit(ALICE, "Read")
    habits.update_habit(ALICE, habit["id"], {"streak": 3})

    habits.toggle_habit_completion(ALICE, habit["id"])
    assert _listed(ALICE, habit["id"])["streak"] == 4

    habits.toggle_habit_completion(ALICE, habit["id"])

    listed = _listed(ALICE, habit["id"])
    assert listed["streak"] == 3
    assert listed["completed_today"] is False


def test_toggle_off_at_zero_streak_is_floored_then_counts_up(gateway, clock):
    habit = habits.create_habit(ALICE, "Read")
    gateway.insert(COMPLETIONS_TABLE, {"habit_id": habit["id"], "user_id": ALICE, "date": str(clock.now.date())})

    off = habits.toggle_habit_completion(ALICE, habit["id"])
    assert off["completed"] is False
    assert off["streak"] == 0

    on = habits.toggle_habit_completion(ALICE, habit["id"])
    assert on["completed"] is True
    assert on["streak"] == 1


def test_streak_accumulates_across_days(clock):
    habit = habits.create_habit(ALICE, "Walk")

    for _ in range(3):
        habits.toggle_habit_completion(ALICE, habit["id"])
        clock.advance(days=1)

    assert _listed(ALICE, habit["id"])["streak"] == 3


def test_update_habit_streak_floor_and_missing_habit():
    habit = habits.create_habit(ALICE, "Walk")

    assert habits.update_habit_streak(ALICE, habit["id"], False) == 0
    assert habits.update_habit_streak(ALICE, habit["id"], True) == 1
    assert habits.update_habit_streak(ALICE, "missing", True) is None


def test_toggle_on_unowned_or_missing_habit_writes_nothing(gateway):
    bob_habit = habits.create_habit(BOB, "Bob habit")

    for habit_id in (bob_habit["id"], "does-not-exist"):
        result = habits.toggle_habit_completion(ALICE, habit_id)

        assert result == {"status": "success", "habit_id": habit_id, "completed": False,
                          "streak": None, "changed": False}
        assert gateway.select(COMPLETIONS_TABLE, {"habit_id": habit_id}) == []

    assert habits.list_habits(BOB)[0]["streak"] == 0
    assert habits.list_habits(BOB)[0]["completed_today"] is False


def test_toggle_fails_on_duplicate_completions(use_gateway, clock):
    store = use_gateway(InMemoryGateway())
    store.unique_keys = {}
    habit = habits.create_habit(ALICE, "Read")
    for _ in range(2):
        store.insert(COMPLETIONS_TABLE, {"habit_id": habit["id"], "user_id": ALICE, "date": str(clock.now.date())})

    with pytest.raises(PersistenceError):
        habits.toggle_habit_completion(ALICE, habit["id"])


def test_streak_failure_after_completion_is_reported_and_repaired(use_gateway):
    store = use_gateway(FailingStreakGateway())
    habit = habits.create_habit(ALICE, "Read")

    with pytest.raises(PersistenceError):
        habits.toggle_habit_completion(ALICE, habit["id"])

    listed = _listed(ALICE, habit["id"])
    assert listed["completed_today"] is True
    assert listed["streak"] == 1
    assert store.failures_left == 0


# ============================================================================
# Concurrent toggles
# ============================================================================

def test_concurrent_toggles_on_record_one_completion(use_gateway):
    store = use_gateway(BarrierGateway(parties=2))
    habit = habits.create_habit(ALICE, "Drink Water")
    store.armed = True

    results, errors = _run_concurrently(habits.toggle_habit_completion, ALICE, habit["id"])
    store.armed = False

    assert errors == []
    assert all(r["completed"] for r in results)
    assert sorted(r["changed"] for r in results) == [False, True]
    assert len(store.select(COMPLETIONS_TABLE, {"habit_id": habit["id"]})) == 1
    assert _listed(ALICE, habit["id"])["streak"] == 1


def test_concurrent_toggles_off_decrement_once(use_gateway):
    store = use_gateway(BarrierGateway(parties=2))
    habit = habits.create_habit(ALICE, "Drink Water")
    habits.update_habit(ALICE, habit["id"], {"streak": 4})
    habits.toggle_habit_completion(ALICE, habit["id"])
    store.armed = True

    results, errors = _run_concurrently(habits.toggle_habit_completion, ALICE, habit["id"])
    store.armed = False

    assert errors == []
    assert not any(r["completed"] for r in results)
    assert store.select(COMPLETIONS_TABLE, {"habit_id": habit["id"]}) == []
    assert _listed(ALICE, habit["id"])["streak"] == 4


def test_opposite_toggles_keep_streak_consistent(use_gateway):
    store = use_gateway(StreakReadBarrierGateway(parties=2))
    habit = habits.create_habit(ALICE, "Drink Water")
    habits.update_habit(ALICE, habit["id"], {"streak": 5})
    store.arm()
    errors = []

    def toggle(wait_for=None):
        try:
            if wait_for is not None:
                wait_for.wait(timeout=5)
            habits.toggle_habit_completion(ALICE, habit["id"])
        except Exception as e:  # surfaced through the errors list
            errors.append(e)

    # First toggle turns the habit on; the second starts once that completion
    # exists and turns it back off. Both read the streak before either writes.
    turn_on = threading.Thread(target=toggle)
    turn_off = threading.Thread(target=toggle, args=(store.completion_inserted,))
    turn_on.start()
    turn_off.start()
    turn_on.join(timeout=10)
    turn_off.join(timeout=10)

    assert errors == []
    listed = _listed(ALICE, habit["id"])
    assert listed["completed_today"] is False
    assert listed["streak"] == 5


def test_streak_update_gives_up_when_streak_keeps_moving(use_gateway):
    store = use_gateway(ShiftingStreakGateway())
    habit = habits.create_habit(ALICE, "Read")

    with pytest.raises(PersistenceError):
        habits.update_habit_streak(ALICE, habit["id"], True)

    assert store.conflicts == STREAK_UPDATE_ATTEMPTS


# ============================================================================
# Daily summary
# ============================================================================

def test_daily_summary():
    water = habits.create_habit(ALICE, "Drink Water")
    habits.create_habit(ALICE, "Read")
    habits.create_habit(ALICE, "Stretch")
    habits.toggle_habit_completion(ALICE, water["id"])

    summary = habits.get_daily_summary(ALICE)

    assert summary["date"] == "2024-03-15"
    assert summary["total_habits"] == 3
    assert summary["completed"] == 1
    assert summary["pending"] == 2
    assert summary["completion_rate"] == 33
    assert summary["completed_habits"] == ["Drink Water"]
    assert summary["pending_habits"] == ["Stretch", "Read"]


def test_daily_summary_without_habits():
    summary = habits.get_daily_summary(ALICE)

    assert summary["total_habits"] == 0
    assert summary["completion_rate"] == 0
