import pytest

from smart75.core.errors import ValidationError
from smart75.features.challenge import transitions
from smart75.models.challenge import DEFAULT_RULES, Rule
from smart75.tests.builders import ALL_DEFAULT_IDS, full_log, make_rules, make_state, partial_log

TODAY = "2024-03-10"


class TestInitialize:
    def test_creates_fresh_state(self):
        state = transitions.initialize(DEFAULT_RULES, TODAY)
        assert state.rules == DEFAULT_RULES
        assert state.daily_logs == {}
        assert state.challenge.start_date == TODAY
        assert state.challenge.current_day == 1
        assert state.challenge.current_streak == 0
        assert state.challenge.longest_streak == 0
        assert state.challenge.total_resets == 0
        assert state.challenge.victory_shown is False

    @pytest.mark.parametrize("count", [3, 8])
    def test_accepts_rule_count_bounds(self, count):
        state = transitions.initialize(make_rules(count), TODAY)
        assert len(state.rules) == count

    @pytest.mark.parametrize("count", [0, 2, 9])
    def test_rejects_rule_count_out_of_bounds(self, count):
        with pytest.raises(ValidationError):
            transitions.initialize(make_rules(count), TODAY)

    def test_rejects_blank_rule_text(self):
        rules = [Rule(id=1, text="Read"), Rule(id=2, text="   "), Rule(id=3, text="Walk")]
        with pytest.raises(ValidationError, match="fill in all rules"):
            transitions.initialize(rules, TODAY)

    def test_rejects_duplicate_ids(self):
        rules = [Rule(id=1, text="a"), Rule(id=1, text="b"), Rule(id=2, text="c")]
        with pytest.raises(ValidationError):
            transitions.initialize(rules, TODAY)

    def test_rejects_when_challenge_active(self):
        existing = make_state(today=TODAY)
        with pytest.raises(ValidationError, match="already active"):
            transitions.initialize(DEFAULT_RULES, TODAY, existing=existing)

    def test_rejects_malformed_start_date(self):
        with pytest.raises(ValidationError):
            transitions.initialize(DEFAULT_RULES, "10/03/2024")


class TestToggleTask:
    def test_marks_and_unmarks(self):
        state = make_state(today=TODAY)
        on = transitions.toggle_task(state, 1, TODAY)
        assert on.daily_logs[TODAY].completed == [1]
        assert on.daily_logs[TODAY].all_complete is False
        off = transitions.toggle_task(on, 1, TODAY)
        assert off.daily_logs[TODAY].completed == []

    def test_input_state_is_not_mutated(self):
        state = make_state(today=TODAY)
        transitions.toggle_task(state, 1, TODAY)
        assert state.daily_logs == {}

    def test_unknown_rule_rejected(self):
        state = make_state(today=TODAY)
        with pytest.raises(ValidationError):
            transitions.toggle_task(state, 99, TODAY)

    def test_completing_last_rule_increments_streak(self):
        state = make_state(today=TODAY, logs={0: partial_log([1, 2, 3, 4, 5])}, current_streak=3, longest_streak=3)
        done = transitions.toggle_task(state, 6, TODAY)
        assert done.daily_logs[TODAY].all_complete is True
        assert done.challenge.current_streak == 4
        assert done.challenge.longest_streak == 4

    def test_longest_streak_kept_when_higher(self):
        state = make_state(today=TODAY, logs={0: partial_log([1, 2, 3, 4, 5])}, current_streak=3, longest_streak=10)
        done = transitions.toggle_task(state, 6, TODAY)
        assert done.challenge.current_streak == 4
        assert done.challenge.longest_streak == 10

    def test_streak_oscillates_without_drift(self):
        state = make_state(today=TODAY, logs={0: partial_log([1, 2, 3, 4, 5])}, current_streak=5, longest_streak=5)
        streaks = []
        longest = []
        for _ in range(6):
            state = transitions.toggle_task(state, 6, TODAY)
            streaks.append(state.challenge.current_streak)
            longest.append(state.challenge.longest_streak)
        assert streaks == [6, 5, 6, 5, 6, 5]
        assert longest == [6, 6, 6, 6, 6, 6]

    def test_all_complete_matches_current_rule_set(self):
        state = make_state(today=TODAY)
        for rule_id in ALL_DEFAULT_IDS:
            state = transitions.toggle_task(state, rule_id, TODAY)
            log = state.daily_logs[TODAY]
            assert log.all_complete == (set(log.completed) == state.rule_ids())
        assert state.daily_logs[TODAY].all_complete is True

    def test_stale_ids_are_dropped_from_todays_log(self):
        rules = make_rules(3)
        state = make_state(today=TODAY, rules=rules, logs={0: partial_log([1, 2, 42])})
        done = transitions.toggle_task(state, 3, TODAY)
        assert done.daily_logs[TODAY].completed == [1, 2, 3]
        assert done.daily_logs[TODAY].all_complete is True

    def test_streak_never_negative(self):
        state = make_state(today=TODAY, logs={0: full_log()}, current_streak=0, longest_streak=0)
        undone = transitions.toggle_task(state, 1, TODAY)
        assert undone.challenge.current_streak == 0

    def test_keeps_reflection(self):
        state = make_state(today=TODAY, logs={0: partial_log([])})
        state = transitions.set_reflection(state, "hard day", TODAY)
        state = transitions.toggle_task(state, 2, TODAY)
        assert state.daily_logs[TODAY].reflection == "hard day"


def test_set_reflection_creates_todays_log():
    state = make_state(today=TODAY)
    updated = transitions.set_reflection(state, "Focused morning", TODAY)
    log = updated.daily_logs[TODAY]
    assert log.reflection == "Focused morning"
    assert log.completed == []
    assert log.all_complete is False
    assert updated.challenge == state.challenge


class TestReset:
    def test_clears_logs_and_keeps_best(self):
        state = make_state(
            today=TODAY,
            started_days_ago=20,
            logs={1: full_log(), 2: full_log()},
            current_streak=5,
            longest_streak=15,
            total_resets=2,
        )
        reset = transitions.reset_challenge(state, TODAY)
        assert reset.daily_logs == {}
        assert reset.challenge.current_streak == 0
        assert reset.challenge.total_resets == 3
        assert reset.challenge.longest_streak == 15
        assert reset.challenge.start_date == TODAY
        assert reset.rules == state.rules

    def test_reopens_victory(self):
        state = make_state(today=TODAY, started_days_ago=80, victory_shown=True, total_completions=1)
        reset = transitions.reset_challenge(state, TODAY)
        assert reset.challenge.victory_shown is False
        assert reset.challenge.total_completions == 1


def test_update_start_date_discards_logs_only():
    state = make_state(today=TODAY, started_days_ago=3, logs={1: full_log()}, current_streak=1, longest_streak=4)
    moved = transitions.update_start_date(state, "2024-03-01", today=TODAY)
    assert moved.challenge.start_date == "2024-03-01"
    assert moved.challenge.current_day == 10
    assert moved.daily_logs == {}
    assert moved.challenge.current_streak == 1
    assert moved.challenge.longest_streak == 4
    assert moved.challenge.total_resets == 0


def test_update_start_date_rejects_malformed():
    state = make_state(today=TODAY)
    with pytest.raises(ValidationError):
        transitions.update_start_date(state, "yesterday")


class TestUpdateRules:
    def test_reset_path_replaces_rules_and_resets(self):
        state = make_state(today=TODAY, started_days_ago=4, logs={1: full_log()}, current_streak=2, longest_streak=2)
        new_rules = make_rules(4)
        updated = transitions.update_rules(state, new_rules, TODAY)
        assert updated.rules == new_rules
        assert updated.daily_logs == {}
        assert updated.challenge.total_resets == 1
        assert updated.challenge.current_streak == 0
        assert updated.challenge.start_date == TODAY

    def test_without_reset_keeps_history(self):
        state = make_state(today=TODAY, started_days_ago=4, logs={1: full_log()}, current_streak=2, longest_streak=2)
        new_rules = make_rules(4)
        updated = transitions.update_rules_without_reset(state, new_rules)
        assert updated.rules == new_rules
        assert updated.daily_logs == state.daily_logs
        assert updated.challenge == state.challenge

    @pytest.mark.parametrize("count", [2, 9])
    def test_rule_count_enforced_on_both_paths(self, count):
        state = make_state(today=TODAY)
        with pytest.raises(ValidationError):
            transitions.update_rules(state, make_rules(count), TODAY)
        with pytest.raises(ValidationError):
            transitions.update_rules_without_reset(state, make_rules(count))


class TestAcknowledgeVictory:
    def test_marks_shown_and_counts_completion(self):
        state = make_state(today=TODAY, started_days_ago=74)
        done = transitions.acknowledge_victory(state, TODAY)
        assert done.challenge.victory_shown is True
        assert done.challenge.total_completions == 1

    def test_second_acknowledge_is_noop(self):
        state = make_state(today=TODAY, started_days_ago=74)
        once = transitions.acknowledge_victory(state, TODAY)
        twice = transitions.acknowledge_victory(once, TODAY)
        assert twice.challenge.total_completions == 1

    def test_rejected_before_day_75(self):
        state = make_state(today=TODAY, started_days_ago=10)
        with pytest.raises(ValidationError):
            transitions.acknowledge_victory(state, TODAY)


def test_clear_all_data_empties_repository(repository):
    repository.save(make_state(today=TODAY))
    assert transitions.clear_all_data(repository) is True
    assert repository.load() is None
