from __future__ import annotations

import pytest

from skill_ledger.db.session import session_scope
from skill_ledger.errors import InvalidInput, InvalidProficiency, NotFound
from skill_ledger.repositories import goals


@pytest.fixture()
def skill_id(service) -> int:
    service.register("alice")
    return service.add_skill("alice", "Rust", "Programming", "", 1, 2)


@pytest.mark.parametrize("target_date", [10, 9, 0])
def test_goal_cannot_target_present_or_past(service, clock, skill_id: int, target_date: int) -> None:
    clock.height = 10
    with pytest.raises(InvalidInput):
        service.set_goal("alice", skill_id, 4, target_date, "too soon")
    assert service.get_skill_goals("alice", "alice", skill_id) is False


def test_future_goal_is_open(service, clock, skill_id: int) -> None:
    clock.height = 10
    goal_id = service.set_goal("alice", skill_id, 4, 11, "ship a crate")
    assert goal_id == 1

    with session_scope(commit=False) as session:
        goal = goals.get(session, "alice", skill_id, goal_id)
    assert goal is not None
    assert goal.status == "open"
    assert goal.completed_at == 0
    assert goal.created_at == 10
    assert goal.target_date == 11
    assert goal.target_proficiency == 4


def test_goal_ids_increase_per_skill(service, skill_id: int) -> None:
    other = service.add_skill("alice", "Zig", "Programming", "", 1, 1)
    assert [service.set_goal("alice", skill_id, 3, 100, "") for _ in range(3)] == [1, 2, 3]
    assert service.set_goal("alice", other, 3, 100, "") == 1


def test_set_goal_checks_skill_and_proficiency(service, skill_id: int) -> None:
    with pytest.raises(NotFound):
        service.set_goal("alice", skill_id + 1, 3, 100, "")
    with pytest.raises(InvalidProficiency):
        service.set_goal("alice", skill_id, 6, 100, "")
    with pytest.raises(NotFound):
        service.set_goal("bob", skill_id, 3, 100, "")


def test_complete_goal_once(service, clock, skill_id: int) -> None:
    goal_id = service.set_goal("alice", skill_id, 5, 50, "mastery")

    clock.height = 30
    completed = service.complete_goal("alice", skill_id, goal_id)
    assert completed.completed is True
    assert completed.completed_at == 30

    clock.height = 31
    with pytest.raises(InvalidInput):
        service.complete_goal("alice", skill_id, goal_id)

    with session_scope(commit=False) as session:
        stored = goals.get(session, "alice", skill_id, goal_id)
    assert stored is not None
    assert stored.completed_at == 30
    assert stored.status == "completed"


def test_complete_goal_does_not_check_proficiency(service, skill_id: int) -> None:
    goal_id = service.set_goal("alice", skill_id, 5, 50, "")
    assert service.complete_goal("alice", skill_id, goal_id).completed is True
    skill = service.get_skill("alice", "alice", skill_id)
    assert skill is not None
    assert skill.current_proficiency == 2


def test_complete_missing_goal(service, skill_id: int) -> None:
    with pytest.raises(NotFound):
        service.complete_goal("alice", skill_id, 1)
    goal_id = service.set_goal("alice", skill_id, 3, 50, "")
    with pytest.raises(NotFound):
        service.complete_goal("bob", skill_id, goal_id)


def test_goals_indicator(service, skill_id: int) -> None:
    assert service.get_skill_goals("alice", "alice", skill_id) is False
    service.set_goal("alice", skill_id, 3, 50, "")
    assert service.get_skill_goals("alice", "alice", skill_id) is True
    assert service.get_skill_goals("bob", "alice", skill_id) is None
