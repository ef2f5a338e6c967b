"""Registry, skill store and progress ledger behaviour."""

from __future__ import annotations

import pytest

from skill_ledger.db.session import session_scope
from skill_ledger.errors import AlreadyExists, InvalidProficiency, InvalidVisibility, NotFound
from skill_ledger.records import INITIAL_MILESTONE, Visibility
from skill_ledger.repositories import skills
from skill_ledger.repositories.id_counters import CounterKind, id_allocator


def _add(service, caller: str = "alice", **overrides) -> int:
    fields = {
        "name": "Go",
        "category": "Programming",
        "description": "desc",
        "visibility": int(Visibility.PRIVATE),
        "initial_proficiency": 2,
    }
    fields.update(overrides)
    return service.add_skill(caller, **fields)


def test_register_succeeds_once(service, clock) -> None:
    clock.height = 42
    profile = service.register("alice")
    assert profile.created_at == 42
    assert profile.skill_count == 0

    with pytest.raises(AlreadyExists):
        service.register("alice")

    info = service.get_user_info("alice")
    assert info.created_at == 42


def test_user_info_defaults_to_zero_for_unknown_user(service) -> None:
    info = service.get_user_info("ghost")
    assert info.created_at == 0
    assert info.skill_count == 0


def test_add_skill_requires_registration(service) -> None:
    with pytest.raises(NotFound):
        _add(service, caller="stranger")


def test_skill_ids_follow_creation_order(service) -> None:
    service.register("alice")
    service.register("bob")

    assert [_add(service, name=f"skill-{n}") for n in range(3)] == [1, 2, 3]
    assert _add(service, caller="bob") == 1
    assert service.get_user_info("alice").skill_count == 3
    assert service.get_user_info("bob").skill_count == 1


@pytest.mark.parametrize("proficiency", [0, 6, -1])
def test_add_skill_rejects_out_of_range_proficiency(service, proficiency: int) -> None:
    service.register("alice")
    with pytest.raises(InvalidProficiency):
        _add(service, initial_proficiency=proficiency)
    assert service.get_user_info("alice").skill_count == 0


@pytest.mark.parametrize("visibility", [0, 4])
def test_add_skill_rejects_unknown_visibility(service, visibility: int) -> None:
    service.register("alice")
    with pytest.raises(InvalidVisibility):
        _add(service, visibility=visibility)


def test_rejected_skill_leaves_no_partial_state(service) -> None:
    service.register("alice")
    with pytest.raises(InvalidVisibility):
        _add(service, visibility=4)

    assert service.get_skill("alice", "alice", 1) is None
    with session_scope(commit=False) as session:
        assert id_allocator.last_id(session, CounterKind.SKILL, "alice") == 0
    assert _add(service) == 1


def test_visibility_is_checked_before_proficiency(service) -> None:
    service.register("alice")
    with pytest.raises(InvalidVisibility):
        _add(service, visibility=9, initial_proficiency=0)


def test_add_skill_synthesizes_initial_update(service, clock) -> None:
    clock.height = 7
    service.register("alice")
    skill_id = _add(service, initial_proficiency=3)

    skill = service.get_skill("alice", "alice", skill_id)
    assert skill is not None
    assert skill.created_at == 7
    assert skill.last_updated == 7
    assert skill.current_proficiency == 3
    assert skill.visibility == Visibility.PRIVATE

    with session_scope(commit=False) as session:
        initial = skills.get_update(session, "alice", skill_id, 1)
    assert initial is not None
    assert initial.proficiency == 3
    assert initial.evidence == ""
    assert initial.milestone == INITIAL_MILESTONE
    assert initial.timestamp == 7


def test_update_progress_allocates_sequential_ids(service, clock) -> None:
    service.register("alice")
    skill_id = _add(service)

    clock.height = 20
    ids = [
        service.update_progress("alice", skill_id, level, f"evidence {level}", f"milestone {level}")
        for level in (3, 4, 5)
    ]
    assert ids == [2, 3, 4]

    skill = service.get_skill("alice", "alice", skill_id)
    assert skill is not None
    assert skill.current_proficiency == 5
    assert skill.last_updated == 20

    with session_scope(commit=False) as session:
        update = skills.get_update(session, "alice", skill_id, 3)
    assert update is not None
    assert update.proficiency == 4
    assert update.evidence == "evidence 4"
    assert update.milestone == "milestone 4"


def test_update_progress_checks_skill_then_proficiency(service) -> None:
    service.register("alice")
    with pytest.raises(NotFound):
        service.update_progress("alice", 1, 9, "", "")

    skill_id = _add(service)
    with pytest.raises(InvalidProficiency):
        service.update_progress("alice", skill_id, 0, "", "")

    skill = service.get_skill("alice", "alice", skill_id)
    assert skill is not None
    assert skill.current_proficiency == 2


def test_update_progress_only_touches_callers_own_skill(service) -> None:
    service.register("alice")
    service.register("bob")
    _add(service)
    # Bob has no skill 1 of his own; Alice's skill 1 is out of reach.
    with pytest.raises(NotFound):
        service.update_progress("bob", 1, 5, "", "")


def test_set_visibility_keeps_last_updated(service, clock) -> None:
    clock.height = 5
    service.register("alice")
    skill_id = _add(service)

    clock.height = 9
    assert service.set_visibility("alice", skill_id, int(Visibility.PUBLIC)) is True
    skill = service.get_skill("alice", "alice", skill_id)
    assert skill is not None
    assert skill.visibility == Visibility.PUBLIC
    assert skill.last_updated == 5


def test_set_visibility_errors(service) -> None:
    service.register("alice")
    with pytest.raises(NotFound):
        service.set_visibility("alice", 3, 1)
    skill_id = _add(service)
    with pytest.raises(InvalidVisibility):
        service.set_visibility("alice", skill_id, 4)
