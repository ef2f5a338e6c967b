"""Visibility matrix and existence hiding."""

from __future__ import annotations

import pytest

from skill_ledger.access_control import can_view
from skill_ledger.records import AccessGrant, Skill, Visibility


def _skill(visibility: Visibility) -> Skill:
    return Skill(
        owner="alice",
        skill_id=1,
        name="Go",
        category="Programming",
        created_at=1,
        visibility=visibility,
        current_proficiency=2,
        last_updated=1,
    )


@pytest.mark.parametrize("visibility", list(Visibility))
def test_owner_always_sees_own_skill(visibility: Visibility) -> None:
    assert can_view("alice", _skill(visibility), None) is True


@pytest.mark.parametrize("requester", ["bob", None])
def test_public_skill_visible_to_anyone(requester) -> None:
    assert can_view(requester, _skill(Visibility.PUBLIC), None) is True


def test_private_skill_hidden_even_with_grant() -> None:
    grant = AccessGrant(owner="alice", viewer="bob", granted_at=3, can_view=True)
    assert can_view("bob", _skill(Visibility.PRIVATE), grant) is False


def test_shared_skill_follows_grant() -> None:
    shared = _skill(Visibility.SHARED)
    assert can_view("bob", shared, None) is False
    assert can_view("bob", shared, AccessGrant(owner="alice", viewer="bob", can_view=True)) is True
    assert can_view("bob", shared, AccessGrant(owner="alice", viewer="bob", can_view=False)) is False
    assert can_view(None, shared, None) is False


@pytest.fixture()
def alice_skill(service) -> int:
    service.register("alice")
    return service.add_skill("alice", "Go", "Programming", "desc", int(Visibility.PRIVATE), 2)


def test_ledger_matrix_over_grant_and_revoke(service, alice_skill: int) -> None:
    assert service.can_view("alice", "alice", alice_skill) is True
    assert service.can_view("bob", "alice", alice_skill) is False

    service.grant_access("alice", "bob")
    assert service.can_view("bob", "alice", alice_skill) is False

    service.set_visibility("alice", alice_skill, int(Visibility.SHARED))
    assert service.can_view("bob", "alice", alice_skill) is True
    assert service.can_view("carol", "alice", alice_skill) is False

    service.revoke_access("alice", "bob")
    assert service.can_view("bob", "alice", alice_skill) is False

    service.set_visibility("alice", alice_skill, int(Visibility.PUBLIC))
    assert service.can_view("carol", "alice", alice_skill) is True
    assert service.can_view(None, "alice", alice_skill) is True


def test_missing_and_unauthorized_reads_are_identical(service, alice_skill: int) -> None:
    hidden = service.get_skill("bob", "alice", alice_skill)
    missing = service.get_skill("bob", "alice", alice_skill + 41)
    assert hidden is None
    assert hidden == missing

    assert service.get_skill_updates("bob", "alice", alice_skill) == service.get_skill_updates(
        "bob", "alice", alice_skill + 41
    )
    assert service.get_skill_goals("bob", "alice", alice_skill) == service.get_skill_goals(
        "bob", "alice", alice_skill + 41
    )


def test_updates_indicator_for_visible_skill(service, alice_skill: int) -> None:
    assert service.get_skill_updates("alice", "alice", alice_skill) is True


def test_revoke_without_grant_records_false(service, clock) -> None:
    assert service.has_shared_access("alice", "bob") == AccessGrant(owner="alice", viewer="bob")

    clock.height = 12
    service.revoke_access("alice", "bob")
    record = service.has_shared_access("alice", "bob")
    assert record.granted_at == 12
    assert record.can_view is False


def test_grant_overwrites_previous_record(service, clock) -> None:
    clock.height = 3
    service.grant_access("alice", "bob")
    clock.height = 4
    service.revoke_access("alice", "bob")
    clock.height = 5
    service.grant_access("alice", "bob")

    record = service.has_shared_access("alice", "bob")
    assert record.granted_at == 5
    assert record.can_view is True


def test_grants_accept_self_and_unknown_viewers(service) -> None:
    # Neither the owner nor the viewer needs a registered profile.
    service.grant_access("alice", "alice")
    service.grant_access("alice", "nobody-registered")
    assert service.has_shared_access("alice", "alice").can_view is True
    assert service.has_shared_access("alice", "nobody-registered").can_view is True
