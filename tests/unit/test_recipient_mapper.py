from __future__ import annotations
import pytest

from tableform.errors import DuplicateEmailError, EmailNotFoundError, ValidationError
from tableform.models.assignment import RecipientAssignment, Role
from tableform.services.recipient_mapper import RecipientMapper


@pytest.fixture()
def mapper() -> RecipientMapper:
    return RecipientMapper()


def _three(mapper: RecipientMapper) -> tuple[str, str, str]:
    e1 = mapper.emails()[0]
    mapper.update_email(e1.id, "one@example.com")
    e2 = mapper.add_email("two@example.com")
    e3 = mapper.add_email("three@example.com")
    return e1.id, e2.id, e3.id


def _disjoint(mapper: RecipientMapper, table_id: str) -> bool:
    a = mapper.assignment(table_id)
    return not (a.primary & a.cc)


def test_starts_with_one_blank_entry(mapper: RecipientMapper):
    entries = mapper.emails()
    assert len(entries) == 1
    assert entries[0].address == ""


def test_update_email_keeps_case(mapper: RecipientMapper):
    e = mapper.emails()[0]
    assert mapper.update_email(e.id, "Alice@Example.COM").address == "Alice@Example.COM"


def test_duplicate_email_is_rejected_case_insensitively(mapper: RecipientMapper):
    e1, e2, _ = _three(mapper)
    with pytest.raises(DuplicateEmailError):
        mapper.update_email(e2, "  ONE@example.com ")
    assert mapper.get_email(e2).address == "two@example.com"


def test_updating_entry_to_its_own_address_is_allowed(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    assert mapper.update_email(e1, "ONE@example.com").address == "ONE@example.com"


def test_blank_addresses_never_collide(mapper: RecipientMapper):
    a = mapper.add_email()
    b = mapper.add_email("")
    mapper.update_email(a.id, "  ")
    assert len(mapper.emails()) == 3
    assert mapper.get_email(b.id).address == ""


def test_add_email_with_duplicate_address_is_rejected(mapper: RecipientMapper):
    _three(mapper)
    with pytest.raises(DuplicateEmailError):
        mapper.add_email("TWO@example.com")
    assert len(mapper.emails()) == 3


def test_remove_last_entry_is_refused(mapper: RecipientMapper):
    only = mapper.emails()[0]
    assert mapper.remove_email(only.id) is False
    assert len(mapper.emails()) == 1


def test_remove_unknown_email(mapper: RecipientMapper):
    with pytest.raises(EmailNotFoundError):
        mapper.remove_email("missing")


def test_remove_email_prunes_every_assignment(mapper: RecipientMapper):
    e1, e2, e3 = _three(mapper)
    mapper.save_assignment("t1", [e1, e2], [e3])
    mapper.save_assignment("t2", [e3], [e2])
    assert mapper.remove_email(e2) is True
    assert mapper.assignment("t1").primary == {e1}
    assert mapper.assignment("t2").cc == frozenset()
    assert mapper.remove_email(e3) is True
    assert mapper.assignment("t1").cc == frozenset()
    assert mapper.assignment("t2").primary == frozenset()


def test_assign_moves_between_roles(mapper: RecipientMapper):
    e1, e2, _ = _three(mapper)
    mapper.assign("t", e1, Role.PRIMARY)
    mapper.assign("t", e1, Role.CC)
    a = mapper.assignment("t")
    assert a.cc == {e1}
    assert a.primary == frozenset()
    mapper.assign("t", e1, Role.PRIMARY)
    assert mapper.assignment("t").primary == {e1}
    assert mapper.assignment("t").cc == frozenset()


def test_assign_is_idempotent_per_role(mapper: RecipientMapper):
    e1, e2, _ = _three(mapper)
    mapper.assign("t", e1, Role.PRIMARY)
    mapper.assign("t", e2, Role.PRIMARY)
    mapper.assign("t", e1, Role.PRIMARY)
    assert mapper.assignment("t").primary_order == (e1, e2)


def test_assign_unknown_email(mapper: RecipientMapper):
    with pytest.raises(EmailNotFoundError):
        mapper.assign("t", "ghost", Role.CC)


def test_assignments_are_independent_across_tables(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    mapper.assign("t1", e1, Role.PRIMARY)
    mapper.assign("t2", e1, Role.CC)
    assert e1 in mapper.assignment("t1").primary
    assert e1 in mapper.assignment("t2").cc


def test_unassign_only_touches_named_role(mapper: RecipientMapper):
    e1, e2, _ = _three(mapper)
    mapper.save_assignment("t", [e1], [e2])
    mapper.unassign("t", e2, Role.PRIMARY)
    assert mapper.assignment("t").cc == {e2}
    mapper.unassign("t", e2, Role.CC)
    assert mapper.assignment("t").cc == frozenset()
    assert mapper.assignment("t").primary == {e1}


def test_save_assignment_primary_wins_ties(mapper: RecipientMapper):
    e1, e2, e3 = _three(mapper)
    a = mapper.save_assignment("t", [e1, e2], [e2, e3])
    assert a.primary == {e1, e2}
    assert a.cc == {e3}


def test_save_assignment_dedupes(mapper: RecipientMapper):
    e1, _, e3 = _three(mapper)
    a = mapper.save_assignment("t", [e1, e1], [e3, e3])
    assert a.primary_order == (e1,)
    assert a.cc_order == (e3,)


def test_save_assignment_requires_primary(mapper: RecipientMapper):
    e1, _, e3 = _three(mapper)
    mapper.save_assignment("t", [e1], [])
    with pytest.raises(ValidationError):
        mapper.save_assignment("t", [], [e3])
    assert mapper.assignment("t").primary == {e1}


def test_save_assignment_unknown_email_leaves_state(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    mapper.save_assignment("t", [e1])
    with pytest.raises(EmailNotFoundError):
        mapper.save_assignment("t", [e1], ["ghost"])
    assert mapper.assignment("t").cc == frozenset()


def test_disjointness_after_mixed_operations(mapper: RecipientMapper):
    e1, e2, e3 = _three(mapper)
    ops = [
        lambda: mapper.assign("t", e1, Role.PRIMARY),
        lambda: mapper.assign("t", e1, Role.CC),
        lambda: mapper.save_assignment("t", [e1, e2, e3], [e3, e2, e1]),
        lambda: mapper.assign("t", e3, Role.CC),
        lambda: mapper.unassign("t", e3, Role.PRIMARY),
        lambda: mapper.assign("t", e2, Role.CC),
        lambda: mapper.remove_email(e1),
    ]
    for op in ops:
        op()
        assert _disjoint(mapper, "t")


def test_drop_table_removes_assignment(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    mapper.save_assignment("t", [e1])
    mapper.drop_table("t")
    assert "t" not in mapper.table_ids()
    assert mapper.assignment("t") == RecipientAssignment(table_id="t")


def test_resolve_addresses_in_order_skipping_blank(mapper: RecipientMapper):
    e1, e2, _ = _three(mapper)
    blank = mapper.add_email()
    assert mapper.resolve_addresses([e2, blank.id, e1, "ghost"]) == ["two@example.com", "one@example.com"]


def test_assignment_model_rejects_overlap():
    with pytest.raises(ValueError):
        RecipientAssignment(table_id="t", primary_order=("a",), cc_order=("a",))


def test_blank_entries_cannot_be_selected(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    blank = mapper.add_email()
    with pytest.raises(ValidationError):
        mapper.save_assignment("t", [blank.id])
    with pytest.raises(ValidationError):
        mapper.assign("t", blank.id, Role.CC)
    assert mapper.table_ids() == []
    mapper.save_assignment("t", [e1])
    assert mapper.assignment("t").primary == {e1}


def test_unassign_on_unknown_table_creates_nothing(mapper: RecipientMapper):
    e1, _, _ = _three(mapper)
    a = mapper.unassign("nope", e1, Role.PRIMARY)
    assert a.primary == frozenset()
    assert mapper.table_ids() == []
