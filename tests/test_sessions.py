import pytest

from counter_queue.categories import Category
from counter_queue.sessions import SessionRegistry
from counter_queue.tickets import TicketFactory


def test_bind_creates_session_and_overwrites_ticket():
    reg = SessionRegistry()
    f = TicketFactory()
    t1, t2 = f.generate("Normal"), f.generate("Normal")

    reg.bind("A", "1", t1)
    reg.bind("A", "2", t2)

    st = reg.get("A")
    assert st is not None
    assert st.counter_id == "2"
    assert st.current_ticket == t2
    assert len(reg) == 1


def test_clear_keeps_counter():
    reg = SessionRegistry()
    t = TicketFactory().generate("Normal")
    reg.bind("A", "3", t)

    assert reg.clear("A") == t
    assert reg.get_current("A") is None
    assert reg.get("A").counter_id == "3"


def test_clear_unknown_attendant_is_noop():
    assert SessionRegistry().clear("ghost") is None


def test_matches_compares_ticket_number_only():
    reg = SessionRegistry()
    t = TicketFactory().generate("Normal")
    assert not reg.matches("A", "N001")

    reg.bind("A", "1", t)
    assert reg.matches("A", "N001")
    assert not reg.matches("A", "N002")
    assert not reg.matches("B", "N001")

    reg.clear("A")
    assert not reg.matches("A", "N001")


def test_holders():
    reg = SessionRegistry()
    f = TicketFactory()
    t = f.generate("Normal")
    reg.bind("A", "1", t)
    reg.bind("B", "2", f.generate("Normal"))
    reg.clear("B")
    assert reg.holders() == {"A": t}


def test_expire_removes_only_idle_sessions():
    now = [100.0]
    reg = SessionRegistry(clock=lambda: now[0])
    f = TicketFactory()
    reg.bind("old", "1", f.generate("Normal"))
    now[0] = 150.0
    reg.bind("fresh", "2", f.generate("Normal"))

    expired = reg.expire(30.0, now=160.0)

    assert [s.attendant_id for s in expired] == ["old"]
    assert expired[0].current_ticket.number == "N001"
    assert reg.get("old") is None
    assert reg.get("fresh") is not None


def test_expire_requires_positive_ttl():
    with pytest.raises(ValueError):
        SessionRegistry().expire(0)


def test_called_from_defaults_to_ticket_category_and_is_cleared():
    reg = SessionRegistry()
    t = TicketFactory().generate("Normal")

    reg.bind("A", "1", t)
    assert reg.get("A").called_from is Category.NORMAL

    reg.bind("A", "1", t, called_from=Category.PICKUP)
    assert reg.get("A").called_from is Category.PICKUP

    reg.clear("A")
    assert reg.get("A").called_from is None


def test_touch_refreshes_last_seen_of_known_sessions_only():
    now = [100.0]
    reg = SessionRegistry(clock=lambda: now[0])
    reg.bind("A", "1", TicketFactory().generate("Normal"))

    now[0] = 140.0
    assert reg.touch("A") is True
    assert reg.touch("ghost") is False
    assert reg.get("A").last_seen == 140.0
    assert reg.get("ghost") is None
    assert reg.expire(30.0, now=160.0) == []


def test_matches_without_attendant_or_number():
    reg = SessionRegistry()
    reg.bind("A", "1", TicketFactory().generate("Normal"))
    assert not reg.matches(None, "N001")
    assert not reg.matches("A", None)
