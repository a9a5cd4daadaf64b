import pytest

from counter_queue.categories import Category
from counter_queue.errors import InvalidCategory
from counter_queue.tickets import NumberingPolicy, TicketFactory, ticket_number


def test_category_parse_accepts_display_names_only():
    assert Category.parse("Normal") is Category.NORMAL
    assert Category.parse(Category.PICKUP) is Category.PICKUP
    with pytest.raises(InvalidCategory):
        Category.parse("normal")
    with pytest.raises(InvalidCategory):
        Category.parse(None)


def test_category_prefixes_are_distinct():
    prefixes = [c.prefix for c in Category]
    assert len(set(prefixes)) == len(prefixes)


def test_generate_formats_number_and_stamps_time():
    f = TicketFactory(clock=lambda: 42.0)
    t = f.generate("Priority")
    assert t.number == "P001"
    assert t.category is Category.PRIORITY
    assert t.created_at == 42.0
    assert t.to_message() == {"number": "P001", "category": "Priority", "createdAt": 42.0}


def test_generate_rejects_unknown_category():
    with pytest.raises(InvalidCategory):
        TicketFactory().generate("VIP")


def test_sequences_are_per_category():
    f = TicketFactory()
    assert [f.generate("Normal").number for _ in range(3)] == ["N001", "N002", "N003"]
    assert f.generate("Pickup").number == "K001"


def test_padding_widens_past_999():
    f = TicketFactory(policy=NumberingPolicy.QUEUE_LENGTH)
    assert f.generate("Normal", waiting=999).number == "N1000"


def test_monotonic_numbers_never_repeat_after_calls():
    f = TicketFactory()
    first = f.generate("Normal", waiting=0)
    # The queue emptied (ticket called), the counter still moves on.
    second = f.generate("Normal", waiting=0)
    assert (first.number, second.number) == ("N001", "N002")


def test_queue_length_numbers_repeat_after_calls():
    # Compatibility numbering: derived from the waiting count, so a number
    # can be issued again once earlier tickets left the queue.
    f = TicketFactory(policy=NumberingPolicy.QUEUE_LENGTH)
    first = f.generate("Normal", waiting=0)
    again = f.generate("Normal", waiting=0)
    assert first.number == again.number == "N001"


def test_ticket_number_from_wire():
    assert ticket_number({"number": "N001", "category": "Normal"}) == "N001"
    assert ticket_number("N001") is None
    assert ticket_number({}) is None
    assert ticket_number({"number": ""}) is None
