# uvbunny/api/bunnies/test_bunny_services.py
"""
BunnyService tests

Usage: python -m pytest uvbunny/api/bunnies/test_bunny_services.py -v
"""

from datetime import datetime, timezone

import pytest

from conftest import TEST_UID, seed_bunny, seed_events
from uvbunny.models.bunny import BunnyColor
from uvbunny.triggers.counter import CounterMaintainer


def test_create_bunny(db, bunny_service):
    bunny_id = bunny_service.create_bunny(TEST_UID, "  Clover  ", "pink")

    stored = db.data(f"users/{TEST_UID}/bunnies/{bunny_id}")
    assert stored["name"] == "Clover"
    assert stored["colorClass"] == "pink"
    assert stored["eventCount"] == 0
    assert stored["createdAt"].tzinfo == timezone.utc


def test_create_bunny_picks_a_color(db, bunny_service):
    bunny_id = bunny_service.create_bunny(TEST_UID, "Clover")

    bunny = bunny_service.get_bunny(TEST_UID, bunny_id)
    assert isinstance(bunny.color_class, BunnyColor)


@pytest.mark.parametrize("name, color", [("", None), ("   ", None), ("x" * 41, None), ("Clover", "green")])
def test_create_bunny_rejects_invalid_input(db, bunny_service, name, color):
    with pytest.raises(ValueError):
        bunny_service.create_bunny(TEST_UID, name, color)
    assert db.docs == {}


def test_list_bunnies_with_happiness_in_creation_order(db, bunny_service):
    seed_bunny(db, bunny_id="late", event_count=8, created_at=datetime(2024, 3, 1, tzinfo=timezone.utc))
    seed_bunny(db, bunny_id="early", event_count=0, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

    bunnies = bunny_service.list_bunnies_with_happiness(TEST_UID)

    assert [b["id"] for b in bunnies] == ["early", "late"]
    assert [b["happiness"] for b in bunnies] == [0, 24]
    assert bunny_service.get_average_happiness(TEST_UID) == 12


def test_legacy_bunny_fields_are_tolerated(db, bunny_service):
    db.docs[f"users/{TEST_UID}/bunnies/old"] = {"name": "Old", "colorClass": "teal", "eventCount": "lots"}

    bunny = bunny_service.get_bunny(TEST_UID, "old")

    assert bunny.color_class == BunnyColor.CREAM
    assert bunny.event_count == 0


def test_get_missing_bunny(bunny_service):
    with pytest.raises(FileNotFoundError):
        bunny_service.get_bunny(TEST_UID, "nope")


def test_give_carrots_appends_event(db, bunny_service):
    seed_bunny(db)

    event = bunny_service.give_carrots(TEST_UID, "bunny-1", 5, notes="breakfast")

    stored = db.data(f"users/{TEST_UID}/bunnies/bunny-1/events/{event.event_id}")
    assert stored["type"] == "CARROT_GIVEN"
    assert stored["carrots"] == 5
    assert stored["source"] == "ui"
    assert stored["notes"] == "breakfast"
    # eventCount is left to the counter trigger
    assert db.data(f"users/{TEST_UID}/bunnies/bunny-1")["eventCount"] == 0


@pytest.mark.parametrize("carrots", [0, 51, 2.5, "3", None])
def test_give_carrots_rejects_invalid_counts(db, bunny_service, carrots):
    seed_bunny(db)

    with pytest.raises(ValueError):
        bunny_service.give_carrots(TEST_UID, "bunny-1", carrots)
    assert not any("/events/" in path for path in db.docs)


def test_give_carrots_to_missing_bunny(bunny_service):
    with pytest.raises(FileNotFoundError):
        bunny_service.give_carrots(TEST_UID, "nope", 1)


def test_carrots_then_counter_then_happiness(db, bunny_service):
    """5 + 3 carrots with defaults -> 24 points, 8%, sad"""
    seed_bunny(db)
    counter = CounterMaintainer(db=db)
    for carrots in (5, 3):
        event = bunny_service.give_carrots(TEST_UID, "bunny-1", carrots)
        counter.on_event_created(TEST_UID, "bunny-1", event.event_id, event.to_dict())

    bunny = bunny_service.get_bunny_with_happiness(TEST_UID, "bunny-1")

    assert (bunny["eventCount"], bunny["happiness"], bunny["progressBarPercent"], bunny["mood"]) == (8, 24, 8, "sad")


def test_list_events_paginates_newest_first(db, bunny_service):
    seed_bunny(db)
    ids = seed_events(db, count=25)
    newest_first = list(reversed(ids))

    page1, cursor1 = bunny_service.list_events(TEST_UID, "bunny-1")
    page2, cursor2 = bunny_service.list_events(TEST_UID, "bunny-1", cursor=cursor1)
    page3, cursor3 = bunny_service.list_events(TEST_UID, "bunny-1", cursor=cursor2)

    assert [e.event_id for e in page1] == newest_first[:10]
    assert [e.event_id for e in page2] == newest_first[10:20]
    assert [e.event_id for e in page3] == newest_first[20:]
    assert cursor1 == newest_first[9]
    assert cursor3 is None


def test_list_events_exact_page_and_limit_cap(db, bunny_service):
    seed_bunny(db)
    seed_events(db, count=10)

    page, cursor = bunny_service.list_events(TEST_UID, "bunny-1")
    assert len(page) == 10
    assert cursor is not None
    assert bunny_service.list_events(TEST_UID, "bunny-1", cursor=cursor) == ([], None)

    page, _ = bunny_service.list_events(TEST_UID, "bunny-1", limit=500)
    assert len(page) == 10


def test_list_events_invalid_cursor(db, bunny_service):
    seed_bunny(db)

    with pytest.raises(ValueError):
        bunny_service.list_events(TEST_UID, "bunny-1", cursor="missing")


def test_delete_bunny_and_event(db, bunny_service):
    seed_bunny(db)
    [event_id] = seed_events(db, count=1)

    bunny_service.delete_event(TEST_UID, "bunny-1", event_id)
    bunny_service.delete_bunny(TEST_UID, "bunny-1")

    assert db.docs == {}
    with pytest.raises(FileNotFoundError):
        bunny_service.delete_bunny(TEST_UID, "bunny-1")
    with pytest.raises(FileNotFoundError):
        bunny_service.delete_event(TEST_UID, "bunny-1", event_id)


def test_users_are_isolated(db, bunny_service):
    seed_bunny(db, uid="someone-else")

    assert bunny_service.list_bunnies(TEST_UID) == []
    with pytest.raises(FileNotFoundError):
        bunny_service.get_bunny(TEST_UID, "bunny-1")
