"""Playoff events are dispatched only after the enclosing transaction commits."""
from sqlmodel import Session

from playoffs.services.playoff_events import (
    EVENT_BRACKET_COMPLETED,
    EVENT_BRACKET_GENERATED,
    EVENT_CHAMPION_CROWNED,
    EVENT_ROUND_ADVANCED,
    PendingEvents,
)
from playoffs.services.playoff_service import advance_for_week, generate_bracket
from tests.conftest import favorite_wins, playoff_games, score


def _bound(session: Session):
    delivered = []
    events = PendingEvents().bind(session, dispatcher=delivered.append)
    return events, delivered


def test_events_wait_for_commit(session: Session, make_league):
    league, _ = make_league(4)
    events, delivered = _bound(session)

    generate_bracket(session, league.id, 4, 15, events=events)
    assert delivered == []
    assert [e.event_type for e in events.queued] == [EVENT_BRACKET_GENERATED]

    session.commit()
    assert [e.event_type for e in delivered] == [EVENT_BRACKET_GENERATED]
    assert delivered[0].league_id == league.id
    assert events.queued == []
    events.unbind()


def test_rollback_discards_queued_events(session: Session, make_league):
    league, _ = make_league(4)
    events, delivered = _bound(session)

    generate_bracket(session, league.id, 4, 15, events=events)
    session.rollback()

    assert delivered == []
    assert events.queued == []
    events.unbind()


def test_repeated_advancement_queues_nothing(session: Session, make_league):
    league, _ = make_league(4)
    generate_bracket(session, league.id, 4, 15)
    session.commit()
    favorite_wins(session, playoff_games(session, league.id, playoff_round=1))

    events, delivered = _bound(session)
    advance_for_week(session, league.id, 15, events)
    session.commit()
    assert [e.event_type for e in delivered] == [EVENT_ROUND_ADVANCED]
    assert delivered[0].payload["to_round"] == 2

    advance_for_week(session, league.id, 15, events)
    session.commit()
    assert len(delivered) == 1

    [final] = playoff_games(session, league.id, playoff_round=2)
    score(session, final, 140.0, 120.0)
    advance_for_week(session, league.id, 16, events)
    session.commit()
    assert [e.event_type for e in delivered[1:]] == [EVENT_CHAMPION_CROWNED, EVENT_BRACKET_COMPLETED]
    events.unbind()


def test_failing_dispatcher_does_not_stop_other_events(session: Session):
    delivered = []

    def flaky(evt):
        if evt.payload.get("boom"):
            raise RuntimeError("sink down")
        delivered.append(evt)

    events = PendingEvents()
    events.bind(session, dispatcher=flaky)
    events.queue("playoff:test", 1, {"boom": True})
    events.queue("playoff:test", 1, {"n": 2})
    session.connection()
    session.commit()

    assert [e.payload for e in delivered] == [{"n": 2}]
    events.unbind()
