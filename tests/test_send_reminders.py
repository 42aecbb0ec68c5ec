from datetime import date

from huddle.modules.notifications.fanout import NotificationFanout
from huddle.scripts.send_reminders import find_events_on, parse_args, send_reminders

DAY = date(2030, 5, 10)


def add_event(fake_db, event_date, status="scheduled", title="Trail run"):
    return fake_db.insert("events", {
        "group_id": "g1", "title": title, "event_date": event_date, "status": status, "created_by": "u0"
    })


def test_only_scheduled_events_on_the_day(fake_db):
    morning = add_event(fake_db, "2030-05-10T07:00:00Z", title="Morning")
    add_event(fake_db, "2030-05-09T23:59:00Z", title="Day before")
    add_event(fake_db, "2030-05-11T00:00:00+00:00", title="Day after")
    add_event(fake_db, "2030-05-10T12:00:00Z", status="cancelled", title="Called off")
    evening = add_event(fake_db, "2030-05-10T19:30:00Z", title="Evening")

    assert [e["id"] for e in find_events_on(fake_db, DAY)] == [morning["id"], evening["id"]]


def test_reminders_reach_attending_participants(fake_db, push_sender):
    event = add_event(fake_db, "2030-05-10T18:00:00Z")
    fake_db.insert("participants", {"event_id": event["id"], "user_id": "u1", "status": "attending"})
    fake_db.insert("participants", {"event_id": event["id"], "user_id": "u2", "status": "maybe"})
    for user_id in ("u1", "u2"):
        fake_db.insert("push_subscriptions", {
            "user_id": user_id, "endpoint": f"https://push/{user_id}", "p256dh": "k", "auth": "a"
        })

    fanout = NotificationFanout(fake_db, push_sender)
    assert send_reminders(fanout, DAY) == 1
    assert [sub["user_id"] for sub, _ in push_sender.sent] == ["u1"]


def test_dry_run_sends_nothing(fake_db, push_sender):
    event = add_event(fake_db, "2030-05-10T18:00:00Z")
    fake_db.insert("participants", {"event_id": event["id"], "user_id": "u1", "status": "attending"})
    fake_db.insert("push_subscriptions", {"user_id": "u1", "endpoint": "https://push/u1", "p256dh": "k", "auth": "a"})

    assert send_reminders(NotificationFanout(fake_db, push_sender), DAY, dry_run=True) == 0
    assert push_sender.sent == []


def test_parse_args():
    args = parse_args(["--date", "2030-05-10", "--dry-run"])
    assert args.date == DAY
    assert args.dry_run is True
    assert parse_args([]).date is None
