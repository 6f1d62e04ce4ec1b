from backend.leaddesk.services.events import EventBus


def test_broadcast_reaches_every_subscriber():
    bus = EventBus()
    received = []
    bus.subscribe(lambda event: received.append(("a", event.type)), user_id=1, role="hr")
    bus.subscribe(lambda event: received.append(("b", event.type)), user_id=2, role="accounts")
    assert bus.publish("ping", {}) == 2
    assert sorted(received) == [("a", "ping"), ("b", "ping")]


def test_role_and_user_targeting():
    bus = EventBus()
    received = []
    bus.subscribe(lambda event: received.append("manager"), user_id=1, role="manager")
    bus.subscribe(lambda event: received.append("hr"), user_id=2, role="hr")
    bus.subscribe(lambda event: received.append("accounts"), user_id=3, role="accounts")

    delivered = bus.publish("lead_assigned", {"id": 5}, roles=["manager"], user_ids=[3, None])

    assert delivered == 2
    assert sorted(received) == ["accounts", "manager"]


def test_failing_subscriber_does_not_block_others(caplog):
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("socket closed")

    bus.subscribe(broken, role="manager")
    bus.subscribe(lambda event: received.append(event.payload["id"]), role="manager")

    delivered = bus.publish("lead_created", {"id": 9}, roles=["manager"])

    assert delivered == 1
    assert received == [9]
    assert "Event subscriber failed" in caplog.text


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    received = []
    subscription = bus.subscribe(lambda event: received.append(event.type))
    bus.unsubscribe(subscription)
    assert bus.publish("ping", {}) == 0
    assert received == []
