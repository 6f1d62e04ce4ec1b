from fastapi import Request

from backend.leaddesk.services.events import EventBus


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus
