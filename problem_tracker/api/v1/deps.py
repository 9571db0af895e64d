from fastapi import Request

from problem_tracker.core.tracker_store import TrackerStore


# The store is built once at startup (see main.startup_event) and shared
# across requests; tests swap it through app.state.


def get_tracker_store(request: Request) -> TrackerStore:
    return request.app.state.tracker_store
