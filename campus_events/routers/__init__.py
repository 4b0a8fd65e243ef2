from campus_events.routers.healthz import router as healthz

__all__ = [
    "healthz",
]
