"""Route dependencies — access to the process-wide Services container."""

from fastapi import Request

from tramites.services.container import Services


def get_services(request: Request) -> Services:
    """FastAPI dependency: the Services built by the lifespan."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services
