"""Exception handler mapping tests (domain errors to JSON responses)."""

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from farewatch.core.exception_handlers import register_exception_handlers
from farewatch.domain.exceptions import (
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnsupportedOperationException,
)


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise ResourceNotFoundException("destination", "d1")

    @app.get("/restore")
    async def restore():
        raise UnsupportedOperationException("pricehistory", "restore")

    @app.get("/sql")
    async def sql():
        raise SqlNotConfiguredException()

    return app


async def test_domain_errors_map_to_status_codes() -> None:
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        missing = await ac.get("/missing")
        restore = await ac.get("/restore")
        sql = await ac.get("/sql")

    assert missing.status_code == 404
    assert missing.json()["error"] == "RESOURCE_NOT_FOUND"
    assert missing.json()["details"]["resource_id"] == "d1"
    assert restore.status_code == 409
    assert sql.status_code == 503
