import httpx
from loguru import logger


class MaintenanceError(Exception):
    """The storage service could not be told about the maintenance window."""


async def _send(method: str, url: str, ignore_failure: bool, client: httpx.AsyncClient | None = None) -> bool:
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=30.0) as own_client:
                response = await own_client.request(method, url)
        else:
            response = await client.request(method, url)
        response.raise_for_status()
        return True
    except httpx.HTTPError as e:
        logger.error(f"send mark request failed: {e}")
        if not ignore_failure:
            raise MaintenanceError(f"Cannot send mark request ({method} {url})") from e
        return False


async def mark(url: str, ignore_failure: bool = False, client: httpx.AsyncClient | None = None) -> bool:
    """Tells the storage service that a cleanup run is starting."""
    return await _send("POST", url, ignore_failure, client)


async def unmark(url: str, ignore_failure: bool = False, client: httpx.AsyncClient | None = None) -> bool:
    """Clears the maintenance marker once the run is over."""
    return await _send("DELETE", url, ignore_failure, client)
