from __future__ import annotations

import threading
from typing import Any

from mcp.server.fastmcp import FastMCP

from garden_manager import GardenSystem, parse_date_range, seed_system

mcp = FastMCP(
    "Garden Plot MCP Server",
    instructions="Expose garden plots, crops and reservation operations from the garden_manager project.",
    json_response=True,
)

SYSTEM = GardenSystem()
seed_system(SYSTEM)
LOCK = threading.Lock()


@mcp.resource("garden://plots")
async def list_plots() -> list[dict[str, Any]]:
    """List garden plots with their current occupancy."""
    with LOCK:
        return SYSTEM.availability_overview()


@mcp.resource("garden://crops")
async def list_crops() -> list[dict[str, Any]]:
    """List crops that can be put on a planting plan."""
    with LOCK:
        return [crop.to_dict() for crop in SYSTEM.crops]


@mcp.tool()
def find_available_plots(date_range: str, crop: str | None = None) -> list[dict[str, Any]]:
    """Return plots free for a range like '2026-04-01~2026-06-30', optionally filtered by crop."""
    parsed = parse_date_range(date_range)
    with LOCK:
        return [plot.to_dict(SYSTEM.today()) for plot in SYSTEM.find_available_plots(parsed, crop)]


@mcp.tool()
def register_gardener(name: str, email: str | None = None) -> dict[str, Any]:
    """Register a new gardener and return the allocated ID."""
    with LOCK:
        return SYSTEM.register_new_gardener(name, email=email).to_dict()


@mcp.tool()
def request_reservation(plot_id: str, gardener_id: str, date_range: str, crops: list[str] | None = None) -> dict[str, Any]:
    """Create a pending reservation. Crops must name entries from garden://crops."""
    parsed = parse_date_range(date_range)
    with LOCK:
        resolved = [SYSTEM.find_crop(name) for name in crops or []]
        missing = [name for name, crop in zip(crops or [], resolved) if crop is None]
        if missing:
            return {"ok": False, "reason": "unknown_crop", "message": f"Unknown crops: {', '.join(missing)}"}
        return SYSTEM.create_reservation(plot_id, gardener_id, parsed, resolved).to_dict()


@mcp.tool()
def confirm_reservation(reservation_id: str) -> dict[str, Any]:
    """Confirm a pending reservation if its plot is still free."""
    with LOCK:
        return SYSTEM.confirm_reservation(reservation_id).to_dict()


@mcp.tool()
def cancel_reservation(reservation_id: str) -> dict[str, Any]:
    """Cancel a pending or confirmed reservation."""
    with LOCK:
        return SYSTEM.cancel_reservation(reservation_id).to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
