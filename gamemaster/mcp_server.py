"""FastMCP server exposing dice and scenario lookups as MCP tools.

Tools:
  - roll_dice(count, sides, modifier)  — roll dice and sum them
  - skill_check(skill_name, attribute_value) — d20 + value vs difficulty 10
  - list_scenarios()                    — ids, titles and descriptions
  - get_scenario(scenario_id)           — full scenario document

Usage:
    uv run python -m gamemaster.mcp_server [--data-dir DIR]
"""

from pathlib import Path

from mcp.server.fastmcp import FastMCP

from gamemaster import dice, storage

mcp = FastMCP("rpg-gamemaster")


@mcp.tool()
def roll_dice(count: int = 1, sides: int = 20, modifier: int = 0) -> dict:
    """Roll `count` dice with `sides` sides. Returns the rolls and the total."""
    rolls = dice.roll_dice(count, sides)
    return {"rolls": rolls, "modifier": modifier, "total": sum(rolls) + modifier}


@mcp.tool()
def skill_check(skill_name: str, attribute_value: float, attribute: str = "") -> dict:
    """Resolve a skill check: d20 + attribute value against difficulty 10."""
    return dice.skill_check(skill_name, attribute, attribute_value).model_dump()


@mcp.tool()
def list_scenarios() -> list[dict]:
    """List available scenarios."""
    return [
        {"id": s.id, "title": s.title, "description": s.description}
        for s in storage.list_scenarios()
    ]


@mcp.tool()
def get_scenario(scenario_id: str) -> dict | None:
    """Return a scenario's attributes, skills and customization options."""
    scenario = storage.get_scenario(scenario_id)
    return scenario.model_dump() if scenario else None


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="RPG Game Master MCP server")
    parser.add_argument("--data-dir", type=Path, default=Path("data"))
    args = parser.parse_args()
    storage.init_storage(args.data_dir)
    mcp.run()
