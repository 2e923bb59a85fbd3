"""Free-form dice roll endpoint."""

from fastapi import APIRouter

from gamemaster import dice

from .models import DiceRollBody

router = APIRouter()


@router.post("/dice/roll")
async def roll(body: DiceRollBody):
    """Roll `count` dice with `sides` sides and add `modifier`."""
    rolls = dice.roll_dice(body.count, body.sides)
    total = sum(rolls) + body.modifier
    return {"rolls": rolls, "modifier": body.modifier, "total": total}
