"""
Derived display state for whatever UI sits on top of the engine.

Nothing here touches markup; it only turns a GameState into the numbers and
flags a view needs (progress percentages, countdowns, button enablement).
"""
import math
import re
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .models import CornUnit, GameState

EMPTY_FIELD_MESSAGE = "No corn growing right now."
EMPTY_HISTORY_MESSAGE = "No production yet"


def parse_batch(value: Any) -> int:
    """Parse a raw batch input the way a number field reads: leading digits
    win, anything unparsable or below 1 counts as 1."""
    m = re.match(r"\s*([+-]?\d+)", str(value))
    batch = int(m.group(1)) if m else 1
    return max(1, batch)


def stage_percent(corn: CornUnit) -> int:
    if corn.is_mature:
        return 100
    duration = corn.stage_duration_ms
    if duration <= 0:
        return 100
    return max(0, min(100, math.floor(corn.progress / duration * 100)))


def seconds_to_next_stage(corn: CornUnit) -> Optional[int]:
    if corn.is_mature:
        return None
    return max(0, math.ceil((corn.stage_duration_ms - corn.progress) / 1000))


def can_produce(state: GameState, batch: int) -> bool:
    return state.cornSeedCount >= max(1, batch)


def can_sell(state: GameState, amount: int = 1) -> bool:
    return state.popcornCount >= max(1, amount)


class CornRow(BaseModel):
    id: str
    stage: str
    percent: int
    seconds_left: Optional[int] = None
    harvestable: bool = False


class GameView(BaseModel):
    cornSeedCount: int
    popcornCount: int
    popcornTotal: int
    popcornSold: int
    popcornEfficiency: int
    coinCount: int
    corns: List[CornRow] = Field(default_factory=list)
    empty_message: Optional[str] = None
    history: List[str] = Field(default_factory=list)
    produce_enabled: bool = False
    sell_enabled: bool = False
    low_resource: bool = False

    @classmethod
    def build(cls, state: GameState, batch: int = 1, sell_amount: int = 1) -> 'GameView':
        rows = [
            CornRow(
                id=c.id,
                stage=c.stage_info.name,
                percent=stage_percent(c),
                seconds_left=seconds_to_next_stage(c),
                harvestable=c.is_mature,
            )
            for c in state.corns
        ]
        history = [f"{e.time}: {e.batch} corn -> {e.produced} popcorn" for e in state.popcornHistory]
        return cls(
            cornSeedCount=state.cornSeedCount,
            popcornCount=state.popcornCount,
            popcornTotal=state.popcornTotal,
            popcornSold=state.popcornSold,
            popcornEfficiency=state.popcornEfficiency,
            coinCount=state.coinCount,
            corns=rows,
            empty_message=None if rows else EMPTY_FIELD_MESSAGE,
            history=history or [EMPTY_HISTORY_MESSAGE],
            produce_enabled=can_produce(state, batch),
            sell_enabled=can_sell(state, sell_amount),
            low_resource=state.cornSeedCount < max(1, batch),
        )
