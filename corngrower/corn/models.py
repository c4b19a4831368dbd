from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any, Tuple

from ..common.config_manager import ConfigManager, get_config


class Stage(BaseModel):
    """成长阶段"""
    name: str
    duration: int            # 秒，0 表示终点阶段

    model_config = {"frozen": True}


# 成长阶段表
STAGES: Tuple[Stage, ...] = (
    Stage(name="Seed", duration=10),
    Stage(name="Sprout", duration=20),
    Stage(name="Seedling", duration=30),
    Stage(name="Mature", duration=0),
)
STAGE_COUNT = len(STAGES)
MATURE_STAGE = STAGE_COUNT - 1

# 生产历史最多保留条数
HISTORY_LIMIT = 20


class CornUnit(BaseModel):
    """育成中的一株玉米，时间单位均为毫秒"""
    id: str
    stage: int = Field(default=0, ge=0, le=MATURE_STAGE)
    progress: float = Field(default=0, ge=0)
    plantedAt: float = 0
    lastUpdate: float = 0

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        # older saves stored numeric ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_mature(self) -> bool:
        return self.stage == MATURE_STAGE

    @property
    def stage_info(self) -> Stage:
        return STAGES[self.stage]

    @property
    def stage_duration_ms(self) -> int:
        return STAGES[self.stage].duration * 1000


class PopcornEntry(BaseModel):
    """爆米花生产记录"""
    time: str
    batch: int = Field(ge=1)
    produced: int = Field(ge=0)


class GameState(BaseModel):
    corns: List[CornUnit] = Field(default_factory=list)
    cornSeedCount: int = Field(default=30, ge=0)
    popcornCount: int = Field(default=0, ge=0)
    popcornTotal: int = Field(default=0, ge=0)
    popcornSold: int = Field(default=0, ge=0)
    popcornEfficiency: int = Field(default=2, ge=1)
    popcornHistory: List[PopcornEntry] = Field(default_factory=list)
    coinCount: int = Field(default=0, ge=0)

    @classmethod
    def defaults(cls, config: Optional[ConfigManager] = None) -> 'GameState':
        cfg = config or get_config()
        return cls(
            cornSeedCount=cfg.initial_seed_count,
            popcornEfficiency=cfg.initial_efficiency,
            coinCount=0,
        )

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], config: Optional[ConfigManager] = None) -> 'GameState':
        """
        Build a state from a persisted snapshot.

        Absent or null fields fall back to the defaults; an over-long history
        keeps only the newest entries. Raises pydantic.ValidationError when a
        present field is malformed.
        """
        cfg = config or get_config()
        fields = {k: v for k, v in data.items() if k in cls.model_fields and v is not None}
        fields.setdefault("cornSeedCount", cfg.initial_seed_count)
        fields.setdefault("popcornEfficiency", cfg.initial_efficiency)
        history = fields.get("popcornHistory")
        if isinstance(history, list):
            fields["popcornHistory"] = history[:HISTORY_LIMIT]
        return cls.model_validate(fields)

    def to_snapshot(self) -> Dict[str, Any]:
        return self.model_dump()

    def find_corn(self, corn_id: str) -> Optional[CornUnit]:
        return next((c for c in self.corns if c.id == corn_id), None)
