from datetime import datetime, timezone
from typing import Optional, Callable, Union
import json
import logging
import time
import uuid

from pydantic import ValidationError

from ..common.config_manager import ConfigManager, get_config
from ..common.data_manager import KeyValueStore, MemoryStore, StorageError
from .models import GameState, CornUnit, PopcornEntry, MATURE_STAGE, HISTORY_LIMIT

logger = logging.getLogger(__name__)

# 提示消息
NOTICE_NOT_ENOUGH_CORN = "Not enough corn seeds"
NOTICE_NOT_ENOUGH_POPCORN = "Not enough popcorn in stock"
NOTICE_NOT_READY = "This corn is not ready to harvest yet"
NOTICE_UNKNOWN_CORN = "No such corn in the field"


def now_ms() -> float:
    return time.time() * 1000


class SnapshotStore:
    """
    快照存储 - 将整个 GameState 作为一个 JSON 串保存在固定键下

    load/save 都是尽力而为：失败只记录日志，不向上抛出。
    """

    def __init__(self, store: KeyValueStore, key: Optional[str] = None,
                 config: Optional[ConfigManager] = None):
        self.config = config or get_config()
        self.store = store
        self.key = key or self.config.storage_key

    def load(self) -> Optional[GameState]:
        try:
            raw = self.store.get(self.key)
        except (StorageError, OSError, ValueError) as e:
            logger.error("snapshot load failed: %s", e)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error("snapshot under %r is not valid JSON: %s", self.key, e)
            return None
        if not isinstance(data, dict):
            logger.error("snapshot under %r is not an object", self.key)
            return None
        try:
            return GameState.from_snapshot(data, self.config)
        except ValidationError as e:
            logger.error("snapshot under %r failed validation: %s", self.key, e)
            return None

    def save(self, state: GameState) -> bool:
        try:
            self.store.set(self.key, json.dumps(state.to_snapshot(), ensure_ascii=False))
        except (StorageError, OSError) as e:
            logger.error("snapshot save failed: %s", e)
            return False
        return True


class GameEngine:
    """
    游戏引擎 - GameState 的唯一所有者

    Every mutating action saves the snapshot and then hands a copy of the new
    state to ``on_change``. Actions that cannot run leave the state untouched,
    call ``notify`` with a message and return False.
    """

    def __init__(self,
                 storage: Union[SnapshotStore, KeyValueStore, None] = None,
                 notify: Optional[Callable[[str], None]] = None,
                 on_change: Optional[Callable[[GameState], None]] = None,
                 clock: Optional[Callable[[], float]] = None,
                 config: Optional[ConfigManager] = None):
        self.config = config or get_config()
        if isinstance(storage, SnapshotStore):
            self.store = storage
        else:
            self.store = SnapshotStore(storage if storage is not None else MemoryStore(), config=self.config)
        self.notify = notify or (lambda msg: None)
        self.on_change = on_change
        self.clock = clock or now_ms
        self.state = self.store.load() or GameState.defaults(self.config)

    def _commit(self):
        self.store.save(self.state)
        self._changed()

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.get_state())

    def get_state(self) -> GameState:
        return self.state.model_copy(deep=True)

    def plant(self) -> bool:
        if self.state.cornSeedCount < 1:
            self.notify(NOTICE_NOT_ENOUGH_CORN)
            return False
        now = self.clock()
        self.state.cornSeedCount -= 1
        self.state.corns.append(CornUnit(
            id=f"{int(now)}-{uuid.uuid4().hex[:8]}",
            stage=0,
            progress=0,
            plantedAt=now,
            lastUpdate=now,
        ))
        logger.debug("planted corn, %d seeds left", self.state.cornSeedCount)
        self._commit()
        return True

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Advance growth of every immature corn to ``now`` (ms).

        Elapsed time since ``lastUpdate`` is added to ``progress``; once it
        reaches the stage duration the corn moves up one stage and progress
        resets. With ``catch_up_growth`` the surplus carries over instead, so a
        long gap can cross several stages in one call. Returns True when any
        corn changed stage; only then is the snapshot saved.
        """
        if now is None:
            now = self.clock()
        catch_up = self.config.catch_up_growth
        changed = False
        for corn in self.state.corns:
            if corn.is_mature:
                continue
            corn.progress += max(0, now - corn.lastUpdate)
            corn.lastUpdate = now
            if catch_up:
                while not corn.is_mature and corn.progress >= corn.stage_duration_ms:
                    corn.progress -= corn.stage_duration_ms
                    corn.stage += 1
                    changed = True
                if corn.is_mature:
                    corn.progress = 0
            elif corn.progress >= corn.stage_duration_ms:
                corn.stage += 1
                corn.progress = 0
                changed = True
        if changed:
            self.store.save(self.state)
        self._changed()
        return changed

    def harvest(self, corn_id: Union[str, int, float]) -> bool:
        """Harvest a mature corn. Numeric ids from older saves may be passed
        as numbers; they are matched by their string form."""
        corn_id = str(corn_id)
        corn = self.state.find_corn(corn_id)
        if corn is None:
            self.notify(NOTICE_UNKNOWN_CORN)
            return False
        if corn.stage != MATURE_STAGE:
            self.notify(NOTICE_NOT_READY)
            return False
        self.state.corns.remove(corn)
        self.state.cornSeedCount += self.config.harvest_yield
        logger.debug("harvested %s, %d seeds", corn_id, self.state.cornSeedCount)
        self._commit()
        return True

    def produce_popcorn(self, batch: int = 1) -> bool:
        batch = max(1, int(batch))
        if self.state.cornSeedCount < batch:
            self.notify(NOTICE_NOT_ENOUGH_CORN)
            return False
        produced = batch * self.state.popcornEfficiency
        self.state.cornSeedCount -= batch
        self.state.popcornCount += produced
        self.state.popcornTotal += produced
        # 记录历史，最新的在前
        entry = PopcornEntry(
            time=datetime.fromtimestamp(self.clock() / 1000, tz=timezone.utc).isoformat(),
            batch=batch,
            produced=produced,
        )
        self.state.popcornHistory.insert(0, entry)
        del self.state.popcornHistory[HISTORY_LIMIT:]
        logger.debug("produced %d popcorn from %d corn", produced, batch)
        self._commit()
        return True

    def sell_popcorn(self, amount: int = 1) -> bool:
        amount = max(1, int(amount))
        if self.state.popcornCount < amount:
            self.notify(NOTICE_NOT_ENOUGH_POPCORN)
            return False
        self.state.popcornCount -= amount
        self.state.coinCount += amount
        self.state.popcornSold += amount
        logger.debug("sold %d popcorn, %d coins", amount, self.state.coinCount)
        self._commit()
        return True
