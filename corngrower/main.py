import asyncio
import logging
from typing import Any, Callable, Optional

from .common.config_manager import ConfigManager, get_config
from .common.data_manager import DataManager, KeyValueStore, MemoryStore
from .common.ticker import Ticker
from .corn.logic import GameEngine
from .corn.models import GameState
from .corn.render import GameView, parse_batch

logger = logging.getLogger(__name__)


class CornGrowerApp:
    """
    玉米种植游戏 - 组装存储、引擎与成长计时器

    UI code calls the ``on_*`` handlers for user actions and reads ``view()``
    (or receives it through ``render``) after every change.
    """

    def __init__(self,
                 config: Optional[ConfigManager] = None,
                 store: Optional[KeyValueStore] = None,
                 notify: Optional[Callable[[str], None]] = None,
                 render: Optional[Callable[[GameView], None]] = None):
        self.config = config or get_config()
        if store is None:
            data_dir = self.config.data_dir
            store = DataManager(base_path=data_dir) if data_dir else MemoryStore()
        self.store = store
        self.render = render
        self.batch_input: Any = 1
        self.engine = GameEngine(
            storage=self.store,
            notify=notify or self._log_notice,
            on_change=self._state_changed,
            config=self.config,
        )
        # 成长计时器
        self.ticker = Ticker(self.engine.tick, self.config.tick_interval)

    @staticmethod
    def _log_notice(message: str):
        logger.info("notice: %s", message)

    def _state_changed(self, state: GameState):
        if self.render is not None:
            self.render(GameView.build(state, parse_batch(self.batch_input)))

    def view(self, batch_input: Any = None) -> GameView:
        if batch_input is not None:
            self.batch_input = batch_input
        return GameView.build(self.engine.get_state(), parse_batch(self.batch_input))

    # ========== 用户操作 ==========
    def on_plant(self) -> bool:
        return self.engine.plant()

    def on_harvest(self, corn_id: str) -> bool:
        return self.engine.harvest(corn_id)

    def on_produce(self, batch_input: Any = None) -> bool:
        if batch_input is not None:
            self.batch_input = batch_input
        return self.engine.produce_popcorn(parse_batch(self.batch_input))

    def on_sell(self, amount: int = 1) -> bool:
        # 每次点击卖出 1 个
        return self.engine.sell_popcorn(amount)

    # ========== 计时器 ==========
    def start(self) -> asyncio.Task:
        return self.ticker.start()

    def stop(self):
        self.ticker.stop()

    async def run(self, seconds: float):
        """Run the growth ticker for ``seconds`` and stop it afterwards."""
        self.start()
        try:
            await asyncio.sleep(seconds)
        finally:
            self.stop()
