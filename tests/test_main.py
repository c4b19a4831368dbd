import asyncio

import pytest

from corngrower.common.config_manager import ConfigManager
from corngrower.common.data_manager import DataManager, MemoryStore
from corngrower.common.ticker import Ticker
from corngrower.corn.logic import NOTICE_NOT_ENOUGH_POPCORN
from corngrower.main import CornGrowerApp


def test_app_persists_to_data_dir(tmp_path):
    cfg = ConfigManager({'data_dir': str(tmp_path)})
    app = CornGrowerApp(config=cfg)
    assert isinstance(app.store, DataManager)
    app.on_plant()
    app.on_produce('4')
    # 重新打开
    again = CornGrowerApp(config=cfg)
    s = again.engine.get_state()
    assert len(s.corns) == 1
    assert s.cornSeedCount == 25
    assert s.popcornCount == 8


def test_app_without_data_dir_uses_memory():
    app = CornGrowerApp(config=ConfigManager())
    assert isinstance(app.store, MemoryStore)


def test_app_intents_render_and_notify():
    views, notices = [], []
    app = CornGrowerApp(config=ConfigManager(), store=MemoryStore(),
                        notify=notices.append, render=views.append)
    assert app.on_sell() is False
    assert notices == [NOTICE_NOT_ENOUGH_POPCORN]
    assert app.on_produce('abc') is True
    assert views[-1].popcornCount == 2
    assert app.on_sell() is True
    assert views[-1].coinCount == 1
    assert views[-1].popcornCount == 1


def test_view_uses_batch_input():
    app = CornGrowerApp(config=ConfigManager(), store=MemoryStore())
    assert app.view('31').produce_enabled is False
    assert app.view('31').low_resource is True
    assert app.view('30').produce_enabled is True


def test_harvest_intent():
    app = CornGrowerApp(config=ConfigManager(), store=MemoryStore())
    app.on_plant()
    corn_id = app.engine.get_state().corns[0].id
    assert app.on_harvest(corn_id) is False
    assert len(app.engine.get_state().corns) == 1


def test_ticker_runs_until_stopped():
    calls = []

    async def scenario():
        ticker = Ticker(lambda: calls.append(1), interval=0.01)
        task = ticker.start()
        assert ticker.start() is task
        assert ticker.running
        await asyncio.sleep(0.06)
        ticker.stop()
        await asyncio.sleep(0)
        assert not ticker.running
        return task

    task = asyncio.run(scenario())
    assert task.cancelled()
    assert len(calls) >= 2


def test_ticker_survives_callback_errors():
    calls = []

    def boom():
        calls.append(1)
        raise RuntimeError('bad tick')

    async def scenario():
        ticker = Ticker(boom, interval=0.01)
        ticker.start()
        await asyncio.sleep(0.06)
        ticker.stop()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_ticker_rejects_bad_interval():
    with pytest.raises(ValueError):
        Ticker(lambda: None, interval=0)


def test_app_run_drives_growth():
    views = []
    app = CornGrowerApp(config=ConfigManager({'tick_interval': 0.01}), store=MemoryStore(),
                        render=views.append)
    app.on_plant()
    asyncio.run(app.run(0.06))
    assert not app.ticker.running
    # 种植一次 + 至少两次计时
    assert len(views) >= 3
    assert app.engine.get_state().corns[0].stage == 0
