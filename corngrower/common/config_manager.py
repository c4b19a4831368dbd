"""
配置管理器 - 读取和管理游戏配置

Flat key/value configuration: DEFAULT_CONFIG overlaid with whatever the host
passes in (a dict or a JSON file).
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    配置管理器

    用法:
        cfg = ConfigManager({"harvest_yield": 10})
        cfg.harvest_yield  # 10
        cfg.get("storage_key")  # "cornGrowerV1"
    """

    # 默认配置（扁平结构）
    DEFAULT_CONFIG = {
        "storage_key": "cornGrowerV1",
        "initial_seed_count": 30,
        "initial_efficiency": 2,
        "harvest_yield": 8,
        "tick_interval": 1.0,
        "catch_up_growth": False,
        "data_dir": None,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = self.DEFAULT_CONFIG.copy()
        self.load_config(config)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ConfigManager':
        """
        从 JSON 文件加载配置

        A missing or unreadable file yields the defaults.
        """
        p = Path(path)
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning("config file %s unreadable, using defaults: %s", p, e)
            return cls()
        if not isinstance(data, dict):
            logger.warning("config file %s is not a JSON object, using defaults", p)
            return cls()
        return cls(data)

    def load_config(self, config: Optional[Dict[str, Any]]) -> None:
        """
        加载配置

        Args:
            config: 配置字典（扁平结构），未知键同样保留
        """
        if config:
            self._config.update(config)

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置值"""
        return self._config.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def storage_key(self) -> str:
        """快照存储键"""
        return self._config.get("storage_key", "cornGrowerV1")

    @property
    def initial_seed_count(self) -> int:
        """初始种子数"""
        return int(self._config.get("initial_seed_count", 30))

    @property
    def initial_efficiency(self) -> int:
        """初始生产效率"""
        return int(self._config.get("initial_efficiency", 2))

    @property
    def harvest_yield(self) -> int:
        """每次收获获得的种子数"""
        return int(self._config.get("harvest_yield", 8))

    @property
    def tick_interval(self) -> float:
        """成长计时器间隔（秒）"""
        return float(self._config.get("tick_interval", 1.0))

    @property
    def catch_up_growth(self) -> bool:
        return bool(self._config.get("catch_up_growth", False))

    @property
    def data_dir(self) -> Optional[Path]:
        value = self._config.get("data_dir")
        return Path(value) if value else None


# 全局默认配置实例
config = ConfigManager()


def get_config() -> ConfigManager:
    """获取默认配置管理器"""
    return config
