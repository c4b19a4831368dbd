"""
数据管理器 - 键值存储

Two interchangeable backends exposing the same ``get``/``set`` pair:
``MemoryStore`` keeps values in a dict, ``DataManager`` keeps one JSON file
per key under a data root.
"""
from pathlib import Path
from typing import Dict, List, Optional, Protocol


class StorageError(RuntimeError):
    """存储读写失败"""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """内存存储，主要用于测试"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class DataManager:
    """
    数据管理器 - JSON 文件存储

    每个键对应数据目录下的一个 ``<key>.json`` 文件，值原样写入。

    用法:
        dm = DataManager(base_path='data')
        dm.set('cornGrowerV1', '{"cornSeedCount": 30}')
        raw = dm.get('cornGrowerV1')
    """

    def __init__(self, base_path: Optional[Path] = None):
        if base_path:
            self.root = Path(base_path)
        else:
            # 回退到包目录下的 data
            self.root = Path(__file__).resolve().parents[2] / "data"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"无法创建数据目录 {self.root}: {e}") from e

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        """读取键值，不存在时返回 None"""
        p = self._path(key)
        if not p.exists():
            return None
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"读取 {p} 失败: {e}") from e

    def set(self, key: str, value: str) -> None:
        """写入键值"""
        p = self._path(key)
        try:
            p.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"保存 {p} 失败: {e}") from e

    def list_keys(self) -> List[str]:
        """列出所有已保存的键"""
        return sorted(p.stem for p in self.root.glob("*.json"))
