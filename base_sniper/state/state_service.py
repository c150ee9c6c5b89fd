"""
State Service - Small JSON document on disk, rewritten on every change
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional
from colorama import Fore, Style


DEFAULT_STATE = {
    "token_blacklist": None,
    "wallet_addresses": [],
    "factory_selected": ["uniswap_v2", "aerodrome", "uniswap_v3"],
}


class StateService:
    def __init__(self, path: str = "state.json", auto_save: bool = True,
                 defaults: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        self.auto_save = auto_save
        self.defaults = DEFAULT_STATE if defaults is None else defaults
        self.data: Dict[str, Any] = self.load()

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            data = {k: copy.deepcopy(v) for k, v in self.defaults.items() if v is not None}
            print(f"{Fore.YELLOW}[State] {self.path} not found - starting fresh{Style.RESET_ALL}")
            self._write(data)
            return data

        with open(self.path, 'r') as f:
            data = json.load(f)
        print(f"{Fore.GREEN}[State] Loaded {len(data)} keys from {self.path}{Style.RESET_ALL}")
        return data

    def _write(self, data: Dict[str, Any]):
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=4)

    def save(self):
        self._write(self.data)

    def all(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    def get(self, key: str, default: Any = None) -> Any:
        # Copies, so callers can't mutate state behind save()
        return copy.deepcopy(self.data.get(key, default))

    def set(self, key: str, value: Any):
        self.data[key] = copy.deepcopy(value)
        if self.auto_save:
            self.save()

    def remove(self, key: str) -> bool:
        if key not in self.data:
            return False
        del self.data[key]
        if self.auto_save:
            self.save()
        return True
