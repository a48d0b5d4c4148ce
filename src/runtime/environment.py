from typing import Optional

from runtime.objects import Object


class Environment:
    def __init__(self, outer: Optional["Environment"] = None):
        self._store: dict[str, Object] = {}
        self._outer = outer

    @classmethod
    def new_root(cls):
        return cls()

    def new_child(self):
        return Environment(self)

    def lookup(self, name: str) -> Optional[Object]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env._store:
                return env._store[name]
            env = env._outer
        return None

    def bind(self, name: str, val: Object):
        self._store[name] = val
        return val
