"""Immutable set of secret values loaded at startup."""
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional


class ConfigurationSet(Mapping):
    """Validated mapping of variable name to secret value.

    Built once by the environment loader and passed explicitly to every
    component; nothing downstream reads os.environ.
    """

    def __init__(self, values: Mapping[str, str], source: Optional[str] = None):
        self._values = MappingProxyType(dict(values))
        self.source = source

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        # Never print values
        return f"ConfigurationSet({sorted(self._values)!r}, source={self.source!r})"

    def secret_values(self) -> List[str]:
        """Non-empty values, used to redact command lines in logs."""
        return [value for value in self._values.values() if value]

    def values_for(self, names: Iterable[str]) -> List[str]:
        """Non-empty values of the given names that are present."""
        return [self._values[name] for name in names if self._values.get(name)]
