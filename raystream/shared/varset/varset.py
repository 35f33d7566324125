from typing import Dict, Iterator, Optional, Any, List
from .var import Var


class VarSet:
    """
    An ordered collection of Var objects, addressable by key.
    """

    def __init__(
        self,
        vars: Optional[List[Var]] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ):
        self.title = title
        self.description = description
        self._vars: Dict[str, Var] = {}
        for var in vars or []:
            self.add(var)

    def add(self, var: Var):
        if var.key in self._vars:
            raise KeyError(f"Var with key '{var.key}' already exists")
        self._vars[var.key] = var

    def get(self, key: str) -> Optional[Var]:
        return self._vars.get(key)

    def keys(self) -> List[str]:
        return list(self._vars)

    def __getitem__(self, key: str) -> Var:
        return self._vars[key]

    def __setitem__(self, key: str, value: Any):
        if key not in self._vars:
            raise KeyError(f"No Var with key '{key}'")
        self._vars[key].value = value

    def __contains__(self, key: str) -> bool:
        return key in self._vars

    def __iter__(self) -> Iterator[Var]:
        return iter(self._vars.values())

    def __len__(self) -> int:
        return len(self._vars)

    def get_values(self) -> Dict[str, Any]:
        return {key: var.value for key, var in self._vars.items()}

    def set_values(self, values: Dict[str, Any]):
        """Sets values for known keys; unknown keys are ignored."""
        for key, value in values.items():
            if key in self._vars:
                self._vars[key].value = value

    def validate(self):
        """Validates every Var, raising the first ValidationError."""
        for var in self._vars.values():
            var.validate()

    def clear(self):
        self._vars.clear()

    def __repr__(self) -> str:
        return f"VarSet(title={self.title!r}, vars={list(self._vars)})"
