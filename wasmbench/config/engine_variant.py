"""
Engine variant configuration data class.

An EngineVariant names one benchmarking target: a display label, the backend
that runs it and that backend's own settings.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from wasmbench.consts.BackendKind import BackendKind


@dataclass(frozen=True)
class EngineVariant:

    name: str
    backend_kind: BackendKind
    configuration: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the settings so a variant cannot change once built
        object.__setattr__(self, "configuration", MappingProxyType(dict(self.configuration)))

    def option(self, key: str, default: Any = None) -> Any:
        return self.configuration.get(key, default)

    @property
    def iterations(self) -> Optional[int]:
        return self.configuration.get("iterations")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "backend": self.backend_kind.value,
            "configuration": dict(self.configuration),
        }
