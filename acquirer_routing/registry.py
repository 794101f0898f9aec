import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .models import AcquirerConfig, AcquirerRegistryFile

logger = logging.getLogger(__name__)

class Registry:
    """Configured acquirers, in configured order, plus the identifier alias table.

    Historical data refers to acquirers by short ids ("A") while configuration
    uses full names ("Acquirer A"). Everything past this boundary sees only the
    canonical configured name.
    """

    def __init__(self, path: Optional[str] = None, acquirers: Optional[List[AcquirerConfig]] = None) -> None:
        self._path = Path(path) if path else None
        self._acquirers: Dict[str, AcquirerConfig] = {}
        self._aliases: Dict[str, str] = {}
        if acquirers is not None:
            self.replace(acquirers)
        else:
            self.reload()

    def reload(self) -> None:
        if self._path is None:
            raise ValueError("Registry has no backing file to reload from")
        data = json.loads(self._path.read_text())
        reg = AcquirerRegistryFile(**data)
        self.replace(reg.acquirers)
        logger.info("Loaded acquirer registry", extra={"extra": {"path": str(self._path), "acquirers": len(reg.acquirers)}})

    def replace(self, acquirers: List[AcquirerConfig]) -> None:
        by_name: Dict[str, AcquirerConfig] = {}
        aliases: Dict[str, str] = {}
        for a in acquirers:
            for ident in [a.name, *a.aliases]:
                owner = aliases.get(ident)
                if owner is not None and owner != a.name:
                    raise ValueError(f"Identifier {ident!r} is claimed by both {owner!r} and {a.name!r}")
                aliases[ident] = a.name
            if a.name in by_name:
                raise ValueError(f"Duplicate acquirer {a.name!r}")
            by_name[a.name] = a
        self._acquirers = by_name
        self._aliases = aliases

    def list(self) -> List[AcquirerConfig]:
        return list(self._acquirers.values())

    def names(self) -> List[str]:
        return list(self._acquirers.keys())

    def canonical(self, identifier: str) -> str:
        # Unknown identifiers pass through unchanged
        return self._aliases.get(identifier, identifier)

    def get(self, identifier: str) -> Optional[AcquirerConfig]:
        return self._acquirers.get(self.canonical(identifier))

    def set_enabled(self, identifier: str, enabled: bool) -> bool:
        a = self.get(identifier)
        if not a:
            return False
        a.enabled = enabled  # mutate in-memory
        return True

    def max_take_rate(self) -> float:
        return max((a.takeRate for a in self._acquirers.values()), default=0.0)

    def short_name(self, identifier: str) -> str:
        a = self.get(identifier)
        if a and a.aliases:
            return a.aliases[0]
        return identifier
