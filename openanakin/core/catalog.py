"""Read-only model name -> Anakin app id lookup."""

import logging
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .exceptions import ModelNotFoundError

logger = logging.getLogger("openanakin")


class ModelCatalog:
    """Maps client-facing model names to Anakin chatbot app ids.

    Built once at startup and passed explicitly to the components that need
    it. Entries whose app id is not an integer are skipped with a warning.
    """

    def __init__(self, models: Mapping[str, Any] | None = None) -> None:
        entries: dict[str, int] = {}
        for name, app_id in (models or {}).items():
            # bool is an int subclass but never a valid app id
            if isinstance(app_id, bool) or not isinstance(app_id, int):
                logger.warning("Skipping model %r: app id %r is not an integer", name, app_id)
                continue
            entries[str(name)] = app_id
        self._entries = MappingProxyType(entries)

    def app_id(self, model: str) -> int:
        try:
            return self._entries[model]
        except KeyError:
            raise ModelNotFoundError(model) from None

    def __contains__(self, model: object) -> bool:
        return model in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        return list(self._entries)
