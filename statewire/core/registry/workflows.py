# statewire/core/registry/workflows.py
from __future__ import annotations
from collections import Counter
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional
from statewire.core.codec.serde import TypeDescriptor
from statewire.core.errors import DuplicateWorkflowTypeError
from statewire.core.logging import get_logger
from statewire.core.models.workflow import StateDef, WorkflowTypeModel

logger = get_logger('registry')


class _Entry:
    """Lookup tables for one workflow type, built once."""

    __slots__ = ('model', 'states', 'signal_types', 'query_attribute_types')

    def __init__(self, model: WorkflowTypeModel) -> None:
        self.model = model
        self.states: Mapping[str, StateDef] = MappingProxyType(
            {s.id: s for s in model.states}
        )
        self.signal_types: Mapping[str, TypeDescriptor] = MappingProxyType(
            {c.name: c.value_type for c in model.signal_channels}
        )
        self.query_attribute_types: Mapping[str, TypeDescriptor] = MappingProxyType(
            {q.key: q.value_type for q in model.query_attributes}
        )


class Registry:
    """Read-only mapping of workflow type name -> declared model.

    Built once with `Registry.build()` and shared by reference with every
    Client. Lookups never raise: an unknown workflow type, state, channel
    or key is reported as None.
    """

    __slots__ = ('_entries',)

    def __init__(self, entries: Mapping[str, _Entry]) -> None:
        self._entries: Mapping[str, _Entry] = MappingProxyType(dict(entries))

    @classmethod
    def build(cls, models: Iterable[WorkflowTypeModel]) -> Registry:
        """Build a registry from workflow type models.

        Raises:
            DuplicateWorkflowTypeError: naming every type declared more than once.
        """
        models = list(models)
        duplicates = [n for n, c in Counter(m.name for m in models).items() if c > 1]
        if duplicates:
            raise DuplicateWorkflowTypeError(duplicates)

        entries: dict[str, _Entry] = {}
        for model in models:
            entries[model.name] = _Entry(model)
            logger.debug(
                f"Registered workflow type '{model.name}': "
                f'{len(model.states)} states, '
                f'{len(model.signal_channels)} signal channels, '
                f'{len(model.query_attributes)} query attributes'
            )
        return cls(entries)

    # --- lookups ---
    def get(self, workflow_type: str) -> Optional[WorkflowTypeModel]:
        entry = self._entries.get(workflow_type)
        return entry.model if entry is not None else None

    def state_descriptor(self, workflow_type: str, state_id: str) -> Optional[StateDef]:
        entry = self._entries.get(workflow_type)
        return entry.states.get(state_id) if entry is not None else None

    def signal_type(
        self, workflow_type: str, channel_name: str
    ) -> Optional[TypeDescriptor]:
        entry = self._entries.get(workflow_type)
        return entry.signal_types.get(channel_name) if entry is not None else None

    def query_attribute_type(
        self, workflow_type: str, key: str
    ) -> Optional[TypeDescriptor]:
        entry = self._entries.get(workflow_type)
        return entry.query_attribute_types.get(key) if entry is not None else None

    def signal_channel_types(
        self, workflow_type: str
    ) -> Optional[Mapping[str, TypeDescriptor]]:
        """Channel name -> type for `workflow_type`, or None if not registered."""
        entry = self._entries.get(workflow_type)
        return entry.signal_types if entry is not None else None

    def query_attribute_types(
        self, workflow_type: str
    ) -> Optional[Mapping[str, TypeDescriptor]]:
        """Attribute key -> type for `workflow_type`, or None if not registered."""
        entry = self._entries.get(workflow_type)
        return entry.query_attribute_types if entry is not None else None

    # --- convenience ---
    def workflow_types(self) -> list[str]:
        return list(self._entries.keys())

    def __contains__(self, workflow_type: object) -> bool:
        return workflow_type in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f'Registry({self.workflow_types()!r})'
