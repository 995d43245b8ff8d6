# statewire/core/codec/serde.py
from __future__ import annotations
from typing import (
    Any,
    Dict,
    List,
    Optional,
    TypeVar,
    Union,
    Mapping,
    Sequence,
    cast,
    overload,
)
import dataclasses
import functools
import datetime as dt
import decimal
import enum
import json
import uuid
from pydantic import (
    BaseModel,
    PydanticSchemaGenerationError,
    TypeAdapter,
    ValidationError,
)
from statewire.core.errors import DecodeError, EncodeError
from statewire.core.logging import get_logger

logger = get_logger('codec')

T = TypeVar('T')

Json = Union[None, bool, int, float, str, List['Json'], Dict[str, 'Json']]
"""
Union type for JSON-serializable values.
"""


class TypeDescriptor:
    """
    Explicit type witness used to validate and decode payloads.

    Wraps any annotation pydantic can build a schema for (`BaseModel`
    subclasses, dataclasses, enums, primitives, `list[int]`, `Optional[...]`,
    ...). Plain classes without a schema are rejected at construction with
    `PydanticSchemaGenerationError`, since their values could be neither
    encoded nor decoded. Two descriptors are equal when their annotations
    are equal.

    Descriptors are immutable: the adapter is built once in `__init__`.
    """

    __slots__ = ('annotation', '_adapter')

    def __init__(self, annotation: Any) -> None:
        self.annotation = annotation
        self._adapter: TypeAdapter[Any] = TypeAdapter(annotation)

    @classmethod
    def of(cls, annotation: Any) -> TypeDescriptor:
        """Return the (cached) descriptor for `annotation`.

        Raises:
            PydanticSchemaGenerationError: `annotation` has no pydantic schema.
        """
        if isinstance(annotation, TypeDescriptor):
            return annotation
        if annotation is Any:
            return ANY
        try:
            return _cached_descriptor(annotation)
        except TypeError:
            # Unhashable annotation, e.g. Annotated[...] with a dict marker
            return cls(annotation)

    @property
    def adapter(self) -> TypeAdapter[Any]:
        return self._adapter

    @property
    def name(self) -> str:
        if self.annotation is Any:
            return 'Any'
        if isinstance(self.annotation, type):
            return self.annotation.__qualname__
        return repr(self.annotation)

    def accepts(self, value: Any) -> bool:
        """
        Check whether `value` is assignable to this type.

        Uses pydantic strict validation, so no coercion happens:
        `'1'` is not accepted for `int` and a dict is not accepted for a dataclass.
        Subclass instances are accepted (model and dataclass subclasses,
        str-enum members for `str`), with one exception: `bool` is not
        accepted where `int` is declared, even though it subclasses `int`. Declare `bool` (or `Union[int, bool]`) for flags.
        """
        if self.annotation is Any:
            return True
        try:
            self._adapter.validate_python(value, strict=True)
        except ValidationError:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeDescriptor):
            return NotImplemented
        return self.annotation == other.annotation

    def __hash__(self) -> int:
        try:
            return hash(self.annotation)
        except TypeError:
            return id(self.annotation)

    def __repr__(self) -> str:
        return f'TypeDescriptor({self.name})'


ANY = TypeDescriptor(Any)


# Thread-safe and idempotent: concurrent callers at worst build an equal
# descriptor twice, and the cached values are immutable.
@functools.lru_cache(maxsize=None)
def _cached_descriptor(annotation: Any) -> TypeDescriptor:
    return TypeDescriptor(annotation)


def clear_serde_caches() -> None:
    """Clear the module-level descriptor cache."""
    _cached_descriptor.cache_clear()


def to_jsonable(value: Any) -> Json:
    """
    Convert value to plain JSON data.

    No type metadata is embedded: the reader supplies the target type
    when decoding.

    Raises:
        EncodeError: If the value (or a nested value) is not supported.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        # Enum members that subclass str/int are caught here and keep their value
        return value.value if isinstance(value, enum.Enum) else value

    if isinstance(value, enum.Enum):
        return to_jsonable(value.value)

    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()

    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)

    if isinstance(value, BaseModel):
        return cast(Json, value.model_dump(mode='json'))

    # Field-by-field so nested models and dataclasses go through to_jsonable too
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }

    if isinstance(value, Mapping):
        mapping = cast(Mapping[object, object], value)
        return {str(key): to_jsonable(item) for key, item in mapping.items()}

    if isinstance(value, (set, frozenset)):
        return [to_jsonable(item) for item in cast(set[object], value)]

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        seq = cast(Sequence[object], value)
        return [to_jsonable(item) for item in seq]

    raise EncodeError(type(value).__name__)


def dumps_json(value: Any) -> str:
    """
    Serialize a value to a compact JSON string.

    Raises:
        EncodeError: If the value is not supported or contains NaN/Infinity.
    """
    try:
        return json.dumps(
            to_jsonable(value),
            ensure_ascii=False,
            separators=(',', ':'),
            allow_nan=False,
        )
    except ValueError:
        raise EncodeError(f'{type(value).__name__} (contains NaN or Infinity)')


def loads_json(s: Optional[str]) -> Json:
    """Deserialize a JSON string; empty or absent input yields None."""
    return json.loads(s) if s else None


class PayloadCodec:
    """
    Symmetric encoder/decoder between application values and payload strings.

    Decoding is driven by an explicit target type, so the caller can pick
    the type at runtime (for instance from a registry lookup).
    """

    def encode(self, value: Any) -> Optional[str]:
        """
        Encode a value. `None` encodes to `None` (absent payload).

        Raises:
            EncodeError: If the value is not supported.
        """
        if value is None:
            return None
        return dumps_json(value)

    @overload
    def decode(self, raw: Optional[str], target: type[T]) -> Optional[T]: ...

    @overload
    def decode(self, raw: Optional[str], target: Any) -> Any: ...

    def decode(self, raw: Optional[str], target: Any) -> Any:
        """
        Decode `raw` into `target`, which is a type, an annotation
        or a `TypeDescriptor`. Empty or absent payloads decode to None.

        Raises:
            DecodeError: If `raw` is not valid JSON for `target`.
        """
        if not raw:
            return None
        try:
            descriptor = TypeDescriptor.of(target)
        except PydanticSchemaGenerationError as e:
            raise DecodeError(getattr(target, '__qualname__', repr(target)), str(e))
        try:
            return descriptor.adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f'Failed to decode payload into {descriptor.name}: {e}')
            raise DecodeError(descriptor.name, str(e))
