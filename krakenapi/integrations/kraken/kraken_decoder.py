"""
Decoding of Kraken JSON responses into typed records.

Every response is an envelope `{"error": [...], "result": ...}`. The result is
decoded against a *shape* declared as data:

- Scalar(kind): a single JSON value; numbers often arrive as strings.
- Positional(cls): a fixed-length array mapped position by position.
- Record(cls): a JSON object mapped field by field.
- SequenceOf / MappingOf: homogeneous containers.
- CursorMap: pair name -> rows, plus a reserved 'last' continuation cursor.

Decoding is all-or-nothing: the first failure aborts the whole decode.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from krakenapi.integrations.kraken.kraken_constants import CURSOR_KEY, JSON
from krakenapi.integrations.kraken.kraken_errors import (
    ApiError,
    ArityMismatch,
    MalformedEnvelope,
    NumericFormatError,
    UnexpectedType,
)
from krakenapi.logging.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")

_DECIMAL_LITERAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _json_kind(value: JSON) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _unexpected(expected: str, value: JSON, path: str) -> UnexpectedType:
    return UnexpectedType(f"expected {expected}, got {_json_kind(value)}", path)


class ScalarKind(Enum):
    STRING_FLOAT = "string-float"
    FLOAT = "float"
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"


_SCALAR_EMPTY: Dict[ScalarKind, Any] = {
    ScalarKind.STRING_FLOAT: 0.0,
    ScalarKind.FLOAT: 0.0,
    ScalarKind.STRING: "",
    ScalarKind.INTEGER: 0,
    ScalarKind.BOOLEAN: False,
}


def decode_scalar(value: JSON, kind: ScalarKind, path: str) -> Any:
    """Decode one JSON scalar according to its declared kind."""
    if kind is ScalarKind.STRING_FLOAT:
        if not isinstance(value, str):
            raise _unexpected("decimal string", value, path)
        if not _DECIMAL_LITERAL.fullmatch(value):
            raise NumericFormatError(f"not a decimal number: {value!r}", path)
        number = float(value)
        if not math.isfinite(number):
            raise NumericFormatError(f"decimal number out of float range: {value!r}", path)
        return number

    if kind is ScalarKind.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _unexpected("number", value, path)
        try:
            number = float(value)
        except OverflowError as error:
            raise NumericFormatError(f"number out of float range: {value!r}", path) from error
        if not math.isfinite(number):
            raise NumericFormatError(f"number out of float range: {value!r}", path)
        return number

    if kind is ScalarKind.INTEGER:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _unexpected("integer", value, path)
        return value

    if kind is ScalarKind.BOOLEAN:
        if not isinstance(value, bool):
            raise _unexpected("boolean", value, path)
        return value

    if not isinstance(value, str):
        raise _unexpected("string", value, path)
    return value


class Shape(Generic[T]):
    """Declared JSON shape of a result or of one of its parts."""

    def decode(self, value: JSON, path: str) -> T:
        raise NotImplementedError

    def empty(self) -> T:
        raise NotImplementedError


class Scalar(Shape[Any]):
    def __init__(self, kind: ScalarKind) -> None:
        self.kind = kind

    def decode(self, value: JSON, path: str) -> Any:
        return decode_scalar(value, self.kind, path)

    def empty(self) -> Any:
        return _SCALAR_EMPTY[self.kind]


class SequenceOf(Shape[List[T]]):
    def __init__(self, item: Union[Shape[T], ScalarKind]) -> None:
        self.item: Shape[T] = as_shape(item)

    def decode(self, value: JSON, path: str) -> List[T]:
        if not isinstance(value, list):
            raise _unexpected("array", value, path)
        return [self.item.decode(entry, f"{path}[{index}]") for index, entry in enumerate(value)]

    def empty(self) -> List[T]:
        return []


class MappingOf(Shape[Dict[str, T]]):
    def __init__(self, item: Union[Shape[T], ScalarKind]) -> None:
        self.item: Shape[T] = as_shape(item)

    def decode(self, value: JSON, path: str) -> Dict[str, T]:
        if not isinstance(value, dict):
            raise _unexpected("object", value, path)
        return {key: self.item.decode(entry, f"{path}.{key}") for key, entry in value.items()}

    def empty(self) -> Dict[str, T]:
        return {}


class Positional(Shape[T]):
    """
    Tuple mode: a JSON array whose positions carry fixed meanings.

    The target class declares `POSITIONS`, an ordered tuple of
    (attribute name, ScalarKind). The array must have exactly that many entries.
    """

    def __init__(self, target: Type[T]) -> None:
        self.target = target
        self.positions: Tuple[Tuple[str, ScalarKind], ...] = tuple(getattr(target, "POSITIONS"))

    @property
    def arity(self) -> int:
        return len(self.positions)

    def decode(self, value: JSON, path: str) -> T:
        if not isinstance(value, list):
            raise _unexpected("array", value, path)
        if len(value) != self.arity:
            raise ArityMismatch(
                f"{self.target.__name__} expects exactly {self.arity} entries, got {len(value)}",
                path,
            )
        values = {
            attribute: decode_scalar(entry, kind, f"{path}[{index}]")
            for index, ((attribute, kind), entry) in enumerate(zip(self.positions, value))
        }
        return self.target(**values)

    def empty(self) -> T:
        return self.target(**{attribute: _SCALAR_EMPTY[kind] for attribute, kind in self.positions})


@dataclass(frozen=True)
class Field:
    """One named field of a structured record."""
    key: str
    shape: Shape[Any]
    attribute: str


def field(key: str, shape: Union[Shape[Any], ScalarKind], attribute: Optional[str] = None) -> Field:
    return Field(key=key, shape=as_shape(shape), attribute=attribute or key)


class Record(Shape[T]):
    """
    Structured mode: a JSON object mapped field by field.

    The target class declares `FIELDS`, a tuple of `Field`. Missing or null keys
    take the field's empty value; present keys must decode.
    """

    def __init__(self, target: Type[T]) -> None:
        self.target = target

    @property
    def fields(self) -> Sequence[Field]:
        return getattr(self.target, "FIELDS")

    def decode(self, value: JSON, path: str) -> T:
        if not isinstance(value, dict):
            raise _unexpected("object", value, path)
        values: Dict[str, Any] = {}
        for spec in self.fields:
            raw = value.get(spec.key)
            if raw is None:
                values[spec.attribute] = spec.shape.empty()
            else:
                values[spec.attribute] = spec.shape.decode(raw, f"{path}.{spec.key}")
        return self.target(**values)

    def empty(self) -> T:
        return self.target(**{spec.attribute: spec.shape.empty() for spec in self.fields})


@dataclass(frozen=True)
class CursorPage(Generic[T]):
    """
    Rows keyed by asset pair, plus the 'last' cursor to poll from.

    `last` is the cursor as a float. `cursor` keeps the exact text the exchange
    sent: pass it back as `since` when polling, since nanosecond trade ids do
    not survive a round trip through float.
    """
    rows: Dict[str, List[T]]
    last: float
    cursor: str = ""

    def all_rows(self) -> List[T]:
        out: List[T] = []
        for pair_rows in self.rows.values():
            out.extend(pair_rows)
        return out


def _cursor_text(entry: JSON) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, float) and entry.is_integer():
        return str(int(entry))
    return str(entry)


class CursorMap(Shape[CursorPage[T]]):
    """
    Polymorphic map mode: `{"<pair>": [[...], ...], "last": <cursor>}`.

    The payload is first split into the cursor entry and the row entries, and
    each part is then decoded with its own declared shape.
    """

    def __init__(
            self,
            row: Shape[T],
            cursor_kind: ScalarKind = ScalarKind.FLOAT,
            cursor_key: str = CURSOR_KEY,
    ) -> None:
        self.rows = SequenceOf(row)
        self.cursor_kind = cursor_kind
        self.cursor_key = cursor_key

    def decode(self, value: JSON, path: str) -> CursorPage[T]:
        if not isinstance(value, dict):
            raise _unexpected("object", value, path)

        cursor_entry: Optional[JSON] = None
        row_entries: Dict[str, JSON] = {}
        for key, entry in value.items():
            if key == self.cursor_key:
                cursor_entry = entry
            else:
                row_entries[key] = entry

        last = _SCALAR_EMPTY[self.cursor_kind]
        cursor = ""
        if cursor_entry is not None:
            last = decode_scalar(cursor_entry, self.cursor_kind, f"{path}.{self.cursor_key}")
            cursor = _cursor_text(cursor_entry)

        rows = {key: self.rows.decode(entry, f"{path}.{key}") for key, entry in row_entries.items()}
        return CursorPage(rows=rows, last=float(last), cursor=cursor)

    def empty(self) -> CursorPage[T]:
        return CursorPage(rows={}, last=0.0)


def as_shape(shape: Union[Shape[T], ScalarKind]) -> Shape[T]:
    if isinstance(shape, ScalarKind):
        return Scalar(shape)
    return shape


class JsonRecord:
    """Mixin giving structured records a `from_json` constructor."""

    FIELDS: ClassVar[Tuple[Field, ...]] = ()

    @classmethod
    def from_json(cls: Type[T], payload: JSON, path: str = "result") -> T:
        return Record(cls).decode(payload, path)


class JsonTuple:
    """Mixin giving positional records a `from_json` constructor."""

    POSITIONS: ClassVar[Tuple[Tuple[str, ScalarKind], ...]] = ()

    @classmethod
    def from_json(cls: Type[T], payload: JSON, path: str = "result") -> T:
        return Positional(cls).decode(payload, path)


@dataclass(frozen=True)
class ResponseEnvelope:
    error: Tuple[str, ...]
    result: JSON


def _reject_constant(token: str) -> JSON:
    raise ValueError(f"non-standard JSON constant {token}")


def parse_envelope(raw: Union[bytes, bytearray, str]) -> ResponseEnvelope:
    """
    Parse a response body into its envelope.

    Raises:
        MalformedEnvelope: if the body is not a JSON object holding an 'error'
        array of strings.
    """
    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError) as error:
        raise MalformedEnvelope(f"response body is not valid JSON: {error}") from error

    if not isinstance(document, dict):
        raise MalformedEnvelope(f"expected a JSON object, got {_json_kind(document)}")

    errors = document.get("error")
    if not isinstance(errors, list):
        raise MalformedEnvelope(f"'error' must be an array, got {_json_kind(errors)}", "error")
    for index, message in enumerate(errors):
        if not isinstance(message, str):
            raise MalformedEnvelope(f"error messages must be strings, got {_json_kind(message)}", f"error[{index}]")

    return ResponseEnvelope(error=tuple(errors), result=document.get("result"))


def decode(raw: Union[bytes, bytearray, str], shape: Union[Shape[T], ScalarKind]) -> T:
    """
    Decode a raw response body into the expected shape.

    Raises:
        MalformedEnvelope: if the envelope itself is invalid.
        ApiError: if the exchange reported errors; the result is then ignored.
        DecodeError: subclasses for any failure while decoding the result.
    """
    envelope = parse_envelope(raw)
    if envelope.error:
        log.debug("[KRAKEN][DECODE] Envelope carries %d error(s).", len(envelope.error))
        raise ApiError(envelope.error)

    expected = as_shape(shape)
    if envelope.result is None:
        return expected.empty()
    return expected.decode(envelope.result, "result")
