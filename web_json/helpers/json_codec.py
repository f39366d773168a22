"""JSON conversion shared by the request parser and the response formatter.

Output follows the wire rules existing consumers expect:

- compact separators, no trailing newline
- record (dataclass / named tuple) fields in declaration order
- mapping keys sorted, at every nesting level
- ``<``, ``>``, ``&``, U+2028 and U+2029 escaped inside strings
- ``bytes`` values emitted as standard base64 strings

Dataclass fields can be renamed or excluded through field metadata::

    @dataclass
    class Item:
        name: str = field(metadata={"json": "item_name"})
        secret: str = field(default="", metadata={"json": "-"})
        note: str = field(default="", metadata={"omitempty": True})
"""

import base64
import dataclasses
import json
import math
import types
import typing
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any, Dict, Optional

_HTML_ESCAPES = {ch: "\\u%04x" % ord(ch) for ch in ("<", ">", "&", chr(0x2028), chr(0x2029))}
_ESCAPE_TABLE = str.maketrans(_HTML_ESCAPES)

_UNION_TYPES = (typing.Union, getattr(types, "UnionType", typing.Union))


class DecodeMismatch(ValueError):
    """A JSON value does not fit the Python type it is decoded into."""


def is_struct(value) -> bool:
    """True for dataclass instances and named tuples, never for their classes."""
    if isinstance(value, type):
        return False
    if dataclasses.is_dataclass(value):
        return True
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def is_mutable_target(value) -> bool:
    """True when a decoded payload can be stored into ``value`` in place."""
    if isinstance(value, type):
        return False
    if dataclasses.is_dataclass(value):
        return not type(value).__dataclass_params__.frozen
    return isinstance(value, (MutableMapping, MutableSequence))


def json_name(f: dataclasses.Field) -> Optional[str]:
    """Wire name of a dataclass field, or None when the field is excluded."""
    name = f.metadata.get("json", f.name)
    if name == "-":
        return None
    return name


def _is_empty(value) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, Mapping, list, tuple)):
        return len(value) == 0
    return False


def _map_key(key) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    raise TypeError(f"json: unsupported map key type {type(key).__name__}")


def to_jsonable(value: Any) -> Any:
    """Normalize ``value`` into dicts, lists and scalars ready for ``json.dumps``.

    The returned dicts are built in output order, so ``json.dumps`` must be
    called without ``sort_keys``.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        for f in dataclasses.fields(value):
            name = json_name(f)
            if name is None:
                continue
            item = getattr(value, f.name)
            if f.metadata.get("omitempty") and _is_empty(item):
                continue
            out[name] = to_jsonable(item)
        return out
    if isinstance(value, tuple) and hasattr(type(value), "_fields"):
        return {name: to_jsonable(item) for name, item in zip(value._fields, value)}
    if isinstance(value, Mapping):
        items = [(_map_key(k), v) for k, v in value.items()]
        items.sort(key=lambda kv: kv[0])
        return {k: to_jsonable(v) for k, v in items}
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> bytes:
    """Serialize ``value`` to compact JSON bytes."""
    text = json.dumps(
        to_jsonable(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.translate(_ESCAPE_TABLE).encode("utf-8")


def _reject_constant(name):
    raise DecodeMismatch(f"invalid literal {name}")


def _parse_float(text):
    value = float(text)
    if not math.isfinite(value):
        raise DecodeMismatch(f"number {text} is out of range")
    return value


def loads(body: bytes) -> Any:
    """Parse a JSON document. Invalid UTF-8 sequences decode to U+FFFD."""
    text = body.decode("utf-8", errors="replace")
    return json.loads(text, parse_float=_parse_float, parse_constant=_reject_constant)


def _type_name(hint) -> str:
    return getattr(hint, "__name__", None) or str(hint)


def _mismatch(value, hint) -> DecodeMismatch:
    return DecodeMismatch(
        f"cannot unmarshal {type(value).__name__} into value of type {_type_name(hint)}"
    )


def convert(value: Any, hint: Any, current: Any = None) -> Any:
    """Convert a parsed JSON value to ``hint``, raising DecodeMismatch on failure.

    ``current`` is the value already held by the destination; nested records
    are rebuilt from it so untouched fields keep their values.
    """
    if hint is Any or hint is None or isinstance(hint, typing.TypeVar):
        return value

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin in _UNION_TYPES:
        if value is None:
            return None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return convert(value, arg, current)
            except DecodeMismatch:
                continue
        raise _mismatch(value, hint)

    if value is None:
        return None

    if hint is bool:
        if isinstance(value, bool):
            return value
        raise _mismatch(value, hint)
    if hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise _mismatch(value, hint)
    if hint is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise _mismatch(value, hint)
    if hint is str:
        if isinstance(value, str):
            return value
        raise _mismatch(value, hint)
    if hint is bytes:
        if not isinstance(value, str):
            raise _mismatch(value, hint)
        try:
            return base64.b64decode(value, validate=True)
        except ValueError:
            raise _mismatch(value, hint) from None

    if origin in (list, MutableSequence, Sequence) or hint is list:
        if not isinstance(value, list):
            raise _mismatch(value, hint)
        item_hint = args[0] if args else Any
        return [convert(item, item_hint) for item in value]

    if origin is tuple or hint is tuple:
        if not isinstance(value, list):
            raise _mismatch(value, hint)
        if args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(value):
                raise _mismatch(value, hint)
            return tuple(convert(item, arg) for item, arg in zip(value, args))
        item_hint = args[0] if args else Any
        return tuple(convert(item, item_hint) for item in value)

    if origin in (dict, Mapping, MutableMapping) or hint is dict:
        if not isinstance(value, dict):
            raise _mismatch(value, hint)
        key_hint, value_hint = args if args else (str, Any)
        out = {}
        for key, item in value.items():
            if key_hint is int:
                try:
                    key = int(key)
                except ValueError:
                    raise _mismatch(key, key_hint) from None
            out[key] = convert(item, value_hint)
        return out

    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        if not isinstance(value, dict):
            raise _mismatch(value, hint)
        if isinstance(current, hint):
            return _update_dataclass(current, value)
        return _build_dataclass(hint, value)

    if isinstance(hint, type):
        if isinstance(value, hint):
            return value
        raise _mismatch(value, hint)

    return value


def _type_hints(cls) -> Dict[str, Any]:
    """Resolved field annotations. Unresolvable forward references decode as Any."""
    try:
        return typing.get_type_hints(cls)
    except NameError:
        return {}


def _field_lookup(cls) -> Dict[str, dataclasses.Field]:
    lookup = {}
    for f in dataclasses.fields(cls):
        name = json_name(f)
        if name is not None:
            lookup[name] = f
    return lookup


def _match_field(lookup: Dict[str, dataclasses.Field], key: str) -> Optional[dataclasses.Field]:
    if key in lookup:
        return lookup[key]
    folded = key.casefold()
    for name, f in lookup.items():
        if name.casefold() == folded:
            return f
    return None


def _decode_fields(cls, payload: dict, target=None) -> Dict[str, Any]:
    """Convert every recognised key of ``payload`` without touching ``target``."""
    hints = _type_hints(cls)
    lookup = _field_lookup(cls)
    pending = {}
    for key, item in payload.items():
        f = _match_field(lookup, key)
        if f is None or item is None:
            continue
        current = getattr(target, f.name, None) if target is not None else None
        pending[f.name] = convert(item, hints.get(f.name, Any), current)
    return pending


def _zero_value(hint: Any) -> Any:
    """Value a missing field takes when its dataclass declares no default."""
    origin = typing.get_origin(hint)
    if origin in _UNION_TYPES:
        return None
    if hint in (int, float, bool, str, bytes):
        return hint()
    if origin in (list, MutableSequence, Sequence) or hint is list:
        return []
    if origin is tuple or hint is tuple:
        return ()
    if origin in (dict, Mapping, MutableMapping) or hint is dict:
        return {}
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        return _build_dataclass(hint, {})
    return None


def _set_non_init_fields(instance, values: Dict[str, Any]) -> None:
    # object.__setattr__ also works on frozen dataclasses
    for name, item in values.items():
        object.__setattr__(instance, name, item)


def _build_dataclass(cls, payload: dict):
    """Create a new record from ``payload``.

    Missing fields take their declared default, or the zero value of their
    type when there is none.
    """
    hints = _type_hints(cls)
    pending = _decode_fields(cls, payload)
    kwargs = {}
    extra = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            if f.name in pending:
                extra[f.name] = pending[f.name]
            continue
        if f.name in pending:
            kwargs[f.name] = pending[f.name]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = _zero_value(hints.get(f.name, Any))
    try:
        instance = cls(**kwargs)
    except TypeError as e:
        raise DecodeMismatch(str(e)) from None
    _set_non_init_fields(instance, extra)
    return instance


def _update_dataclass(current, payload: dict):
    """Return a new record holding ``current`` with ``payload`` applied on top."""
    cls = type(current)
    pending = _decode_fields(cls, payload, current)
    changes = {}
    extra = {}
    for f in dataclasses.fields(cls):
        if f.init:
            if f.name in pending:
                changes[f.name] = pending[f.name]
        elif f.name in pending:
            extra[f.name] = pending[f.name]
        elif hasattr(current, f.name):
            extra[f.name] = getattr(current, f.name)
    try:
        instance = dataclasses.replace(current, **changes)
    except TypeError as e:
        raise DecodeMismatch(str(e)) from None
    _set_non_init_fields(instance, extra)
    return instance


def populate(destination: Any, payload: Any) -> None:
    """Store ``payload`` into ``destination`` in place.

    All conversion happens before the first assignment, so a mismatch leaves
    ``destination`` exactly as it was. A top-level ``null`` is a no-op.
    """
    if payload is None:
        return

    if dataclasses.is_dataclass(destination):
        if not isinstance(payload, dict):
            raise _mismatch(payload, type(destination))
        pending = _decode_fields(type(destination), payload, destination)
        for name, item in pending.items():
            setattr(destination, name, item)
        return

    if isinstance(destination, MutableMapping):
        if not isinstance(payload, dict):
            raise _mismatch(payload, dict)
        destination.update(payload)
        return

    if isinstance(destination, MutableSequence):
        if not isinstance(payload, list):
            raise _mismatch(payload, list)
        destination[:] = payload
        return

    raise TypeError(f"cannot populate {type(destination).__name__}")
