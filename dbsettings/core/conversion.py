"""
Text <-> typed value conversion for stored settings.

Values are stored as locale independent text: numbers as Python writes them,
booleans as "true"/"false", dates and times as ISO 8601 and enums by member
name. Converters are looked up per target type and new ones can be added
with register_converter().
"""
import enum
import logging
import types
import uuid
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, NamedTuple, Optional, Union, get_args, get_origin

from dbsettings.core.exceptions import ConversionUnavailableError, SettingConversionError

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "1", "t", "yes")
FALSE_VALUES = ("false", "0", "f", "no")


class Converter(NamedTuple):
    parse: Callable[[str], Any]
    format: Callable[[Any], str]


def _parse_bool(raw: str) -> bool:
    text = raw.strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _format_bool(value: bool) -> str:
    return str(value).lower()  # "true"/"false"


_CONVERTERS: Dict[type, Converter] = {
    str: Converter(parse=lambda raw: raw, format=str),
    bool: Converter(parse=_parse_bool, format=_format_bool),
    int: Converter(parse=lambda raw: int(raw.strip()), format=str),
    # repr() keeps every digit so the value survives a round trip
    float: Converter(parse=lambda raw: float(raw.strip()), format=repr),
    Decimal: Converter(parse=lambda raw: Decimal(raw.strip()), format=str),
    uuid.UUID: Converter(parse=lambda raw: uuid.UUID(raw.strip()), format=str),
    datetime: Converter(parse=lambda raw: datetime.fromisoformat(raw.strip()), format=lambda v: v.isoformat()),
    date: Converter(parse=lambda raw: date.fromisoformat(raw.strip()), format=lambda v: v.isoformat()),
    time: Converter(parse=lambda raw: time.fromisoformat(raw.strip()), format=lambda v: v.isoformat()),
}


def register_converter(target: type, parse: Callable[[str], Any], format: Callable[[Any], str] = str) -> None:
    """Register (or replace) the converter used for ``target``."""
    _CONVERTERS[target] = Converter(parse=parse, format=format)


def _enum_converter(target: type) -> Converter:
    def parse(raw: str):
        text = raw.strip()
        if text in target.__members__:
            return target[text]
        # Fall back to the member value, e.g. "3" for an IntEnum
        for member in target:
            if str(member.value) == text:
                return member
        raise ValueError(f"{text!r} is not a member of {target.__name__}")

    return Converter(parse=parse, format=lambda member: member.name)


def _optional_inner(target: Any) -> Optional[Any]:
    """Return X for Optional[X] / X | None, otherwise None."""
    if get_origin(target) not in (Union, types.UnionType):
        return None
    args = [arg for arg in get_args(target) if arg is not type(None)]
    if len(args) != 1 or len(args) == len(get_args(target)):
        return None
    return args[0]


def find_converter(target: Any) -> Optional[Converter]:
    if target in _CONVERTERS:
        return _CONVERTERS[target]
    if isinstance(target, type) and issubclass(target, enum.Enum):
        return _enum_converter(target)
    return None


def default_value(target: Any) -> Any:
    """The zero value for ``target``: ``target()`` when that works, else None."""
    try:
        return target()
    except (TypeError, ValueError):
        return None


def convert(raw_value: Optional[str], target: Any, allow_default: bool = False) -> Any:
    """
    Parse a stored text value as ``target``.

    Raises ConversionUnavailableError when no converter exists for the type,
    unless ``allow_default`` is set, in which case the type's default value
    is returned and a warning is logged.
    """
    inner = _optional_inner(target)
    if inner is not None:
        if raw_value is None or raw_value == "":
            return None
        return convert(raw_value, inner, allow_default=allow_default)

    converter = find_converter(target)
    if converter is None:
        if allow_default:
            logger.warning(f"No converter for {target!r}; returning its default value")
            return default_value(target)
        raise ConversionUnavailableError(target)

    if raw_value is None:
        raise SettingConversionError(raw_value, target)

    try:
        return converter.parse(raw_value)
    except (ValueError, TypeError, InvalidOperation) as e:
        raise SettingConversionError(raw_value, target, original_error=e)


def to_invariant_string(value: Any) -> str:
    """
    Format a value the way convert() expects to read it back.

    None is written as the empty string, and convert() reads the empty
    string back as None for Optional[X]. So an Optional[str] holding ""
    comes back as None.
    """
    if value is None:
        return ""

    if isinstance(value, enum.Enum):
        # Only converters registered for the enum classes themselves apply;
        # mixins such as int in IntEnum still go by member name.
        for klass in type(value).__mro__:
            if issubclass(klass, enum.Enum) and klass in _CONVERTERS:
                return _CONVERTERS[klass].format(value)
        return value.name

    for klass in type(value).__mro__:
        converter = _CONVERTERS.get(klass)
        if converter is not None:
            return converter.format(value)
    return str(value)
