"""
Settings models: pydantic models whose persisted fields are marked with
``SettingElement``.

    class MailSettings(SettingsModel):
        smtp_host: Annotated[str, SettingElement()] = "localhost"
        max_retries: Annotated[int, SettingElement()] = 5
        debug_label: str = ""          # not persisted

The stored key of a marked field is the field name. The marked fields are
collected once, when the class is defined.
"""
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, ClassVar, Iterator, Tuple

from pydantic import BaseModel


@dataclass(frozen=True)
class SettingElement:
    """Marks a SettingsModel field as a persisted setting."""


@dataclass(frozen=True)
class SettingField:
    key: str
    annotation: Any
    accessor: Callable[[Any], Any]


class SettingsModel(BaseModel):
    __setting_fields__: ClassVar[Tuple[SettingField, ...]] = ()

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        cls.__setting_fields__ = tuple(
            SettingField(key=name, annotation=info.annotation, accessor=attrgetter(name))
            for name, info in cls.model_fields.items()
            if any(isinstance(meta, SettingElement) for meta in info.metadata)
        )

    @classmethod
    def setting_fields(cls) -> Tuple[SettingField, ...]:
        return cls.__setting_fields__

    @classmethod
    def setting_keys(cls) -> Tuple[str, ...]:
        return tuple(f.key for f in cls.__setting_fields__)

    @classmethod
    def setting_field(cls, key: str) -> SettingField:
        for f in cls.__setting_fields__:
            if f.key == key:
                return f
        raise KeyError(key)

    def setting_items(self) -> Iterator[Tuple[str, Any]]:
        """Yield (key, current value) for every persisted field."""
        for f in self.__setting_fields__:
            yield f.key, f.accessor(self)
