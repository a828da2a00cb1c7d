from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Union

from fetchstate.settings import default_settings

_SettingsKeyT = Union[bool, float, int, str, None]

if TYPE_CHECKING:
    from types import ModuleType

    # https://github.com/python/typing/issues/445#issuecomment-1131458824
    from _typeshed import SupportsItems

    _SettingsInputT = Union[SupportsItems[_SettingsKeyT, Any], None]


SETTINGS_PRIORITIES: dict[str, int] = {
    "default": 0,
    "project": 20,
}


def get_settings_priority(priority: int | str) -> int:
    """
    Look up a named priority in
    :attr:`~fetchstate.settings.SETTINGS_PRIORITIES`, or return a numerical
    priority unchanged.
    """
    if isinstance(priority, str):
        return SETTINGS_PRIORITIES[priority]
    return priority


class SettingsAttribute:
    """A setting value together with the priority it was stored with."""

    def __init__(self, value: Any, priority: int):
        self.value: Any = value
        self.priority: int = priority

    def set(self, value: Any, priority: int) -> None:
        """Sets value if priority is higher or equal than current priority."""
        if priority >= self.priority:
            self.value = value
            self.priority = priority


class BaseSettings(Mapping[_SettingsKeyT, Any]):
    """
    A read-mostly mapping where every value keeps the priority it was set
    with. A value only replaces another one stored with the same or a lower
    priority.

    ``priority`` may be a name from
    :attr:`~fetchstate.settings.SETTINGS_PRIORITIES` or an integer.
    """

    def __init__(self, values: _SettingsInputT = None, priority: int | str = "project"):
        self.attributes: dict[_SettingsKeyT, SettingsAttribute] = {}
        self.update(values, priority)

    def __getitem__(self, opt_name: _SettingsKeyT) -> Any:
        if opt_name not in self:
            return None
        return self.attributes[opt_name].value

    def __contains__(self, name: Any) -> bool:
        return name in self.attributes

    def get(self, name: _SettingsKeyT, default: Any = None) -> Any:
        return self[name] if self[name] is not None else default

    def getbool(self, name: _SettingsKeyT, default: bool = False) -> bool:
        """
        Get a setting value as a boolean.

        ``1``, ``'1'``, ``True``, ``'True'`` and ``'true'`` return ``True``;
        ``0``, ``'0'``, ``False``, ``'False'``, ``'false'`` and ``None``
        return ``False``. Anything else raises :exc:`ValueError`.
        """
        got = self.get(name, default)
        try:
            return bool(int(got))
        except ValueError:
            if got in ("True", "true"):
                return True
            if got in ("False", "false"):
                return False
            raise ValueError(
                "Supported values for boolean settings "
                "are 0/1, True/False, '0'/'1', "
                "'True'/'False' and 'true'/'false'"
            )

    def getfloat(self, name: _SettingsKeyT, default: float = 0.0) -> float:
        return float(self.get(name, default))

    def getdelay(self, name: _SettingsKeyT) -> float | None:
        """
        Get a setting value as a delay in seconds.

        Returns ``None`` when the setting is missing, ``None`` or zero, which
        all mean "disabled". Negative delays raise :exc:`ValueError`.
        """
        delay = self.getfloat(name)
        if delay < 0:
            raise ValueError(f"{name} must not be negative, got {delay!r}")
        return delay or None

    def set(
        self, name: _SettingsKeyT, value: Any, priority: int | str = "project"
    ) -> None:
        priority = get_settings_priority(priority)
        if name not in self:
            self.attributes[name] = SettingsAttribute(value, priority)
        else:
            self.attributes[name].set(value, priority)

    def setmodule(self, module: ModuleType, priority: int | str = "project") -> None:
        """Store every uppercase global of ``module`` with the given ``priority``."""
        for key in dir(module):
            if key.isupper():
                self.set(key, getattr(module, key), priority)

    def update(self, values: _SettingsInputT, priority: int | str = "project") -> None:
        """Store key/value pairs with a given priority."""
        if values is not None:
            for name, value in values.items():
                self.set(name, value, priority)

    def __iter__(self) -> Iterator[_SettingsKeyT]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)


class Settings(BaseSettings):
    """
    :class:`BaseSettings` pre-populated with the values of
    :mod:`fetchstate.settings.default_settings` at ``default`` priority.
    """

    def __init__(self, values: _SettingsInputT = None, priority: int | str = "project"):
        super().__init__()
        self.setmodule(default_settings, "default")
        self.update(values, priority)
