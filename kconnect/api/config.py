"""
Module containing the configuration set used to declare and consume plugin options.

A plugin declares the options it understands in a ``ConfigurationSet``, the caller
populates the set with values (from flags, environment or files) and the plugin
reads the values back when it is invoked.
"""

import enum
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, constr

from .exceptions import KconnectError, DuplicateName, NotFound


class ConfigError(KconnectError):
    """
    Base class for configuration errors.
    """


class ConfigResolutionFailed(ConfigError):
    """
    Raised when a typed configuration cannot be derived from a configuration set.
    """
    code = 100
    message = "Configuration resolution failed"


class ConfigInvalid(ConfigError):
    """
    Raised when configuration values are not valid.
    """
    code = 101
    message = "Configuration invalid"

    def __init__(self, message = None, fields = ()):
        self.fields = tuple(fields)
        super().__init__(message, data = dict(fields = self.fields))


class MissingRequiredValue(ConfigInvalid):
    """
    Raised when required configuration items have neither a value nor a default.
    """
    code = 102
    message = "Missing required value"


class DuplicateConfigItem(DuplicateName):
    """
    Raised when a configuration item is declared twice.
    """
    code = 103
    message = "Configuration item already declared"


class ConfigItemNotFound(NotFound):
    """
    Raised when a configuration item has not been declared.
    """
    code = 104
    message = "Configuration item not found"


class ItemType(str, enum.Enum):
    """
    Enum of the supported configuration item types.
    """
    STRING = "string"
    BOOL = "bool"
    INT = "int"


TRUE_STRINGS = {"1", "t", "true", "y", "yes", "on"}
FALSE_STRINGS = {"0", "f", "false", "n", "no", "off"}


def coerce(item_type, value):
    """
    Coerce the given value to the given item type, raising ``ValueError`` if not possible.
    """
    if value is None:
        return None
    if item_type == ItemType.STRING:
        return str(value)
    if item_type == ItemType.BOOL:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in TRUE_STRINGS | FALSE_STRINGS:
            return value.strip().lower() in TRUE_STRINGS
        if isinstance(value, int) and value in {0, 1}:
            return bool(value)
        raise ValueError(f'{value!r} is not a valid bool')
    if item_type == ItemType.INT:
        # bool is a subclass of int, but True is not a sensible integer option
        if isinstance(value, bool):
            raise ValueError(f'{value!r} is not a valid int')
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f'{value!r} is not a whole number')
        return int(value)
    raise ValueError(f'unknown item type {item_type!r}')


class ConfigurationItem(BaseModel):
    """
    Model for a single named configuration item.
    """
    #: The name of the item, unique within a set
    name: constr(min_length = 1)
    #: The type of the item
    type: ItemType
    #: Description of the item, used for help text
    description: str = ""
    #: The default value for the item
    default: Any = None
    #: Whether a value must be resolvable for the item
    required: bool = False
    #: The short alias for the item, if any
    short: Optional[constr(min_length = 1)] = None
    #: The value supplied by the caller, if any
    value: Any = None

    @property
    def has_value(self):
        return self.value is not None

    @property
    def resolved_value(self):
        """
        The supplied value if there is one, otherwise the default.
        """
        return self.value if self.value is not None else self.default


class ConfigurationSet:
    """
    Ordered collection of configuration items, keyed by name.
    """
    def __init__(self):
        self._items = {}

    def __iter__(self):
        return iter(self._items.values())

    def __len__(self):
        return len(self._items)

    def __contains__(self, name):
        return name in self._items

    def __repr__(self):
        return f'ConfigurationSet({list(self._items)!r})'

    def declare(self, name, type, default = None, description = ""):
        """
        Declare a new configuration item and return it.
        """
        if name in self._items:
            raise DuplicateConfigItem(f'config item "{name}" already declared')
        item_type = ItemType(type)
        try:
            default = coerce(item_type, default)
        except ValueError as exc:
            raise ConfigInvalid(
                f'invalid default for config item "{name}": {exc}',
                fields = [name]
            ) from exc
        item = ConfigurationItem(
            name = name,
            type = item_type,
            default = default,
            description = description
        )
        self._items[name] = item
        return item

    def string(self, name, default = None, description = ""):
        return self.declare(name, ItemType.STRING, default, description)

    def bool(self, name, default = None, description = ""):
        return self.declare(name, ItemType.BOOL, default, description)

    def int(self, name, default = None, description = ""):
        return self.declare(name, ItemType.INT, default, description)

    def get(self, name):
        """
        Return the item with the given name.
        """
        try:
            return self._items[name]
        except KeyError:
            raise ConfigItemNotFound(f'config item "{name}" not found')

    def exists(self, name):
        return name in self._items

    def value_of(self, name):
        """
        Return the resolved value of the named item.
        """
        return self.get(name).resolved_value

    def set_required(self, name):
        self.get(name).required = True

    def set_short(self, name, alias):
        item = self.get(name)
        # Short aliases are looked up when values are supplied, so they must be unique
        for other in self._items.values():
            if other.short == alias and other.name != name:
                raise DuplicateConfigItem(
                    f'short alias "{alias}" already used by config item "{other.name}"'
                )
        item.short = alias

    def set_value(self, name, value):
        """
        Set the value of the named item, coercing it to the item type.
        """
        item = self.get(name)
        try:
            item.value = coerce(item.type, value)
        except ValueError as exc:
            raise ConfigInvalid(
                f'invalid value for config item "{name}": {exc}',
                fields = [name]
            ) from exc

    def set_values(self, values):
        """
        Set values from a mapping, where each key is either an item name or a short alias.
        """
        shorts = { item.short: item.name for item in self._items.values() if item.short }
        for key, value in values.items():
            self.set_value(shorts.get(key, key), value)

    def merge(self, other):
        """
        Copy the items from another set that are not already declared in this one.
        """
        for item in other:
            if item.name not in self._items:
                self._items[item.name] = item.model_copy()
        return self

    def validate(self):
        """
        Check that every required item has a value or a default.
        """
        missing = [
            item.name
            for item in self._items.values()
            if item.required and item.resolved_value is None
        ]
        if missing:
            raise MissingRequiredValue(
                'missing required value for config item(s): {}'.format(', '.join(missing)),
                fields = missing
            )

    def as_dict(self):
        """
        Return a dictionary of item names to resolved values, in declaration order.
        """
        return { name: item.resolved_value for name, item in self._items.items() }

    def unmarshal(self, model_cls):
        """
        Build an instance of the given pydantic model from the resolved values.

        Model fields are matched against item names using their aliases.
        """
        try:
            return model_cls.model_validate(self.as_dict())
        except ValidationError as exc:
            raise invalid_from_validation_error(exc) from exc


def invalid_from_validation_error(exc):
    """
    Convert a pydantic validation error into a ``ConfigInvalid`` naming the offending fields.
    """
    fields = []
    for error in exc.errors():
        field = '.'.join(str(part) for part in error['loc']) or '__root__'
        if field not in fields:
            fields.append(field)
    details = '; '.join(
        '{}: {}'.format('.'.join(str(p) for p in error['loc']) or '__root__', error['msg'])
        for error in exc.errors()
    )
    return ConfigInvalid(f'invalid configuration ({details})', fields = fields)
