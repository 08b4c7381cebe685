"""
This module implements a lightweight and limited alternative
to pydantic's BaseModel and Field classes.

It is used for the configuration options and for the cpio entry metadata.
This module IS NOT a supported API, it is meant for cpiolib internal use only.
"""

import copy
import inspect
import textwrap
from enum import Enum
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union
from typing import get_origin
from typing import get_type_hints


__all__ = (
    "BaseModel",
    "Field",
    "NotSet",
    "Dict",
    "Optional",
    "Union",
)


class NotSetClass:
    def __repr__(self):
        return "NotSet"

    def __bool__(self):
        return False


NotSet = NotSetClass()


class Field(property):
    def __init__(
        self,
        default: Any = NotSet,
        description: Optional[str] = None,
        exclude: bool = False,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
        **extra,
    ):
        # the default value; model sets it to None for optional fields
        self.default = default

        # the name of model's attribute associated with this field instance - set from the model
        self.name = None

        # the type of this field instance - set from the model
        self.type = None

        self.description = textwrap.dedent(description).strip() if description else None

        # whether to exclude this field from export
        self.exclude = exclude

        # bounds checked for int fields
        self.min_value = min_value
        self.max_value = max_value

        # extra fields such as ``ini_key``
        self.extra = extra

        super().__init__(fget=self.get, fset=self.set, doc=self.description)

    @property
    def is_optional(self):
        origin_type = get_origin(self.type) or self.type
        return origin_type is Union and type(None) in self.type.__args__

    @property
    def origin_type(self):
        if self.is_optional:
            types = [i for i in self.type.__args__ if i is not type(None)]
            return get_origin(types[0]) or types[0]
        return get_origin(self.type) or self.type

    def validate_type(self, value):
        if value is None and self.is_optional:
            return

        origin_type = self.origin_type

        if inspect.isclass(origin_type) and issubclass(origin_type, Enum):
            # test if the value is part of the enum
            origin_type(value)
            return

        # bool is a subclass of int, don't let it pass as a number
        if origin_type is int and isinstance(value, bool):
            raise TypeError(f"Field '{self.name}' has type '{self.type}'. Cannot assign a value with type 'bool'.")

        if not isinstance(value, origin_type):
            msg = f"Field '{self.name}' has type '{self.type}'. Cannot assign a value with type '{type(value).__name__}'."
            raise TypeError(msg)

        if self.min_value is not None and value < self.min_value:
            raise ValueError(f"Field '{self.name}' must be >= {self.min_value}, got {value}")

        if self.max_value is not None and value > self.max_value:
            raise ValueError(f"Field '{self.name}' must be <= {self.max_value}, got {value}")

    def get(self, obj):
        try:
            return obj._values[self.name]
        except KeyError:
            pass

        if self.default is NotSet:
            raise RuntimeError(f"The field '{self.name}' has no default")

        # make a deepcopy to avoid problems with mutable defaults
        default = copy.deepcopy(self.default)
        obj._values[self.name] = default
        return default

    def set(self, obj, value):
        self.validate_type(value)
        obj._values[self.name] = value


class ModelMeta(type):
    def __new__(mcs, name, bases, attrs):
        new_cls = super().__new__(mcs, name, bases, attrs)
        new_cls.__fields__ = {}

        # dir() doesn't preserve attribute order, walk the __mro__ instead
        for parent_cls in reversed(new_cls.__mro__):
            for field_name, field in parent_cls.__dict__.items():
                if isinstance(field, Field):
                    new_cls.__fields__[field_name] = field

        type_hints = get_type_hints(new_cls) if new_cls.__fields__ else {}
        for field_name, field in new_cls.__fields__.items():
            field.name = field_name
            field.type = type_hints[field_name]

            # set 'None' as the default for optional fields
            if field.default is NotSet and field.is_optional:
                field.default = None

        return new_cls


class BaseModel(metaclass=ModelMeta):
    __fields__: Dict[str, Field]

    def __setattr__(self, name, value):
        if getattr(self, "_allow_new_attributes", True) or hasattr(self.__class__, name) or name in self.__dict__:
            return super().__setattr__(name, value)
        raise AttributeError(f"Setting attribute '{self.__class__.__name__}.{name}' is not allowed")

    def __init__(self, **kwargs):
        self._allow_new_attributes = True
        self._values = {}

        uninitialized_fields = []

        for name, field in self.__fields__.items():
            if name not in kwargs:
                if field.default is NotSet:
                    uninitialized_fields.append(name)
                continue
            setattr(self, name, kwargs.pop(name))

        if kwargs:
            unknown_fields_str = ", ".join([f"'{i}'" for i in kwargs])
            raise TypeError(f"The following kwargs of '{self.__class__.__name__}.__init__()' do not match any field: {unknown_fields_str}")

        if uninitialized_fields:
            uninitialized_fields_str = ", ".join([f"'{i}'" for i in uninitialized_fields])
            raise TypeError(
                f"The following fields of '{self.__class__.__name__}' object are not initialized and have no default either: {uninitialized_fields_str}"
            )

        self._allow_new_attributes = False

    def __eq__(self, other):
        if type(self) != type(other):
            return False
        return self.dict() == other.dict()

    def __repr__(self):
        fields = ", ".join(f"{name}={value!r}" for name, value in self.dict().items())
        return f"{self.__class__.__name__}({fields})"

    def dict(self):
        result = {}
        for name, field in self.__fields__.items():
            if field.exclude:
                continue
            result[name] = getattr(self, name)
        return result
