"""
Resource Attribute Schema

Typed per-object attribute store handed to reconcilers. It keeps declared
values apart from schema defaults so that "explicitly set" and "defaulted"
can be told apart.

Author: uldyssian-sh
License: MIT
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..exceptions import ValidationError


@dataclass
class Field:
    """Scalar attribute"""
    type: type
    required: bool = False
    default: Any = None
    computed: bool = False
    sensitive: bool = False
    description: str = ""


@dataclass
class Section:
    """Repeatable nested block of scalar fields"""
    fields: Dict[str, Field] = field(default_factory=dict)
    description: str = ""


Schema = Dict[str, Union[Field, Section]]


_ZERO_VALUES = {str: "", int: 0, bool: False}


def _coerce(name: str, spec: Field, value: Any) -> Any:
    if value is None:
        return None
    if spec.type is bool:
        if isinstance(value, bool):
            return value
    elif spec.type is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                pass
    elif spec.type is str:
        if isinstance(value, str):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
    raise ValidationError(f"attribute '{name}' expects {spec.type.__name__}, got {value!r}")


def _normalize_section(name: str, section: Section, value: Any) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        raise ValidationError(f"section '{name}' must be a mapping or a list of mappings")

    items = []
    for index, item in enumerate(value):
        item = item or {}
        if not isinstance(item, dict):
            raise ValidationError(f"section '{name}.{index}' must be a mapping")
        unknown = set(item) - set(section.fields)
        if unknown:
            raise ValidationError(
                f"unknown attribute(s) in section '{name}': {', '.join(sorted(unknown))}"
            )
        normalized = {}
        for key, spec in section.fields.items():
            if key in item and item[key] is not None:
                normalized[key] = _coerce(f"{name}.{index}.{key}", spec, item[key])
            elif spec.default is not None:
                normalized[key] = spec.default
        items.append(normalized)
    return items


class ResourceData:
    """Attributes of one declared object plus its recorded identity"""

    def __init__(self, schema: Schema, attributes: Optional[Dict[str, Any]] = None,
                 id: str = ""):
        self.schema = schema
        self._declared: Dict[str, Any] = {}
        self._values: Dict[str, Any] = {}
        self._id = id
        self._load(attributes or {})

    def _load(self, attributes: Dict[str, Any]) -> None:
        unknown = set(attributes) - set(self.schema)
        if unknown:
            raise ValidationError(f"unknown attribute(s): {', '.join(sorted(unknown))}")

        for key, spec in self.schema.items():
            value = attributes.get(key)
            if isinstance(spec, Section):
                if key in attributes:
                    self._declared[key] = True
                self._values[key] = _normalize_section(key, spec, value)
                continue
            if value is None:
                if spec.required:
                    raise ValidationError(f"required attribute '{key}' is missing")
                continue
            if spec.computed:
                raise ValidationError(f"attribute '{key}' is computed and cannot be declared")
            value = _coerce(key, spec, value)
            if spec.required and value == "":
                raise ValidationError(f"required attribute '{key}' must not be empty")
            self._declared[key] = True
            self._values[key] = value

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, value: str) -> None:
        self._id = value or ""

    def is_set(self, key: str) -> bool:
        """True when the attribute was declared rather than defaulted"""
        return key in self._declared

    def get(self, key: str) -> Any:
        spec = self.schema[key]
        if isinstance(spec, Section):
            return copy.deepcopy(self._values.get(key, []))
        if key in self._values:
            return self._values[key]
        return spec.default

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """Value plus whether it is set to something other than its zero value"""
        value = self.get(key)
        spec = self.schema[key]
        if isinstance(spec, Section):
            return value, bool(value)
        return value, value is not None and value != _ZERO_VALUES.get(spec.type)

    def set(self, key: str, value: Any) -> None:
        spec = self.schema[key]
        if isinstance(spec, Section):
            self._values[key] = _normalize_section(key, spec, value)
        elif value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = _coerce(key, spec, value)

    def state(self, redact: bool = False) -> Dict[str, Any]:
        """Snapshot of all known attribute values"""
        result: Dict[str, Any] = {"id": self._id}
        for key, spec in self.schema.items():
            value = self.get(key)
            if value is None:
                continue
            if redact and isinstance(spec, Field) and spec.sensitive:
                value = "********"
            result[key] = value
        return result
