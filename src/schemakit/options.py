"""
Process-wide type mapping defaults.

The four defaults are read by forward type resolution whenever a host type
descriptor does not carry the attribute itself. Every write is validated;
resolution reads one consistent ``snapshot()`` per call.
"""
import logging
from dataclasses import dataclass, fields
from typing import NamedTuple

from schemakit.exceptions import ConfigurationError

from libb import ConfigOptions

logger = logging.getLogger(__name__)

__all__ = [
    'UNLIMITED',
    'DEFAULT_ENUM_LENGTH',
    'GUID_STRING_LENGTH',
    'IP_ADDRESS_LENGTH',
    'MAX_IDENTIFIER_LENGTH',
    'TypeMappingDefaults',
    'TypeMappingOptions',
    'settings',
]

UNLIMITED = -1
DEFAULT_ENUM_LENGTH = 128
GUID_STRING_LENGTH = 36
IP_ADDRESS_LENGTH = 45
MAX_IDENTIFIER_LENGTH = 63


class TypeMappingDefaults(NamedTuple):
    """Immutable copy of the defaults taken at the start of a resolution.
    """
    string_length: int
    binary_length: int
    decimal_precision: int
    decimal_scale: int


def _check_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f'{name} must be an integer, got {value!r}')


def _validate_length(name: str, value) -> None:
    _check_int(name, value)
    if value <= 0 and value != UNLIMITED:
        raise ConfigurationError(
            f'{name} must be a positive integer or UNLIMITED ({UNLIMITED}), got {value}')


def _validate_precision(name: str, value) -> None:
    _check_int(name, value)
    if not 1 <= value <= 38:
        raise ConfigurationError(f'{name} must be between 1 and 38, got {value}')


def _validate_scale(name: str, value) -> None:
    _check_int(name, value)
    if value < 0:
        raise ConfigurationError(f'{name} must be non-negative, got {value}')


_VALIDATORS = {
    'default_string_length': _validate_length,
    'default_binary_length': _validate_length,
    'default_decimal_precision': _validate_precision,
    'default_decimal_scale': _validate_scale,
}


@dataclass
class TypeMappingOptions(ConfigOptions):
    """Options

    - default_string_length: length for text columns without one (UNLIMITED)
    - default_binary_length: length for binary columns without one (UNLIMITED)
    - default_decimal_precision: precision for decimals without one (16)
    - default_decimal_scale: scale for decimals without one (4)
    """
    default_string_length: int = UNLIMITED
    default_binary_length: int = UNLIMITED
    default_decimal_precision: int = 16
    default_decimal_scale: int = 4

    def __setattr__(self, name, value):
        validator = _VALIDATORS.get(name)
        if validator is not None:
            validator(name, value)
        super().__setattr__(name, value)

    def update(self, **kwargs) -> None:
        """Validate every value first, then apply them.
        """
        for name, value in kwargs.items():
            if name not in _VALIDATORS:
                raise ConfigurationError(f'Unknown type mapping setting: {name}')
            _VALIDATORS[name](name, value)
        for name, value in kwargs.items():
            setattr(self, name, value)
        logger.debug(f'Updated type mapping defaults: {kwargs}')

    def reset_to_defaults(self) -> None:
        """Restore the documented defaults (unlimited, unlimited, 16, 4).
        """
        for f in fields(self):
            setattr(self, f.name, f.default)

    def snapshot(self) -> TypeMappingDefaults:
        return TypeMappingDefaults(
            string_length=self.default_string_length,
            binary_length=self.default_binary_length,
            decimal_precision=self.default_decimal_precision,
            decimal_scale=self.default_decimal_scale,
            )


settings = TypeMappingOptions()
