"""
Host and dialect type descriptors.

A HostTypeDescriptor names a Python value type plus the sizing hints a column
may carry. A DialectTypeDescriptor decomposes a raw catalog type string such as
``nvarchar(255)`` or ``numeric(10,2)`` into a base name and the same hints.
Both are plain values: parsing and formatting only, no I/O.
"""
import re
import types
import typing
from dataclasses import dataclass
from typing import Any

from schemakit.exceptions import TypeMappingError
from schemakit.options import UNLIMITED

_UNICODE_PREFIXES = ('nchar', 'nvarchar', 'ntext', 'national')
_LENGTH_MARKERS = ('char', 'text', 'binary')
_UNLIMITED_MARKERS = {'max'}
_INTEGER = re.compile(r'^\d+$')


def unwrap_optional(host_type: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` and ``X | None``, the type itself otherwise.

    >>> unwrap_optional(int | None)
    <class 'int'>
    """
    origin = typing.get_origin(host_type)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(host_type) if arg is not type(None)]
        if len(args) == 1:
            return unwrap_optional(args[0])
    return host_type


def type_display_name(host_type: Any) -> str:
    """Readable name of a host type, used in messages and formatting."""
    if typing.get_origin(host_type) is not None:
        return repr(host_type)
    module = getattr(host_type, '__module__', '')
    name = getattr(host_type, '__qualname__', None) or repr(host_type)
    if module in {'builtins', None, ''}:
        return name
    return f'{module}.{name}'


@dataclass
class HostTypeDescriptor:
    """Python value type plus column sizing hints.

    ``host_type`` is required and always stored in its non-optional form.
    """
    host_type: Any
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_auto_increment: bool | None = None
    is_unicode: bool | None = None
    is_fixed_length: bool | None = None

    def __post_init__(self) -> None:
        if self.host_type is None:
            raise TypeMappingError('None', 'A host type descriptor requires a host type')
        self.host_type = unwrap_optional(self.host_type)

    @property
    def origin(self) -> Any:
        """Unparameterized host type, ``list`` for ``list[int]``."""
        return typing.get_origin(self.host_type) or self.host_type

    @property
    def type_args(self) -> tuple:
        return typing.get_args(self.host_type)

    @property
    def type_name(self) -> str:
        return type_display_name(self.host_type)

    def __str__(self) -> str:
        parts = [self.type_name]
        if self.length is not None:
            parts.append(f'length({"max" if self.length == UNLIMITED else self.length})')
        if self.precision is not None:
            if self.scale is not None:
                parts.append(f'precision({self.precision},{self.scale})')
            else:
                parts.append(f'precision({self.precision})')
        if self.is_auto_increment:
            parts.append('auto_increment')
        if self.is_unicode:
            parts.append('unicode')
        if self.is_fixed_length:
            parts.append('fixed')
        return ' '.join(parts)


def _split_type_name(raw: str) -> tuple[str, list[str]]:
    """Split ``name(a, b) suffix`` into (``name suffix``, [``a``, ``b``])."""
    start = raw.find('(')
    if start < 0:
        return raw, []
    depth = 0
    end = -1
    for i in range(start, len(raw)):
        if raw[i] == '(':
            depth += 1
        elif raw[i] == ')':
            depth -= 1
            if depth == 0:
                end = i
                break
    if end < 0:
        return raw[:start], [t.strip() for t in raw[start + 1:].split(',')]
    base = f'{raw[:start]} {raw[end + 1:]}'
    return base, [t.strip() for t in raw[start + 1:end].split(',')]


@dataclass
class DialectTypeDescriptor:
    """Raw catalog type string decomposed into a base name and hints.
    """
    raw_type_name: str
    base_type_name: str = ''
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    is_auto_increment: bool = False
    is_unicode: bool = False
    is_fixed_length: bool = False

    @classmethod
    def parse(cls, raw_type_name: str) -> 'DialectTypeDescriptor':
        """Decompose a catalog type string.

        >>> d = DialectTypeDescriptor.parse('decimal(10,2)')
        >>> (d.base_type_name, d.precision, d.scale)
        ('decimal', 10, 2)
        >>> DialectTypeDescriptor.parse('  nvarchar (   255 )  ').length
        255
        """
        if raw_type_name is None or not str(raw_type_name).strip():
            raise TypeMappingError(str(raw_type_name), 'Empty dialect type name')
        raw = ' '.join(str(raw_type_name).split())
        base, tokens = _split_type_name(raw)
        base = ' '.join(base.split()).lower()
        descriptor = cls(raw_type_name=raw, base_type_name=base)

        numbers = []
        unlimited_first = bool(tokens) and tokens[0].lower() in _UNLIMITED_MARKERS
        for token in tokens:
            if token.lower() in _UNLIMITED_MARKERS:
                numbers.append(UNLIMITED)
            elif _INTEGER.match(token):
                numbers.append(int(token))

        if any(marker in base for marker in _LENGTH_MARKERS) or unlimited_first:
            if numbers:
                descriptor.length = numbers[0]
        elif numbers:
            descriptor.precision = numbers[0]
            if len(numbers) > 1:
                descriptor.scale = numbers[1]

        descriptor.is_auto_increment = 'serial' in base
        descriptor.is_fixed_length = 'char' in base and 'var' not in base
        descriptor.is_unicode = base.startswith(_UNICODE_PREFIXES)
        return descriptor

    def __str__(self) -> str:
        return self.raw_type_name
