"""
Configuration for type mapping defaults and custom dialect types.

Example file::

    {
        "defaults": {"default_string_length": 255},
        "postgresql": {
            "types": [
                {"data_type": "email", "category": "text", "description": "citext domain"}
            ]
        }
    }
"""
import json
import logging
import pathlib

from schemakit.adapters.type_info import DataTypeCategory, DataTypeInfo
from schemakit.dialect import Dialect
from schemakit.exceptions import ConfigurationError
from schemakit.options import settings

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = (
    '~/.config/schemakit/type_mapping.json',
    '/etc/schemakit/type_mapping.json',
    'type_mapping.json',
    )

_TYPE_FIELDS = {
    'data_type', 'category', 'aliases', 'is_common', 'supports_length',
    'max_length', 'default_length', 'supports_precision', 'max_precision',
    'default_precision', 'supports_scale', 'max_scale', 'default_scale',
    'description',
    }


class TypeMappingConfig:
    """Configuration for custom type mappings"""

    _instance = None

    @classmethod
    def get_instance(cls):
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def __init__(self, config_file=None):
        self.defaults: dict[str, int] = {}
        self._custom_types: dict[Dialect, list[DataTypeInfo]] = {}
        self.config_file = None

        if config_file:
            self.load_config(config_file)
            return
        for location in DEFAULT_LOCATIONS:
            path = pathlib.Path(location).expanduser()
            if path.exists():
                self.load_config(path)
                break

    def load_config(self, config_file) -> None:
        """Load configuration from file, merging with what is already loaded.

        Raises
            ConfigurationError: If the file is unreadable or malformed
        """
        path = pathlib.Path(config_file).expanduser()
        try:
            with path.open() as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f'Failed to load type mapping config {path}: {e}') from e
        if not isinstance(config, dict):
            raise ConfigurationError(f'Type mapping config {path} must hold a JSON object')

        for key, section in config.items():
            if key == 'defaults':
                self._load_defaults(section)
                continue
            dialect = Dialect.parse(key)
            if not isinstance(section, dict):
                raise ConfigurationError(f'Section {key!r} must be a JSON object')
            types = [self._parse_type(dialect, entry) for entry in section.get('types', [])]
            self._custom_types.setdefault(dialect, []).extend(types)

        self.config_file = path
        logger.info(f'Loaded type mapping configuration from {path}')

    def _load_defaults(self, section) -> None:
        if not isinstance(section, dict):
            raise ConfigurationError('The defaults section must be a JSON object')
        candidate = type(settings)()
        candidate.update(**section)
        self.defaults.update(section)

    def _parse_type(self, dialect: Dialect, entry) -> DataTypeInfo:
        if not isinstance(entry, dict) or 'data_type' not in entry:
            raise ConfigurationError(f'Custom {dialect} type needs a data_type: {entry!r}')
        unknown = set(entry) - _TYPE_FIELDS
        if unknown:
            raise ConfigurationError(
                f'Unknown fields for custom {dialect} type {entry["data_type"]!r}: '
                f'{", ".join(sorted(unknown))}')
        values = dict(entry)
        try:
            values['category'] = DataTypeCategory(values.get('category', 'custom'))
        except ValueError as e:
            raise ConfigurationError(
                f'Unknown category for custom type {entry["data_type"]!r}: {e}') from e
        values['aliases'] = tuple(values.get('aliases', ()))
        return DataTypeInfo(is_custom=True, **values)

    def apply_defaults(self) -> None:
        """Apply the configured defaults to the process-wide settings."""
        if self.defaults:
            settings.update(**self.defaults)

    def get_custom_types(self, dialect: Dialect | str) -> list[DataTypeInfo]:
        return list(self._custom_types.get(Dialect.parse(dialect), []))

    def add_custom_type(self, dialect: Dialect | str, info: DataTypeInfo) -> None:
        self._custom_types.setdefault(Dialect.parse(dialect), []).append(info)
