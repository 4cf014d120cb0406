"""
File-based configuration.
"""
from schemakit.config.type_mapping import TypeMappingConfig as TypeMappingConfig
