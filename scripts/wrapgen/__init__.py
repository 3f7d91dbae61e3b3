"""
wrapgen - wrapper header generation for native class libraries

This package turns an extractor metamodel of a native class library plus a
database of customization rules into the wrapper declarations needed to
expose the library to the Python runtime. Library-specific rule sets are
written as configuration modules that populate a TypeDatabase.
"""

from .entries import (
    TypeEntry, TypeKind, CodeGeneration, Copyable, ContainerKind, Include, IncludeType,
    TypeSystemError,
    primitive_entry, enum_entry, flags_entry, link_enum_flags, value_entry, object_entry,
    namespace_entry, container_entry, interface_entry_for,
)
from .modifications import (
    Language, Ownership, SnipPosition, CodeSnip, TemplateEntry, TemplateInstance,
    FunctionModification, ArgumentModification, FieldModification, AddedFunction,
    ReferenceCount, ArgumentOwner, DocModification,
)
from .database import TypeDatabase, TypeRejection, normalized_signature, match_suppressed_warning
from .diagnostics import ReportHandler
from .ir import MetaModel, MetaClass, MetaFunction, MetaArgument, MetaType, MetaEnum, MetaEnumValue
from .codegen import CodeGen
from .converter import ConverterGenerator
from .enum import EnumGenerator
from .wrapper import ClassHeaderGenerator
from .generator import HeaderGenerator, GeneratorOptions, TypeIndexTable

__all__ = [
    'TypeEntry', 'TypeKind', 'CodeGeneration', 'Copyable', 'ContainerKind', 'Include',
    'IncludeType', 'TypeSystemError',
    'primitive_entry', 'enum_entry', 'flags_entry', 'link_enum_flags', 'value_entry',
    'object_entry', 'namespace_entry', 'container_entry', 'interface_entry_for',
    'Language', 'Ownership', 'SnipPosition', 'CodeSnip', 'TemplateEntry', 'TemplateInstance',
    'FunctionModification', 'ArgumentModification', 'FieldModification', 'AddedFunction',
    'ReferenceCount', 'ArgumentOwner', 'DocModification',
    'TypeDatabase', 'TypeRejection', 'normalized_signature', 'match_suppressed_warning',
    'ReportHandler',
    'MetaModel', 'MetaClass', 'MetaFunction', 'MetaArgument', 'MetaType', 'MetaEnum',
    'MetaEnumValue',
    'CodeGen',
    'ConverterGenerator',
    'EnumGenerator',
    'ClassHeaderGenerator',
    'HeaderGenerator', 'GeneratorOptions', 'TypeIndexTable',
]
