"""
Type entry module

A TypeEntry describes one native type's generation metadata. Entries are a
single tagged variant: a `TypeKind` discriminator plus a kind-specific
payload. Construction rejects a payload that does not belong to the kind.
"""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Optional, Union

from .modifications import (
    CodeSnip, CustomFunction, DocModification, FunctionModification,
    FieldModification, AddedFunction, ExpensePolicy, Language, SnipPosition,
)


class TypeSystemError(ValueError):
    """Raised when a type entry or rule violates a construction invariant"""


class TypeKind(Enum):
    PRIMITIVE = 'primitive'
    VOID = 'void'
    VARARGS = 'varargs'
    FLAGS = 'flags'
    ENUM = 'enum'
    TEMPLATE_ARGUMENT = 'template-argument'
    THREAD = 'thread'
    VALUE = 'value'
    STRING = 'string'
    CHAR = 'char'
    CONTAINER = 'container'
    INTERFACE = 'interface'
    OBJECT = 'object'
    NAMESPACE = 'namespace'
    VARIANT = 'variant'
    ARRAY = 'array'
    TYPE_SYSTEM = 'typesystem'
    CUSTOM = 'custom'


class CodeGeneration(IntFlag):
    NOTHING = 0
    TARGET_LANG = 0x0001
    NATIVE = 0x0002
    FOR_SUBCLASS = 0x0004
    CODE = TARGET_LANG | NATIVE
    ALL = 0xffff


class Copyable(Enum):
    COPYABLE = 'copyable'
    NON_COPYABLE = 'non-copyable'
    UNKNOWN = 'unknown'


class ComplexTypeFlag(IntFlag):
    NONE = 0
    FORCE_ABSTRACT = 0x1
    DELETE_IN_MAIN_THREAD = 0x2
    DEPRECATED = 0x4


class ContainerKind(Enum):
    NONE = 'none'
    LIST = 'list'
    STRING_LIST = 'string-list'
    LINKED_LIST = 'linked-list'
    VECTOR = 'vector'
    STACK = 'stack'
    QUEUE = 'queue'
    SET = 'set'
    MAP = 'map'
    MULTI_MAP = 'multi-map'
    HASH = 'hash'
    MULTI_HASH = 'multi-hash'
    PAIR = 'pair'

    @classmethod
    def from_string(cls, name: str) -> 'ContainerKind':
        try:
            return cls(name)
        except ValueError:
            raise TypeSystemError(f'unknown container kind: {name}') from None


class IncludeType(Enum):
    INCLUDE_PATH = 'global'
    LOCAL_PATH = 'local'
    TARGET_LANG_IMPORT = 'target'


@dataclass(frozen=True)
class Include:
    name: str = ''
    type: IncludeType = IncludeType.INCLUDE_PATH

    def is_valid(self) -> bool:
        return bool(self.name)

    def __str__(self) -> str:
        if self.type == IncludeType.INCLUDE_PATH:
            return f'#include <{self.name}>'
        if self.type == IncludeType.LOCAL_PATH:
            return f'#include "{self.name}"'
        return f'import {self.name};'


# ---------------------------------------------------------------------------
# Kind payloads
# ---------------------------------------------------------------------------

@dataclass
class PrimitivePayload:
    target_lang_name: str = ''
    target_lang_api_name: str = ''
    preferred_conversion: bool = True
    preferred_target_lang_type: bool = True
    aliased: Optional['TypeEntry'] = None


@dataclass
class EnumPayload:
    qualifier: str = ''
    target_lang_name: str = ''
    package: str = ''
    lower_bound: str = ''
    upper_bound: str = ''
    rejected_values: list[str] = field(default_factory=list)
    redirections: dict[str, str] = field(default_factory=dict)
    flags: Optional['TypeEntry'] = None
    extensible: bool = False
    force_integer: bool = False


@dataclass
class FlagsPayload:
    original_name: str = ''
    flags_name: str = ''
    originator: Optional['TypeEntry'] = None


@dataclass
class ComplexPayload:
    """Shared by value, object, interface, namespace and container kinds"""
    qualified_cpp_name: str = ''
    function_mods: list[FunctionModification] = field(default_factory=list)
    field_mods: list[FieldModification] = field(default_factory=list)
    added_functions: list[AddedFunction] = field(default_factory=list)
    package: str = ''
    qobject: bool = False
    default_superclass: str = ''
    polymorphic_base: bool = False
    polymorphic_id_value: str = ''
    held_type: str = ''
    expense_policy: ExpensePolicy = field(default_factory=ExpensePolicy)
    copyable: Copyable = Copyable.UNKNOWN
    target_lang_name: str = ''
    lookup_name: str = ''
    target_type: str = ''
    generic_class: bool = False
    type_flags: ComplexTypeFlag = ComplexTypeFlag.NONE
    hash_function: str = ''
    container_kind: ContainerKind = ContainerKind.NONE
    # interface <-> object relation, resolved by name through the database
    designated_interface: str = ''
    origin: str = ''


@dataclass
class TemplateArgumentPayload:
    ordinal: int = 0


@dataclass
class ArrayPayload:
    nested: Optional['TypeEntry'] = None


Payload = Union[PrimitivePayload, EnumPayload, FlagsPayload, ComplexPayload,
                TemplateArgumentPayload, ArrayPayload, None]

COMPLEX_KINDS = frozenset({
    TypeKind.VALUE, TypeKind.STRING, TypeKind.CHAR, TypeKind.VARIANT,
    TypeKind.CONTAINER, TypeKind.INTERFACE, TypeKind.OBJECT, TypeKind.NAMESPACE,
})

VALUE_KINDS = frozenset({TypeKind.VALUE, TypeKind.STRING, TypeKind.CHAR, TypeKind.VARIANT})

_PAYLOAD_TYPES: dict[TypeKind, Optional[type]] = {
    TypeKind.PRIMITIVE: PrimitivePayload,
    TypeKind.ENUM: EnumPayload,
    TypeKind.FLAGS: FlagsPayload,
    TypeKind.TEMPLATE_ARGUMENT: TemplateArgumentPayload,
    TypeKind.ARRAY: ArrayPayload,
    TypeKind.VOID: None,
    TypeKind.VARARGS: None,
    TypeKind.THREAD: None,
    TypeKind.TYPE_SYSTEM: None,
    TypeKind.CUSTOM: None,
}
for _kind in COMPLEX_KINDS:
    _PAYLOAD_TYPES[_kind] = ComplexPayload

_DEFAULT_GENERATION = {
    TypeKind.CONTAINER: CodeGeneration.FOR_SUBCLASS,
    TypeKind.STRING: CodeGeneration.NOTHING,
    TypeKind.CHAR: CodeGeneration.NOTHING,
}


@dataclass(eq=False)
class TypeEntry:
    """Generation metadata for one native type"""
    name: str
    kind: TypeKind
    payload: Payload = None
    code_generation: Optional[CodeGeneration] = None
    include: Include = field(default_factory=Include)
    extra_includes: list[Include] = field(default_factory=list)
    code_snips: list[CodeSnip] = field(default_factory=list)
    doc_modifications: list[DocModification] = field(default_factory=list)
    custom_constructor: CustomFunction = field(default_factory=CustomFunction)
    custom_destructor: CustomFunction = field(default_factory=CustomFunction)
    conversion_rule: str = ''
    preferred_conversion: bool = True
    stream: bool = False

    def __post_init__(self):
        if not self.name:
            raise TypeSystemError('type entry name must not be empty')
        expected = _PAYLOAD_TYPES[self.kind]
        if expected is None:
            if self.payload is not None:
                raise TypeSystemError(
                    f'{self.kind.value} entry {self.name!r} takes no payload, '
                    f'got {type(self.payload).__name__}')
        elif self.payload is None:
            self.payload = expected()
        elif not isinstance(self.payload, expected):
            raise TypeSystemError(
                f'{self.kind.value} entry {self.name!r} needs {expected.__name__}, '
                f'got {type(self.payload).__name__}')
        if self.code_generation is None:
            self.code_generation = _DEFAULT_GENERATION.get(self.kind, CodeGeneration.ALL)
        # Re-run dedup over includes handed to the constructor
        includes, self.extra_includes = self.extra_includes, []
        for inc in includes:
            self.add_extra_include(inc)

    def __repr__(self) -> str:
        return f'TypeEntry({self.name!r}, {self.kind.name})'

    # -- kind predicates ---------------------------------------------------

    @property
    def is_primitive(self) -> bool:
        return self.kind == TypeKind.PRIMITIVE

    @property
    def is_enum(self) -> bool:
        return self.kind == TypeKind.ENUM

    @property
    def is_flags(self) -> bool:
        return self.kind == TypeKind.FLAGS

    @property
    def is_object(self) -> bool:
        return self.kind == TypeKind.OBJECT

    @property
    def is_interface(self) -> bool:
        return self.kind == TypeKind.INTERFACE

    @property
    def is_namespace(self) -> bool:
        return self.kind == TypeKind.NAMESPACE

    @property
    def is_container(self) -> bool:
        return self.kind == TypeKind.CONTAINER

    @property
    def is_complex(self) -> bool:
        return self.kind in COMPLEX_KINDS

    @property
    def is_value(self) -> bool:
        return self.kind in VALUE_KINDS

    @property
    def is_native_id_based(self) -> bool:
        return self.kind in (TypeKind.VALUE, TypeKind.OBJECT, TypeKind.INTERFACE)

    # -- typed payload access ----------------------------------------------

    def _payload_as(self, payload_type: type, what: str):
        if not isinstance(self.payload, payload_type):
            raise TypeSystemError(f'{self.name!r} is a {self.kind.value} entry, not {what}')
        return self.payload

    @property
    def primitive(self) -> PrimitivePayload:
        return self._payload_as(PrimitivePayload, 'a primitive')

    @property
    def enum(self) -> EnumPayload:
        return self._payload_as(EnumPayload, 'an enum')

    @property
    def flags(self) -> FlagsPayload:
        return self._payload_as(FlagsPayload, 'a flags type')

    @property
    def complex(self) -> ComplexPayload:
        return self._payload_as(ComplexPayload, 'a complex type')

    # -- generation policy -------------------------------------------------

    def generate_code(self) -> bool:
        """True unless the entry is for-subclass-only or generates nothing"""
        return self.code_generation not in (CodeGeneration.FOR_SUBCLASS, CodeGeneration.NOTHING)

    # -- names -------------------------------------------------------------

    @property
    def qualified_cpp_name(self) -> str:
        if self.kind == TypeKind.INTERFACE:
            qualified = self.complex.qualified_cpp_name or self.name
            return qualified[:len(qualified) - len(interface_name(''))]
        if self.is_complex and self.complex.qualified_cpp_name:
            return self.complex.qualified_cpp_name
        return self.name

    @property
    def target_lang_name(self) -> str:
        if self.kind == TypeKind.PRIMITIVE:
            return self.primitive.target_lang_name or self.name
        if self.kind == TypeKind.ENUM:
            return self.enum.target_lang_name
        if self.kind == TypeKind.FLAGS:
            return self.flags.flags_name or self.name
        if self.kind == TypeKind.ARRAY:
            nested = self.payload.nested
            return (nested.target_lang_name if nested else '?') + '[]'
        if self.is_complex and self.complex.target_lang_name:
            return self.complex.target_lang_name
        return self.name

    @property
    def lookup_name(self) -> str:
        if self.is_complex and self.complex.lookup_name:
            return self.complex.lookup_name
        return self.target_lang_name

    @property
    def target_lang_package(self) -> str:
        if self.kind == TypeKind.ENUM:
            return self.enum.package
        if self.kind == TypeKind.FLAGS:
            originator = self.flags.originator
            return originator.enum.package if originator else ''
        if self.is_complex:
            return self.complex.package
        return ''

    @property
    def qualified_target_lang_name(self) -> str:
        parts = []
        if self.target_lang_package:
            parts.append(self.target_lang_package)
        if self.kind == TypeKind.ENUM and self.enum.qualifier:
            parts.append(self.enum.qualifier.replace('::', '.'))
        parts.append(self.target_lang_name)
        return '.'.join(parts)

    # -- includes, snippets, rules -----------------------------------------

    def add_extra_include(self, include: Include):
        if any(inc.name == include.name for inc in self.extra_includes):
            return
        self.extra_includes.append(include)

    def add_code_snip(self, snip: CodeSnip):
        self.code_snips.append(snip)

    def code_snips_for(self, position: SnipPosition, language: Language) -> list[CodeSnip]:
        return [s for s in self.code_snips
                if s.position == position and (s.language & language)]

    def has_conversion_rule(self) -> bool:
        return bool(self.conversion_rule)

    def add_function_modification(self, mod: FunctionModification):
        self.complex.function_mods.append(mod)

    def function_modifications(self, signature: Optional[str] = None) -> list[FunctionModification]:
        """Modifications whose signature equals `signature`, in registration order"""
        if not self.is_complex:
            return []
        mods = self.complex.function_mods
        if signature is None:
            return list(mods)
        return [m for m in mods if m.signature == signature]

    def add_field_modification(self, mod: FieldModification):
        self.complex.field_mods.append(mod)

    def field_modification(self, name: str) -> FieldModification:
        for mod in self.complex.field_mods:
            if mod.name == name:
                return mod
        return FieldModification(name=name)

    def add_new_function(self, func: AddedFunction):
        self.complex.added_functions.append(func)

    # -- kind-specific helpers ---------------------------------------------

    @property
    def basic_aliased_entry(self) -> 'TypeEntry':
        """Follow a primitive alias chain down to the non-alias primitive"""
        entry = self
        while entry.primitive.aliased is not None:
            entry = entry.primitive.aliased
        return entry

    def is_enum_value_rejected(self, value: str) -> bool:
        return value in self.enum.rejected_values

    def enum_value_redirection(self, value: str) -> str:
        return self.enum.redirections.get(value, '')

    @property
    def is_bounds_checked(self) -> bool:
        return not self.enum.lower_bound and not self.enum.upper_bound

    @property
    def force_integer(self) -> bool:
        if self.kind == TypeKind.FLAGS:
            originator = self.flags.originator
            return originator.enum.force_integer if originator else False
        return self.enum.force_integer

    @property
    def copyable(self) -> Copyable:
        return self.complex.copyable

    @property
    def is_qobject(self) -> bool:
        return self.is_complex and self.complex.qobject


def interface_name(name: str) -> str:
    return name + 'Interface'


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def primitive_entry(name: str, target_lang_api_name: str = '', **kwargs) -> TypeEntry:
    payload = PrimitivePayload(
        target_lang_name=kwargs.pop('target_lang_name', ''),
        target_lang_api_name=target_lang_api_name,
        preferred_target_lang_type=kwargs.pop('preferred_target_lang_type', True),
        preferred_conversion=kwargs.pop('preferred_conversion', True),
        aliased=kwargs.pop('aliased', None),
    )
    return TypeEntry(name, TypeKind.PRIMITIVE, payload, **kwargs)


def enum_entry(qualifier: str, name: str, **kwargs) -> TypeEntry:
    full_name = f'{qualifier}::{name}' if qualifier else name
    payload = EnumPayload(qualifier=qualifier, target_lang_name=name,
                          package=kwargs.pop('package', ''))
    entry = TypeEntry(full_name, TypeKind.ENUM, payload, **kwargs)
    entry.preferred_conversion = False
    return entry


def flags_entry(name: str, original_name: str = '', flags_name: str = '', **kwargs) -> TypeEntry:
    payload = FlagsPayload(original_name=original_name or name, flags_name=flags_name)
    entry = TypeEntry(name, TypeKind.FLAGS, payload, **kwargs)
    entry.preferred_conversion = False
    return entry


def link_enum_flags(enum: TypeEntry, flags: TypeEntry):
    """Associate an enum with its bitmask entry, in both directions"""
    enum.enum.flags = flags
    flags.flags.originator = enum


def complex_entry(name: str, kind: TypeKind, **kwargs) -> TypeEntry:
    if kind not in COMPLEX_KINDS:
        raise TypeSystemError(f'{kind.value} is not a complex kind')
    payload_fields = {k: kwargs.pop(k) for k in list(kwargs) if k in ComplexPayload.__dataclass_fields__}
    payload_fields.setdefault('qualified_cpp_name', name)
    return TypeEntry(name, kind, ComplexPayload(**payload_fields), **kwargs)


def value_entry(name: str, **kwargs) -> TypeEntry:
    return complex_entry(name, TypeKind.VALUE, **kwargs)


def object_entry(name: str, **kwargs) -> TypeEntry:
    return complex_entry(name, TypeKind.OBJECT, **kwargs)


def namespace_entry(name: str, **kwargs) -> TypeEntry:
    return complex_entry(name, TypeKind.NAMESPACE, **kwargs)


def container_entry(name: str, container_kind: Union[ContainerKind, str], **kwargs) -> TypeEntry:
    if isinstance(container_kind, str):
        container_kind = ContainerKind.from_string(container_kind)
    return complex_entry(name, TypeKind.CONTAINER, container_kind=container_kind, **kwargs)


def interface_entry_for(origin: TypeEntry) -> TypeEntry:
    """Synthesize the interface view of an object entry and link the two"""
    if origin.kind != TypeKind.OBJECT:
        raise TypeSystemError(f'{origin.name!r} is not an object entry')
    name = interface_name(origin.qualified_cpp_name)
    interface = complex_entry(name, TypeKind.INTERFACE, origin=origin.name,
                              package=origin.complex.package)
    origin.complex.designated_interface = name
    return interface
