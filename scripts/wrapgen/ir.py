"""
IR (Intermediate Representation) module

Represents the class metamodel produced by the upstream header extractor:
classes, functions, fields and enums, each bound to its TypeEntry when the
type database knows one. A missing entry marks the type as opaque.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING
import json

from .database import normalized_signature
from .modifications import FunctionModification, Language

if TYPE_CHECKING:
    from .database import TypeDatabase
    from .entries import TypeEntry


class Access(Enum):
    PUBLIC = 'public'
    PROTECTED = 'protected'
    PRIVATE = 'private'


@dataclass
class MetaType:
    """A native type reference as written in a declaration"""
    name: str
    entry: Optional['TypeEntry'] = None
    is_constant: bool = False
    is_reference: bool = False
    indirections: int = 0

    @property
    def cpp_signature(self) -> str:
        sig = ('const ' if self.is_constant else '') + self.name
        if self.indirections:
            sig += '*' * self.indirections
        if self.is_reference:
            sig += '&'
        return sig

    @property
    def is_opaque(self) -> bool:
        return self.entry is None

    @classmethod
    def parse(cls, type_str: str, db: Optional['TypeDatabase'] = None) -> 'MetaType':
        """Parse a declaration type like 'const Tuple &' or 'Node *'"""
        text = ' '.join(type_str.split())
        is_constant = text.startswith('const ')
        if is_constant:
            text = text[len('const '):]
        is_reference = text.endswith('&')
        text = text.rstrip('&').strip()
        indirections = 0
        while text.endswith('*'):
            indirections += 1
            text = text[:-1].strip()
        if text.endswith(' const'):
            text = text[:-len(' const')]
        entry = None
        if db is not None:
            entry = db.find_type(text) or db.find_container_type(text)
        return cls(
            name=text,
            entry=entry,
            is_constant=is_constant,
            is_reference=is_reference,
            indirections=indirections,
        )


@dataclass
class MetaArgument:
    name: str
    type: MetaType
    default_value: str = ''


@dataclass(eq=False)
class MetaFunction:
    """Function declaration information"""
    name: str
    arguments: list[MetaArgument] = field(default_factory=list)
    return_type: Optional[MetaType] = None
    access: Access = Access.PUBLIC
    is_virtual: bool = False
    is_abstract: bool = False
    is_static: bool = False
    is_constructor: bool = False
    is_copy_constructor: bool = False
    is_conversion_operator: bool = False
    is_explicit: bool = False
    is_constant: bool = False
    is_user_added: bool = False
    signature: str = ''
    owner: Optional['MetaClass'] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.signature:
            args = ','.join(a.type.cpp_signature for a in self.arguments)
            self.signature = f'{self.name}({args})'
        self.signature = normalized_signature(self.signature)

    @property
    def minimal_signature(self) -> str:
        return self.signature

    def modifications(self) -> list[FunctionModification]:
        """Rules of the owning class entry that match this function"""
        if self.owner is None or self.owner.type_entry is None:
            return []
        return self.owner.type_entry.function_modifications(self.minimal_signature)

    def is_modified_removed(self, language: Language = Language.ALL) -> bool:
        return any(m.is_remove_modifier and (m.removal & language) == language
                   for m in self.modifications())

    @property
    def effective_access(self) -> Access:
        """Access after applying access-changing modifications"""
        access = self.access
        for mod in self.modifications():
            if mod.is_private:
                access = Access.PRIVATE
            elif mod.is_protected:
                access = Access.PROTECTED
            elif mod.is_public:
                access = Access.PUBLIC
        return access

    @property
    def is_private(self) -> bool:
        return self.effective_access == Access.PRIVATE

    @property
    def is_protected(self) -> bool:
        return self.effective_access == Access.PROTECTED

    @property
    def target_name(self) -> str:
        for mod in reversed(self.modifications()):
            if mod.is_rename_modifier:
                return mod.renamed_to
        return self.name

    def is_implicit_conversion(self) -> bool:
        """Converting constructor usable for implicit conversion"""
        if not self.is_constructor or self.is_copy_constructor or self.is_explicit:
            return False
        if not self.arguments:
            return False
        return all(a.default_value for a in self.arguments[1:])


@dataclass
class MetaField:
    name: str
    type: MetaType
    access: Access = Access.PUBLIC


@dataclass
class MetaEnumValue:
    name: str
    value: Optional[int] = None


@dataclass(eq=False)
class MetaEnum:
    """Enum type information"""
    name: str
    values: list[MetaEnumValue] = field(default_factory=list)
    type_entry: Optional['TypeEntry'] = None
    enclosing_class: Optional['MetaClass'] = field(default=None, repr=False)
    include_file: str = ''

    @property
    def qualified_name(self) -> str:
        if self.enclosing_class is not None:
            return f'{self.enclosing_class.qualified_name}::{self.name}'
        return self.name


@dataclass(eq=False)
class MetaClass:
    """Class or namespace information"""
    qualified_name: str
    type_entry: Optional['TypeEntry'] = None
    enclosing_class: Optional['MetaClass'] = field(default=None, repr=False)
    is_namespace: bool = False
    is_abstract: bool = False
    is_polymorphic: bool = False
    has_virtual_destructor: bool = False
    has_private_destructor: bool = False
    base_class_names: list[str] = field(default_factory=list)
    functions: list[MetaFunction] = field(default_factory=list)
    fields: list[MetaField] = field(default_factory=list)
    enums: list[MetaEnum] = field(default_factory=list)
    inner_classes: list['MetaClass'] = field(default_factory=list, repr=False)

    def __post_init__(self):
        for func in self.functions:
            func.owner = self
        for enum in self.enums:
            enum.enclosing_class = self

    @property
    def name(self) -> str:
        return self.qualified_name.rsplit('::', 1)[-1]

    @property
    def is_qobject(self) -> bool:
        return self.type_entry is not None and self.type_entry.is_qobject

    def add_function(self, func: MetaFunction):
        func.owner = self
        self.functions.append(func)

    def has_virtual_functions(self) -> bool:
        return any(f.is_virtual or f.is_abstract for f in self.functions)

    def has_protected_functions(self) -> bool:
        return any(f.is_protected and not f.is_constructor for f in self.functions)

    def has_clone_operator(self) -> bool:
        """True when a public, non-removed copy constructor exists"""
        return any(f.is_copy_constructor and not f.is_private and not f.is_protected
                   and not f.is_modified_removed()
                   for f in self.functions)

    def conversion_operators(self) -> list[MetaFunction]:
        return [f for f in self.functions if f.is_conversion_operator]


@dataclass
class MetaModel:
    """Ordered class metamodel of one module"""
    module: str
    classes: list[MetaClass] = field(default_factory=list)
    global_enums: list[MetaEnum] = field(default_factory=list)
    package: str = ''

    @classmethod
    def load(cls, json_path: str, db: 'TypeDatabase') -> 'MetaModel':
        """Load the metamodel from an extractor JSON file"""
        with open(json_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data, db)

    @classmethod
    def from_dict(cls, data: dict, db: 'TypeDatabase') -> 'MetaModel':
        """Create the metamodel from a dictionary, binding type entries"""
        classes: list[MetaClass] = []
        by_name: dict[str, MetaClass] = {}
        for decl in data.get('classes', []):
            meta_class = cls._parse_class(decl, db)
            classes.append(meta_class)
            by_name[meta_class.qualified_name] = meta_class

        # Enclosing links are by name; inner classes keep declaration order
        for decl, meta_class in zip(data.get('classes', []), classes):
            enclosing = decl.get('enclosing')
            if enclosing and enclosing in by_name:
                outer = by_name[enclosing]
                meta_class.enclosing_class = outer
                outer.inner_classes.append(meta_class)

        global_enums = [cls._parse_enum(e, None, db) for e in data.get('enums', [])]
        return cls(
            module=data.get('module', ''),
            classes=classes,
            global_enums=global_enums,
            package=data.get('package', ''),
        )

    @staticmethod
    def _parse_class(decl: dict, db: 'TypeDatabase') -> MetaClass:
        qualified_name = decl['name']
        is_namespace = decl.get('kind', 'class') == 'namespace'
        if is_namespace:
            entry = db.find_namespace_type(qualified_name)
        else:
            entry = db.find_complex_type(qualified_name)
        meta_class = MetaClass(
            qualified_name=qualified_name,
            type_entry=entry,
            is_namespace=is_namespace,
            is_abstract=decl.get('abstract', False),
            is_polymorphic=decl.get('polymorphic', False),
            has_virtual_destructor=decl.get('virtual_destructor', False),
            has_private_destructor=decl.get('private_destructor', False),
            base_class_names=list(decl.get('bases', [])),
        )
        for func in decl.get('functions', []):
            meta_class.add_function(MetaModel._parse_function(func, db))
        for fld in decl.get('fields', []):
            meta_class.fields.append(MetaField(
                name=fld['name'],
                type=MetaType.parse(fld['type'], db),
                access=Access(fld.get('access', 'public')),
            ))
        for enum in decl.get('enums', []):
            meta_class.enums.append(MetaModel._parse_enum(enum, meta_class, db))
        return meta_class

    @staticmethod
    def _parse_function(decl: dict, db: 'TypeDatabase') -> MetaFunction:
        arguments = []
        for i, arg in enumerate(decl.get('arguments', [])):
            arguments.append(MetaArgument(
                name=arg.get('name') or f'arg__{i + 1}',
                type=MetaType.parse(arg['type'], db),
                default_value=arg.get('default', ''),
            ))
        return_type = decl.get('return_type', 'void')
        return MetaFunction(
            name=decl['name'],
            arguments=arguments,
            return_type=None if return_type == 'void' else MetaType.parse(return_type, db),
            access=Access(decl.get('access', 'public')),
            is_virtual=decl.get('virtual', False),
            is_abstract=decl.get('abstract', False),
            is_static=decl.get('static', False),
            is_constructor=decl.get('constructor', False),
            is_copy_constructor=decl.get('copy_constructor', False),
            is_conversion_operator=decl.get('conversion_operator', False),
            is_explicit=decl.get('explicit', False),
            is_constant=decl.get('const', False),
            is_user_added=decl.get('user_added', False),
            signature=decl.get('signature', ''),
        )

    @staticmethod
    def _parse_enum(decl: dict, enclosing: Optional[MetaClass], db: 'TypeDatabase') -> MetaEnum:
        values = []
        for item in decl.get('values', []):
            value = int(item['value']) if 'value' in item else None
            values.append(MetaEnumValue(name=item['name'], value=value))
        qualified = f'{enclosing.qualified_name}::{decl["name"]}' if enclosing else decl['name']
        entry = db.find_type(qualified)
        if entry is not None and not entry.is_enum:
            entry = None
        return MetaEnum(
            name=decl['name'],
            values=values,
            type_entry=entry,
            enclosing_class=enclosing,
            include_file=decl.get('include', ''),
        )

    # -- queries -----------------------------------------------------------

    def find_class(self, qualified_name: str) -> Optional[MetaClass]:
        for meta_class in self.classes:
            if meta_class.qualified_name == qualified_name:
                return meta_class
        return None

    def ordered_classes(self) -> list[MetaClass]:
        """Outer classes before their inner classes, declaration order kept"""
        result: list[MetaClass] = []

        def visit(meta_class: MetaClass):
            result.append(meta_class)
            for inner in meta_class.inner_classes:
                visit(inner)

        for meta_class in self.classes:
            if meta_class.enclosing_class is None:
                visit(meta_class)
        return result

    def implicit_conversions(self, entry: 'TypeEntry') -> list[MetaFunction]:
        """Converting constructors of the class, then conversion operators
        of other classes producing it, in declaration order"""
        if not entry.is_value:
            return []
        target = self.find_class(entry.qualified_cpp_name)
        if target is None:
            return []
        result = [f for f in target.functions if f.is_implicit_conversion()]
        for meta_class in self.ordered_classes():
            if meta_class is target:
                continue
            for op in meta_class.conversion_operators():
                if op.return_type is not None and op.return_type.name == target.qualified_name:
                    result.append(op)
        return result
