"""
Modification rule module

User-authored customization rules attached to type entries: function and
field modifications, per-argument modifications, added functions, code
snippets and the templates they may instantiate.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .database import TypeDatabase
    from .diagnostics import ReportHandler


class Language(IntFlag):
    """Code targets a rule or snippet applies to"""
    NO_LANGUAGE = 0x0000
    TARGET_LANG = 0x0001
    NATIVE = 0x0002
    SHELL = 0x0004
    SHELL_DECLARATION = 0x0008
    PACKAGE_INITIALIZER = 0x0010
    DESTRUCTOR_FUNCTION = 0x0020
    CONSTRUCTORS = 0x0040
    INTERFACE = 0x0080

    ALL = (TARGET_LANG | NATIVE | SHELL | SHELL_DECLARATION
           | PACKAGE_INITIALIZER | CONSTRUCTORS | INTERFACE | DESTRUCTOR_FUNCTION)
    TARGET_LANG_AND_NATIVE = TARGET_LANG | NATIVE


class Ownership(Enum):
    INVALID = 'invalid'
    DEFAULT = 'default'
    TARGET_LANG = 'target'
    NATIVE = 'native'


class SnipPosition(Enum):
    BEGINNING = 'beginning'
    END = 'end'
    AFTER_THIS = 'after-this'
    DECLARATION = 'declaration'
    PROTOTYPE_INITIALIZATION = 'prototype-initialization'
    CONSTRUCTOR_INITIALIZATION = 'constructor-initialization'
    CONSTRUCTOR = 'constructor'
    ANY = 'any'


class RefCountAction(IntFlag):
    INVALID = 0x00
    ADD = 0x01
    ADD_ALL = 0x02
    REMOVE = 0x04
    SET = 0x08
    IGNORE = 0x10


class OwnerAction(IntEnum):
    INVALID = 0x00
    ADD = 0x01
    REMOVE = 0x02


class Access(IntEnum):
    """Access modifiers a modification may impose"""
    NONE = 0x0
    PRIVATE = 0x1
    PROTECTED = 0x2
    PUBLIC = 0x3
    FRIENDLY = 0x4


class DocMode(Enum):
    APPEND = 'append'
    PREPEND = 'prepend'
    REPLACE = 'replace'
    XPATH_REPLACE = 'xpath-replace'


# ${name} placeholders inside template bodies
_PLACEHOLDER_RE = re.compile(r'\$\{(\w+)\}')


@dataclass
class TemplateEntry:
    """Named, reusable code fragment with ${placeholder} slots"""
    name: str
    fragments: list[str] = field(default_factory=list)

    def add_code(self, code: str):
        self.fragments.append(code)

    def code(self) -> str:
        return ''.join(self.fragments)


@dataclass
class TemplateInstance:
    """Use of a template with a placeholder replacement map"""
    name: str
    replace_rules: dict[str, str] = field(default_factory=dict)

    def add_replace_rule(self, name: str, value: str):
        self.replace_rules[name] = value

    def expand_code(self, db: 'TypeDatabase', report: Optional['ReportHandler'] = None) -> str:
        """Expand the instance against the templates registered in db.

        Substitution is a single pass over the template body, so text
        produced by a replacement is never expanded again. Placeholders
        without a replacement are kept verbatim and reported.
        """
        template = db.find_template(self.name)
        if template is None:
            if report is not None:
                report.warning(f"template '{self.name}' not found")
            return f"// ERROR: Template '{self.name}' not found\n"

        unresolved: list[str] = []

        def substitute(match: 're.Match[str]') -> str:
            key = match.group(1)
            if key in self.replace_rules:
                return self.replace_rules[key]
            unresolved.append(key)
            return match.group(0)

        body = _PLACEHOLDER_RE.sub(substitute, template.code())
        if unresolved and report is not None:
            for key in dict.fromkeys(unresolved):
                report.warning(f"unresolved placeholder '${{{key}}}' in template '{self.name}'")

        return (f'// TEMPLATE - {self.name} - START\n'
                f'{body}\n'
                f'// TEMPLATE - {self.name} - END\n')


Fragment = Union[str, TemplateInstance]


@dataclass
class CodeSnip:
    """Code injected at a lifecycle position for a given language"""
    language: Language = Language.TARGET_LANG
    position: SnipPosition = SnipPosition.ANY
    fragments: list[Fragment] = field(default_factory=list)
    argument_map: dict[int, str] = field(default_factory=dict)

    def add_code(self, code: str):
        self.fragments.append(code)

    def add_template_instance(self, instance: TemplateInstance):
        self.fragments.append(instance)

    def code(self, db: 'TypeDatabase', report: Optional['ReportHandler'] = None) -> str:
        """Concatenate fragments, expanding template instances"""
        parts = []
        for fragment in self.fragments:
            if isinstance(fragment, TemplateInstance):
                parts.append(fragment.expand_code(db, report))
            else:
                parts.append(fragment)
        return ''.join(parts)


@dataclass
class CustomFunction:
    """Custom constructor/destructor body supplied by the rules"""
    name: str = ''
    param_name: str = ''
    snip: CodeSnip = field(default_factory=CodeSnip)

    def is_valid(self) -> bool:
        return bool(self.name)


@dataclass
class ReferenceCount:
    action: RefCountAction = RefCountAction.INVALID
    language: Language = Language.ALL
    variable_name: str = ''


@dataclass
class ArgumentOwner:
    """"this argument becomes the managed child of argument `index`" """
    action: OwnerAction = OwnerAction.INVALID
    index: int = -2


@dataclass
class ArgumentModification:
    """Modification of one argument; index 0 is the return value"""
    index: int
    removed_default_expression: bool = False
    removed: bool = False
    no_null_pointers: bool = False
    reset_after_use: bool = False
    reference_counts: list[ReferenceCount] = field(default_factory=list)
    modified_type: str = ''
    replace_value: str = ''
    null_pointer_default_value: str = ''
    replaced_default_expression: str = ''
    ownerships: dict[Language, Ownership] = field(default_factory=dict)
    conversion_rules: list[CodeSnip] = field(default_factory=list)
    owner: ArgumentOwner = field(default_factory=ArgumentOwner)

    def ownership(self, language: Language) -> Ownership:
        return self.ownerships.get(language, Ownership.INVALID)


@dataclass
class Modification:
    access: Access = Access.NONE
    final: Optional[bool] = None
    deprecated: bool = False
    renamed_to: str = ''

    @property
    def is_access_modifier(self) -> bool:
        return self.access != Access.NONE

    @property
    def is_rename_modifier(self) -> bool:
        return bool(self.renamed_to)

    @property
    def is_private(self) -> bool:
        return self.access == Access.PRIVATE

    @property
    def is_protected(self) -> bool:
        return self.access == Access.PROTECTED

    @property
    def is_public(self) -> bool:
        return self.access == Access.PUBLIC


@dataclass
class FunctionModification(Modification):
    """Rule matched against a function by its normalized signature"""
    signature: str = ''
    association: str = ''
    snips: list[CodeSnip] = field(default_factory=list)
    removal: Language = Language.NO_LANGUAGE
    is_thread: bool = False
    allow_thread: bool = False
    argument_mods: list[ArgumentModification] = field(default_factory=list)

    @property
    def is_code_injection(self) -> bool:
        return bool(self.snips)

    @property
    def is_remove_modifier(self) -> bool:
        return self.removal != Language.NO_LANGUAGE

    def argument_modification(self, index: int) -> Optional[ArgumentModification]:
        for arg_mod in self.argument_mods:
            if arg_mod.index == index:
                return arg_mod
        return None

    def __str__(self) -> str:
        parts = [f'signature={self.signature}']
        if self.is_rename_modifier:
            parts.append(f'rename={self.renamed_to}')
        if self.is_access_modifier:
            parts.append(f'access={self.access.name.lower()}')
        if self.is_remove_modifier:
            parts.append(f'remove={self.removal!r}')
        return 'FunctionModification(' + ', '.join(parts) + ')'


@dataclass
class FieldModification(Modification):
    name: str = ''
    readable: bool = True
    writable: bool = True


@dataclass
class AddedTypeInfo:
    """Argument or return type of a function added by the rules"""
    name: str
    is_constant: bool = False
    indirections: int = 0
    is_reference: bool = False
    default_value: str = ''


@dataclass
class AddedFunction:
    """Synthetic function the rules add to a class or module"""
    name: str
    arguments: list[AddedTypeInfo] = field(default_factory=list)
    return_type: Optional[AddedTypeInfo] = None
    access: Access = Access.PUBLIC
    is_constant: bool = False
    is_static: bool = False

    @classmethod
    def from_signature(cls, signature: str, return_type: str = '') -> 'AddedFunction':
        """Build from a 'name(type, type = default)' signature"""
        signature = signature.strip()
        name, _, rest = signature.partition('(')
        args_str, _, tail = rest.rpartition(')')
        arguments = []
        for raw in _split_arguments(args_str):
            type_str, _, default = raw.partition('=')
            arguments.append(_parse_added_type(type_str, default.strip()))
        ret = _parse_added_type(return_type) if return_type and return_type != 'void' else None
        return cls(
            name=name.strip(),
            arguments=arguments,
            return_type=ret,
            is_constant=tail.strip() == 'const',
        )


def _split_arguments(args_str: str) -> list[str]:
    """Split an argument list on top-level commas"""
    result = []
    depth = 0
    current = ''
    for ch in args_str:
        if ch in '<([':
            depth += 1
        elif ch in '>)]':
            depth -= 1
        if ch == ',' and depth == 0:
            result.append(current.strip())
            current = ''
        else:
            current += ch
    if current.strip():
        result.append(current.strip())
    return result


def _parse_added_type(type_str: str, default: str = '') -> AddedTypeInfo:
    type_str = type_str.strip()
    is_constant = type_str.startswith('const ')
    if is_constant:
        type_str = type_str[len('const '):]
    is_reference = type_str.endswith('&')
    type_str = type_str.rstrip('&').strip()
    indirections = type_str.count('*')
    return AddedTypeInfo(
        name=type_str.replace('*', '').strip(),
        is_constant=is_constant,
        indirections=indirections,
        is_reference=is_reference,
        default_value=default,
    )


@dataclass
class ExpensePolicy:
    limit: int = -1
    cost: str = ''

    def is_valid(self) -> bool:
        return self.limit >= 0


@dataclass
class DocModification:
    signature: str = ''
    mode: DocMode = DocMode.XPATH_REPLACE
    xpath: str = ''
    code: str = ''
    format: Language = Language.NATIVE
