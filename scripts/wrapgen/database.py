"""
Type database module

The TypeDatabase is the aggregate root of one generation run. It owns every
TypeEntry (keyed by qualified native name, several entries per name allowed),
the flags index, templates, rejection rules, suppressed warnings, global
modifications and the imports required from other modules.

It is populated before synthesis and only read afterwards.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .entries import (
    TypeEntry, TypeKind, Include, TypeSystemError,
)
from .modifications import AddedFunction, FunctionModification, TemplateEntry

# Literal '*' in a suppression pattern is written as '\*'
_ASTERISK_PLACEHOLDER = '&place_holder_for_asterisk;'


@dataclass(frozen=True)
class TypeRejection:
    """Exclusion rule; an empty axis matches anything on that axis"""
    class_name: str = ''
    function_name: str = ''
    field_name: str = ''
    enum_name: str = ''

    def matches(self, class_name: str, function_name: Optional[str] = None,
                field_name: Optional[str] = None, enum_name: Optional[str] = None) -> bool:
        return (_axis_matches(self.class_name, class_name)
                and _axis_matches(self.function_name, function_name)
                and _axis_matches(self.field_name, field_name)
                and _axis_matches(self.enum_name, enum_name))


def _axis_matches(rule_value: str, value: Optional[str]) -> bool:
    if not rule_value or rule_value == '*':
        return True
    return value is not None and rule_value == value


def normalized_signature(signature: str) -> str:
    """Whitespace-normalized 'name(type,type)' form of a signature

    Examples:
        'foo( int , const QString & )' -> 'foo(int,const QString&)'
        'bar(unsigned  int*)'          -> 'bar(unsigned int*)'
    """
    sig = ' '.join(signature.split())
    # Drop spaces that do not separate two identifier characters
    sig = re.sub(r'\s*([(),<>*&\[\]:])\s*', r'\1', sig)
    return sig


def match_suppressed_warning(pattern: str, message: str) -> bool:
    """Glob-like match where '*' stands for any text

    The pattern is split on unescaped '*' into literal segments that must
    occur in the message in order, each one starting at or after the end
    of the previous match.
    """
    escaped = pattern.replace('\\*', _ASTERISK_PLACEHOLDER)
    segments = [seg.replace(_ASTERISK_PLACEHOLDER, '*')
                for seg in escaped.split('*') if seg]
    if not segments:
        return False
    pos = 0
    for segment in segments:
        found = message.find(segment, pos)
        if found == -1:
            return False
        pos = found + len(segment)
    return True


class TypeDatabase:
    """Registry of type entries and customization rules for one run"""

    def __init__(self):
        self._entries: dict[str, list[TypeEntry]] = {}
        self._flags_entries: dict[str, TypeEntry] = {}
        self._templates: dict[str, TemplateEntry] = {}
        self._rejections: list[TypeRejection] = []
        self._suppressed_warnings: list[str] = []
        self._added_functions: list[AddedFunction] = []
        self._function_mods: list[FunctionModification] = []
        self._required_target_imports: list[str] = []
        self.suppress_warnings = True

    # -- registration ------------------------------------------------------

    def add_type(self, entry: TypeEntry) -> TypeEntry:
        """Append entry under its qualified name; homonyms are kept"""
        self._entries.setdefault(entry.qualified_cpp_name, []).append(entry)
        if entry.is_flags:
            self.add_flags_type(entry)
        return entry

    def add_flags_type(self, entry: TypeEntry):
        self._flags_entries[entry.flags.original_name] = entry

    def add_template(self, template: TemplateEntry):
        self._templates[template.name] = template

    def add_rejection(self, class_name: str = '', function_name: str = '',
                      field_name: str = '', enum_name: str = ''):
        rejection = TypeRejection(class_name, function_name, field_name, enum_name)
        if rejection == TypeRejection():
            raise TypeSystemError('rejection rule must name at least one axis')
        self._rejections.append(rejection)

    def add_suppressed_warning(self, pattern: str):
        self._suppressed_warnings.append(pattern)

    def add_required_target_import(self, module_name: str):
        if module_name not in self._required_target_imports:
            self._required_target_imports.append(module_name)

    def add_function_modification(self, mod: FunctionModification):
        self._function_mods.append(mod)

    def add_added_function(self, func: AddedFunction):
        self._added_functions.append(func)

    # -- resolution --------------------------------------------------------

    def find_types(self, name: str) -> list[TypeEntry]:
        return list(self._entries.get(name, []))

    def find_type(self, name: str) -> Optional[TypeEntry]:
        """Resolve a name to one entry.

        Among homonyms the first entry that is not a non-preferred primitive
        alias wins; when every homonym is a non-preferred primitive the first
        registered entry is returned.
        """
        entries = self._entries.get(name)
        if not entries:
            return None
        for entry in entries:
            if not entry.is_primitive or entry.primitive.preferred_target_lang_type:
                return entry
        return entries[0]

    def _find_first(self, name: str, predicate: Callable[[TypeEntry], bool]) -> Optional[TypeEntry]:
        for entry in self._entries.get(name, []):
            if predicate(entry):
                return entry
        return None

    def find_primitive_type(self, name: str) -> Optional[TypeEntry]:
        return self._find_first(
            name, lambda e: e.is_primitive and e.primitive.preferred_target_lang_type)

    def find_complex_type(self, name: str) -> Optional[TypeEntry]:
        return self._find_first(name, lambda e: e.is_complex)

    def find_object_type(self, name: str) -> Optional[TypeEntry]:
        return self._find_first(name, lambda e: e.is_object)

    def find_namespace_type(self, name: str) -> Optional[TypeEntry]:
        return self._find_first(name, lambda e: e.is_namespace)

    def find_container_type(self, name: str) -> Optional[TypeEntry]:
        # 'QList<int>' is registered as 'QList'
        template_name = name.split('<', 1)[0].strip()
        return self._find_first(template_name, lambda e: e.is_container)

    def find_flags_type(self, name: str) -> Optional[TypeEntry]:
        entry = self._flags_entries.get(name)
        if entry is not None:
            return entry
        return self._find_first(name, lambda e: e.is_flags)

    def find_target_lang_primitive_type(self, target_lang_name: str) -> Optional[TypeEntry]:
        for entry in self.primitive_types():
            if (entry.primitive.preferred_target_lang_type
                    and entry.target_lang_name == target_lang_name):
                return entry
        return None

    def find_template(self, name: str) -> Optional[TemplateEntry]:
        return self._templates.get(name)

    def designated_interface(self, entry: TypeEntry) -> Optional[TypeEntry]:
        """Interface view synthesized for an object entry, if any"""
        if not entry.is_object or not entry.complex.designated_interface:
            return None
        return self._find_first(entry.qualified_cpp_name, lambda e: e.is_interface)

    def interface_origin(self, entry: TypeEntry) -> Optional[TypeEntry]:
        if not entry.is_interface:
            return None
        return self.find_object_type(entry.complex.origin)

    # -- iteration ---------------------------------------------------------

    def all_entries(self) -> dict[str, list[TypeEntry]]:
        return {name: list(entries) for name, entries in self._entries.items()}

    def entries(self) -> dict[str, TypeEntry]:
        """Name -> preferred entry, in registration order"""
        result = {}
        for name in self._entries:
            entry = self.find_type(name)
            if entry is not None:
                result[name] = entry
        return result

    def _entries_of_kind(self, kind: TypeKind) -> list[TypeEntry]:
        return [e for entries in self._entries.values() for e in entries if e.kind == kind]

    def primitive_types(self) -> list[TypeEntry]:
        return self._entries_of_kind(TypeKind.PRIMITIVE)

    def container_types(self) -> list[TypeEntry]:
        return self._entries_of_kind(TypeKind.CONTAINER)

    def flags_entries(self) -> dict[str, TypeEntry]:
        return dict(self._flags_entries)

    def extra_includes(self, class_name: str) -> list[Include]:
        entry = self.find_complex_type(class_name)
        return list(entry.extra_includes) if entry else []

    @property
    def required_target_imports(self) -> list[str]:
        return list(self._required_target_imports)

    # -- global functions --------------------------------------------------

    @property
    def added_functions(self) -> list[AddedFunction]:
        return list(self._added_functions)

    def find_added_functions(self, name: str) -> list[AddedFunction]:
        return [f for f in self._added_functions if f.name == name]

    def function_modifications(self, signature: str) -> list[FunctionModification]:
        return [m for m in self._function_mods if m.signature == signature]

    # -- rejections --------------------------------------------------------

    @property
    def rejections(self) -> list[TypeRejection]:
        return list(self._rejections)

    def is_class_rejected(self, class_name: str) -> bool:
        return any(r.matches(class_name) for r in self._rejections)

    def is_function_rejected(self, class_name: str, function_name: str) -> bool:
        # A class-level rule and a function-level rule are each sufficient
        return any(r.matches(class_name, function_name=function_name) for r in self._rejections)

    def is_field_rejected(self, class_name: str, field_name: str) -> bool:
        return any(r.matches(class_name, field_name=field_name) for r in self._rejections)

    def is_enum_rejected(self, class_name: str, enum_name: str) -> bool:
        return any(r.matches(class_name, enum_name=enum_name) for r in self._rejections)

    # -- suppressed warnings -----------------------------------------------

    def is_suppressed_warning(self, message: str) -> bool:
        if not self.suppress_warnings:
            return False
        return any(match_suppressed_warning(p, message) for p in self._suppressed_warnings)
