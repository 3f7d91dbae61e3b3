"""
Main generator module

Orchestrates all components to generate the wrapper headers of a module:
one declaration unit per class plus the aggregate module header.
"""

import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .codegen import (
    CodeGen, DEFAULT_API_PREFIX, api_export_macro, api_variable_name,
    file_name_for_class, idx_count_name, license_block, module_header_file_name,
    module_header_guard, type_index_define, TYPE_INDEX_FIELD_WIDTH,
)
from .converter import ConverterGenerator
from .diagnostics import ReportHandler
from .enum import EnumGenerator
from .wrapper import ClassHeaderGenerator

if TYPE_CHECKING:
    from .database import TypeDatabase
    from .entries import TypeEntry
    from .ir import MetaClass, MetaEnum, MetaModel

# Runtime support headers every module header depends on
RUNTIME_INCLUDES = [
    'Python.h',
    'conversions.h',
    'pyenum.h',
    'basewrapper.h',
    'bindingmanager.h',
]


@dataclass
class GeneratorOptions:
    """Configuration for one module's generation run"""
    module_name: str = ''
    package: str = ''
    api_prefix: str = DEFAULT_API_PREFIX
    avoid_protected_hack: bool = False
    use_qobject_extensions: bool = False
    license_comment: str = ''
    verbose: bool = False


class TypeIndexTable:
    """Module-wide type index assignment.

    Built in one sequential pass: every generatable class (namespaces
    excluded) followed by its enums and each enum's flags, then the global
    enums. The numbering is consumed by the runtime registry.
    """

    def __init__(self):
        self.entries: list['TypeEntry'] = []
        self._index: dict[int, int] = {}

    @classmethod
    def build(cls, model: 'MetaModel', db: 'TypeDatabase') -> 'TypeIndexTable':
        table = cls()
        for meta_class in model.ordered_classes():
            entry = meta_class.type_entry
            if entry is None or not entry.generate_code():
                continue
            if db.is_class_rejected(meta_class.qualified_name):
                continue
            if not meta_class.is_namespace:
                table._add(entry)
            for enum in meta_class.enums:
                if not db.is_enum_rejected(meta_class.qualified_name, enum.name):
                    table._add(enum.type_entry)
        for enum in model.global_enums:
            if not db.is_enum_rejected('', enum.name):
                table._add(enum.type_entry)
        return table

    def _add(self, entry: Optional['TypeEntry']):
        if entry is None or not entry.generate_code() or id(entry) in self._index:
            return
        self._index[id(entry)] = len(self.entries)
        self.entries.append(entry)
        if entry.is_enum and entry.enum.flags is not None:
            self._add(entry.enum.flags)

    def index_of(self, entry: 'TypeEntry') -> Optional[int]:
        return self._index.get(id(entry))

    def __contains__(self, entry: 'TypeEntry') -> bool:
        return id(entry) in self._index

    def __len__(self) -> int:
        return len(self.entries)

    def write_defines(self, gen: CodeGen, module: str):
        for idx, entry in enumerate(self.entries):
            gen.line(type_index_define(entry, idx))
        gen.line(f'#define {idx_count_name(module):<{TYPE_INDEX_FIELD_WIDTH}} {len(self.entries)}')


class HeaderGenerator:
    """Main header generator"""

    def __init__(self, db: 'TypeDatabase', model: 'MetaModel',
                 options: Optional[GeneratorOptions] = None,
                 report: Optional[ReportHandler] = None):
        self.db = db
        self.model = model
        self.options = options or GeneratorOptions()
        self.report = report or ReportHandler(db, verbose=self.options.verbose)
        self.module = self.options.module_name or model.module
        self.class_gen = ClassHeaderGenerator(db, self.options, self.report)
        self.conv_gen = ConverterGenerator(model, self.module, self.report, self.options.api_prefix)
        self.enum_gen = EnumGenerator(self.module, self.options.api_prefix)
        self._type_indices: Optional[TypeIndexTable] = None

    # -- selection ---------------------------------------------------------

    def should_generate(self, meta_class: 'MetaClass') -> bool:
        entry = meta_class.type_entry
        if entry is None:
            return False
        if self.db.is_class_rejected(meta_class.qualified_name):
            return False
        return entry.generate_code()

    def _enums_of(self, meta_class: 'MetaClass') -> list['MetaEnum']:
        result = []
        for enum in meta_class.enums:
            if self.db.is_enum_rejected(meta_class.qualified_name, enum.name):
                continue
            if enum.type_entry is None:
                self.report.warning(f'enum {enum.qualified_name} has no type entry, skipped')
                continue
            result.append(enum)
        return result

    def _global_enums(self) -> list['MetaEnum']:
        result = []
        for enum in self.model.global_enums:
            if self.db.is_enum_rejected('', enum.name):
                continue
            if enum.type_entry is None:
                self.report.warning(f'enum {enum.name} has no type entry, skipped')
                continue
            result.append(enum)
        return result

    @property
    def type_indices(self) -> TypeIndexTable:
        if self._type_indices is None:
            self._type_indices = TypeIndexTable.build(self.model, self.db)
        return self._type_indices

    # -- validation --------------------------------------------------------

    def validate_modifications(self, meta_class: 'MetaClass') -> int:
        """Report rules of the class entry that match nothing.

        Returns the number of offending rules.
        """
        entry = meta_class.type_entry
        if entry is None or not entry.is_complex:
            return 0
        problems = 0
        for mod in entry.function_modifications():
            matches = [f for f in meta_class.functions if f.minimal_signature == mod.signature]
            if not matches:
                name = mod.signature.split('(', 1)[0]
                candidates = [f.minimal_signature for f in meta_class.functions if f.name == name]
                message = (f"signature '{mod.signature}' for function modification in "
                           f"'{meta_class.qualified_name}' not found.")
                if candidates:
                    message += ' Possible candidates: ' + ', '.join(candidates)
                self.report.warning(message)
                problems += 1
                continue
            arity = len(matches[0].arguments)
            for arg_mod in mod.argument_mods:
                if arg_mod.index < 0 or arg_mod.index > arity:
                    self.report.warning(
                        f"argument index {arg_mod.index} of modification '{mod.signature}' in "
                        f"'{meta_class.qualified_name}' is out of range (function has {arity})")
                    problems += 1
        return problems

    # -- per class ---------------------------------------------------------

    def generate_class(self, meta_class: 'MetaClass') -> Optional[str]:
        if meta_class.type_entry is None:
            self.report.warning(
                f'class {meta_class.qualified_name} has no type entry, treated as external')
            return None
        if not self.should_generate(meta_class):
            return None
        self.validate_modifications(meta_class)
        return self.class_gen.generate(meta_class)

    def generate_classes(self) -> dict[str, str]:
        """File name -> wrapper header text, in class iteration order"""
        result = {}
        for meta_class in self.model.ordered_classes():
            text = self.generate_class(meta_class)
            if text is not None:
                result[file_name_for_class(meta_class)] = text
        return result

    # -- module header -----------------------------------------------------

    def write_export_macros(self, gen: CodeGen):
        macro = api_export_macro(self.module)
        gen.lines(
            '#if defined _WIN32 || defined __CYGWIN__',
            f'    #define {macro} __declspec(dllexport)',
            '#else',
            '#if __GNUC__ >= 4',
            f'    #define {macro} __attribute__ ((visibility("default")))',
            '#else',
            f'    #define {macro}',
            '#endif',
            '#endif',
        )
        gen.line()

    def _write_enum_stuff(self, enum: 'MetaEnum', type_stuff: CodeGen,
                          conv_decl: CodeGen, type_functions: CodeGen):
        if enum.type_entry not in self.type_indices:
            return
        for entry in self.enum_gen.entries(enum):
            self.conv_gen.write_type_check_macro(type_stuff, entry)
            self.conv_gen.write_type_converter_decl(conv_decl, entry)
        type_stuff.line()
        conv_decl.line()
        self.enum_gen.generate_type_function(enum, type_functions)

    def finish_generation(self) -> Optional[str]:
        """Text of the aggregate module header, None for an empty module"""
        classes = [c for c in self.model.ordered_classes() if self.should_generate(c)]
        if not classes:
            return None

        class_includes: list[str] = []
        enum_includes: list[str] = []
        type_stuff = CodeGen()
        conv_decl = CodeGen()
        type_functions = CodeGen()
        conv_impl = CodeGen()

        type_stuff.line('// Type indices')
        self.type_indices.write_defines(type_stuff, self.module)
        type_stuff.line()
        type_stuff.line('// This variable stores all python types exported by this module')
        type_stuff.line(f'extern PyTypeObject** {api_variable_name(self.module, self.options.api_prefix)};')
        type_stuff.line()
        type_stuff.line('// Useful macros')

        for enum in self._global_enums():
            if enum.include_file and enum.include_file not in enum_includes:
                enum_includes.append(enum.include_file)
            self._write_enum_stuff(enum, type_stuff, conv_decl, type_functions)

        for meta_class in classes:
            entry = meta_class.type_entry
            if not (entry.is_object or entry.is_value or entry.is_namespace):
                continue

            for inc in [entry.include, *entry.extra_includes]:
                if inc.is_valid() and str(inc) not in class_includes:
                    class_includes.append(str(inc))

            for enum in self._enums_of(meta_class):
                self._write_enum_stuff(enum, type_stuff, conv_decl, type_functions)

            if meta_class.is_namespace:
                continue

            self.conv_gen.write_class_type_function(type_functions, meta_class)
            self.conv_gen.write_copy_cpp_object_function(
                conv_decl, meta_class, self.class_gen.should_generate_cpp_wrapper(meta_class))
            self.conv_gen.write_type_check_macro(type_stuff, entry)
            self.conv_gen.write_type_converter_decl(conv_decl, entry)
            self.conv_gen.write_type_converter_impl(conv_impl, entry)
            type_stuff.line()
            conv_decl.line()

        return self._assemble(class_includes, enum_includes, type_stuff,
                              conv_decl, type_functions, conv_impl)

    def _assemble(self, class_includes: list[str], enum_includes: list[str],
                  type_stuff: CodeGen, conv_decl: CodeGen,
                  type_functions: CodeGen, conv_impl: CodeGen) -> str:
        guard = module_header_guard(self.module)
        s = CodeGen()

        license_text = license_block(self.options.license_comment)
        if license_text:
            s.raw(license_text)
            s.line()

        s.line(f'#ifndef {guard}')
        s.line(f'#define {guard}')
        s.line()
        if not self.options.avoid_protected_hack:
            s.line('//workaround to access protected functions')
            s.line('#define protected public')
            s.line()

        for header in RUNTIME_INCLUDES:
            s.line(f'#include <{header}>')
        s.line()
        s.line('#include <memory>')
        s.line()
        self.write_export_macros(s)

        required = self.db.required_target_imports
        if required:
            s.line('// Module Includes')
            for module in required:
                s.line(f'#include <{module_header_file_name(module)}>')
            s.line()

        s.line('// Class Includes')
        s.lines(*class_includes)
        s.line()

        if enum_includes:
            s.line('// Enum Includes')
            for include in enum_includes:
                s.line(f'#include <{include}>')
            s.line()

        self._write_support_includes(s, '// Conversion Includes - Primitive Types',
                                     self.db.primitive_types())
        self._write_support_includes(s, '// Conversion Includes - Container Types',
                                     self.db.container_types())

        s.line('extern "C"')
        s.line('{')
        s.line()
        s.extend(type_stuff)
        s.line('} // extern "C"')
        s.line()

        s.line('namespace Shiboken')
        s.line('{')
        s.line()
        s.line('// PyType functions, to get the PyObjectType for a type T')
        s.extend(type_functions)
        s.line()
        s.line('// Generated converters declarations ----------------------------------')
        s.line()
        s.extend(conv_decl)
        s.line('} // namespace Shiboken')
        s.line()

        s.line('// User defined converters --------------------------------------------')
        for name, entry in self.db.entries().items():
            if entry.has_conversion_rule():
                s.line(f'// Conversion rule for: {name}')
                s.raw(entry.conversion_rule)
        s.line('// Generated converters implementations -------------------------------')
        s.line()
        s.extend(conv_impl)
        s.line(f'#endif // {guard}')
        return s.output()

    def _write_support_includes(self, s: CodeGen, title: str, entries: list['TypeEntry']):
        if not entries:
            return
        s.line(title)
        seen: list[str] = []
        for entry in entries:
            if entry.include.is_valid() and str(entry.include) not in seen:
                seen.append(str(entry.include))
        s.lines(*seen)
        s.line()

    # -- artifacts ---------------------------------------------------------

    def artifacts(self) -> dict[str, str]:
        """Every artifact of the module: class headers, then the module header"""
        result = self.generate_classes()
        module_header = self.finish_generation()
        if module_header is not None:
            result[module_header_file_name(self.module)] = module_header
        return result

    def output_directory(self, output_root: str) -> str:
        package = self.options.package or self.model.package
        if not package:
            return output_root
        return os.path.join(output_root, *package.split('.'))

    def write(self, output_root: str) -> list[str]:
        """Write every artifact; returns the paths that could not be written"""
        out_dir = self.output_directory(output_root)
        failed = []
        for file_name, text in self.artifacts().items():
            path = os.path.join(out_dir, file_name)
            try:
                os.makedirs(out_dir, exist_ok=True)
                with open(path, 'w', newline='\n') as f:
                    f.write(text)
            except OSError as err:
                self.report.warning(f'could not write {path}: {err}')
                failed.append(path)
                continue
            self.report.debug(f'wrote {path}')
        return failed

    def generate_all(self, output_root: str) -> list[str]:
        """Generate and write the whole module"""
        self.report.progress(f'=== Generating wrapper headers: {self.module}')
        failed = self.write(output_root)
        self.report.progress(
            f'  {len(self.type_indices)} indexed types, '
            f'{self.report.warning_count} warnings '
            f'({self.report.suppressed_count} suppressed)')
        return failed
