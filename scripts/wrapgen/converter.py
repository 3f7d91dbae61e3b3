"""
Type conversion module

Generates type-check predicates, converter declarations and the implicit
conversion dispatch (isConvertible / toCpp) for value types.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .codegen import (
    CodeGen, DEFAULT_API_PREFIX, check_function_name, converter_type_name,
    type_object_expr,
)

if TYPE_CHECKING:
    from .diagnostics import ReportHandler
    from .entries import TypeEntry
    from .ir import MetaClass, MetaFunction, MetaModel


@dataclass
class ConversionSource:
    """One resolved implicit conversion path into a value type"""
    function: 'MetaFunction'
    source: 'TypeEntry'
    is_pointer: bool = False

    @property
    def removed(self) -> bool:
        return self.function.is_modified_removed()


class ConverterGenerator:
    """Generates type checks and converters for type entries"""

    def __init__(self, model: 'MetaModel', module: str, report: 'ReportHandler',
                 prefix: str = DEFAULT_API_PREFIX):
        self.model = model
        self.module = module
        self.report = report
        self.prefix = prefix
        self._sources: dict[str, list[ConversionSource]] = {}

    # -- type checks -------------------------------------------------------

    def write_type_check_macro(self, gen: CodeGen, entry: 'TypeEntry'):
        """Is-instance-or-subclass and is-exact-type predicates"""
        type_obj = type_object_expr(entry, self.module, self.prefix)
        check = check_function_name(entry, self.prefix)
        gen.line(f'#define {check}(op) PyObject_TypeCheck(op, {type_obj})')
        gen.line(f'#define {check}Exact(op) ((op)->ob_type == {type_obj})')

    def write_class_type_function(self, gen: CodeGen, meta_class: 'MetaClass'):
        gen.line('template<>')
        gen.line(f'inline PyTypeObject* SbkType<{meta_class.qualified_name} >() '
                 f'{{ return {type_object_expr(meta_class.type_entry, self.module, self.prefix)}; }}')

    def write_copy_cpp_object_function(self, gen: CodeGen, meta_class: 'MetaClass',
                                       has_wrapper: bool):
        """Mark value classes whose instances are held by a wrapper"""
        if not meta_class.type_entry.is_value or not has_wrapper:
            return
        gen.line('template <>')
        gen.line(f'struct SbkTypeInfo<{meta_class.qualified_name} >')
        with gen.block('{', '};'):
            gen.line('static const bool isCppWrapper = true;')

    # -- implicit conversions ----------------------------------------------

    def implicit_conversions(self, entry: 'TypeEntry') -> list[ConversionSource]:
        """Non user-added conversion sources, in registration order.

        A source whose input type has no type entry is opaque and is
        dropped with a diagnostic; the remaining sources keep their order.
        """
        cached = self._sources.get(entry.qualified_cpp_name)
        if cached is not None:
            return cached
        sources = []
        for func in self.model.implicit_conversions(entry):
            if func.is_user_added:
                continue
            source = self._conversion_source(entry, func)
            if source is not None:
                sources.append(source)
        self._sources[entry.qualified_cpp_name] = sources
        return sources

    def _conversion_source(self, entry: 'TypeEntry', func: 'MetaFunction') -> Optional[ConversionSource]:
        if func.is_conversion_operator:
            owner_entry = func.owner.type_entry if func.owner else None
            if owner_entry is None:
                self.report.warning(
                    f'conversion operator {func.signature} into {entry.name} '
                    f'belongs to a class without type entry, skipped')
                return None
            return ConversionSource(func, owner_entry, is_pointer=owner_entry.is_object)

        arg_type = func.arguments[0].type
        if arg_type.entry is None:
            self.report.warning(
                f'implicit conversion {entry.name}::{func.signature} uses unknown '
                f'type {arg_type.name}, skipped')
            return None
        # Primitives have no slot in the type array, only an API check
        if arg_type.entry.is_primitive and not arg_type.entry.primitive.target_lang_api_name:
            self.report.warning(
                f'implicit conversion {entry.name}::{func.signature} uses primitive '
                f'{arg_type.name} without a check function, skipped')
            return None
        return ConversionSource(func, arg_type.entry, is_pointer=arg_type.indirections > 0)

    def _is_pointer_converter(self, entry: 'TypeEntry') -> bool:
        meta_class = self.model.find_class(entry.qualified_cpp_name)
        return (meta_class is not None and meta_class.is_abstract) or entry.is_object

    def write_type_converter_decl(self, gen: CodeGen, entry: 'TypeEntry'):
        is_pointer = self._is_pointer_converter(entry)
        type_name = converter_type_name(entry, is_pointer)
        has_implicit = entry.is_value and bool(self.implicit_conversions(entry))

        base = 'Converter_CppEnum' if (entry.is_enum or entry.is_flags) else 'ConverterBase'
        gen.line('template<>')
        gen.line(f'struct Converter<{type_name} > : {base}<{type_name} >')
        with gen.block('{', '};'):
            if has_implicit:
                gen.line(f'static {entry.qualified_cpp_name} toCpp(PyObject* pyobj);')
                gen.line('static bool isConvertible(PyObject* pyobj);')

    def write_type_converter_impl(self, gen: CodeGen, entry: 'TypeEntry'):
        """isConvertible / toCpp definitions for types with implicit sources.

        Nothing is written when the entry carries its own conversion rule
        or has no implicit conversion source.
        """
        if entry.has_conversion_rule():
            return
        sources = self.implicit_conversions(entry)
        if not sources:
            return

        name = entry.qualified_cpp_name

        gen.line(f'inline bool Shiboken::Converter<{name} >::isConvertible(PyObject* pyobj)')
        gen.line('{')
        gen.indent()
        checks = [f'{check_function_name(s.source, self.prefix)}(pyobj)' for s in sources]
        gen.line('return ' + checks[0] + ('' if len(checks) > 1 else ';'))
        gen.indent()
        for i, check in enumerate(checks[1:], start=2):
            gen.line(f'|| {check}' + (';' if i == len(checks) else ''))
        gen.dedent()
        gen.dedent()
        gen.line('}')
        gen.line()

        gen.line(f'inline {name} Shiboken::Converter<{name} >::toCpp(PyObject* pyobj)')
        gen.line('{')
        gen.indent()
        gen.line(f'if (!{check_function_name(entry, self.prefix)}(pyobj)) {{')
        gen.indent()
        first = True
        for source in sources:
            if source.removed:
                continue
            keyword = 'if' if first else 'else if'
            first = False
            gen.line(f'{keyword} ({check_function_name(source.source, self.prefix)}(pyobj))')
            gen.indent()
            gen.line(f'return {name}({self._to_cpp_expr(source)});')
            gen.dedent()
        gen.dedent()
        gen.line('}')
        gen.line(f'return *(({name}*)Shiboken::getCppPointer(pyobj, SbkType<{name} >()));')
        gen.dedent()
        gen.line('}')
        gen.line()

    def _to_cpp_expr(self, source: ConversionSource) -> str:
        type_name = converter_type_name(source.source, source.is_pointer)
        expr = f'Shiboken::Converter<{type_name} >::toCpp(pyobj)'
        if source.function.is_conversion_operator and source.is_pointer:
            return '*' + expr
        return expr
