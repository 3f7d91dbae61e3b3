"""
Wrapper header generation module

Generates, per class, the declaration of the wrapper subclass that
intercepts virtual, abstract and protected behaviour of a native class.
"""

from typing import Optional, TYPE_CHECKING

from .codegen import CodeGen, header_guard, license_block, wrapper_name
from .entries import Copyable
from .modifications import Language, SnipPosition

if TYPE_CHECKING:
    from .database import TypeDatabase
    from .diagnostics import ReportHandler
    from .generator import GeneratorOptions
    from .ir import MetaClass, MetaFunction


class ClassHeaderGenerator:
    """Generates the wrapper declaration unit of one class"""

    def __init__(self, db: 'TypeDatabase', options: 'GeneratorOptions', report: 'ReportHandler'):
        self.db = db
        self.options = options
        self.report = report

    # -- decisions ---------------------------------------------------------

    def needs_lifecycle_hook(self, meta_class: 'MetaClass') -> bool:
        entry = meta_class.type_entry
        if entry.is_qobject and self.options.use_qobject_extensions:
            return True
        if entry.custom_constructor.is_valid() or entry.custom_destructor.is_valid():
            return True
        return bool(entry.code_snips_for(SnipPosition.DECLARATION, Language.NATIVE))

    def should_generate_cpp_wrapper(self, meta_class: 'MetaClass') -> bool:
        """A wrapper subclass is needed for polymorphic or hooked classes"""
        entry = meta_class.type_entry
        if entry is None or not entry.generate_code() or meta_class.is_namespace:
            return False
        if self.options.avoid_protected_hack and meta_class.has_private_destructor:
            return False
        if meta_class.has_virtual_functions():
            return True
        if self.options.avoid_protected_hack and meta_class.has_protected_functions():
            return True
        return self.needs_lifecycle_hook(meta_class)

    def is_copyable(self, meta_class: 'MetaClass') -> bool:
        if meta_class.is_namespace:
            return False
        copyable = meta_class.type_entry.copyable
        if copyable == Copyable.COPYABLE:
            return True
        if copyable == Copyable.NON_COPYABLE:
            return False
        return meta_class.has_clone_operator()

    def filter_functions(self, meta_class: 'MetaClass') -> list['MetaFunction']:
        return [f for f in meta_class.functions
                if not self.db.is_function_rejected(meta_class.qualified_name, f.name)]

    # -- signatures --------------------------------------------------------

    def argument_list(self, func: 'MetaFunction', with_defaults: bool = True) -> str:
        parts = []
        mods = func.modifications()
        for i, arg in enumerate(func.arguments, start=1):
            text = f'{arg.type.cpp_signature} {arg.name}'
            if with_defaults:
                default = arg.default_value
                for mod in mods:
                    arg_mod = mod.argument_modification(i)
                    if arg_mod is None:
                        continue
                    if arg_mod.removed_default_expression:
                        default = ''
                    if arg_mod.replaced_default_expression:
                        default = arg_mod.replaced_default_expression
                if default:
                    text += f' = {default}'
            parts.append(text)
        return ', '.join(parts)

    def function_signature(self, func: 'MetaFunction', wrapper: str, suffix: str = '') -> str:
        args = self.argument_list(func)
        if func.is_constructor:
            return f'{wrapper}({args})'
        ret = func.return_type.cpp_signature if func.return_type else 'void'
        sig = f'{ret} {func.name}{suffix}({args})'
        if func.is_constant:
            sig += ' const'
        return sig

    # -- emission ----------------------------------------------------------

    def write_copy_ctor(self, gen: CodeGen, meta_class: 'MetaClass'):
        name = meta_class.qualified_name
        gen.line(f'{wrapper_name(meta_class)}(const {name}& self) : {name}(self)')
        gen.line('{')
        gen.line('}')
        gen.line()

    def write_function(self, gen: CodeGen, func: 'MetaFunction', wrapper: str):
        # Copy constructors go through the single synthesized forwarder
        if func.is_copy_constructor:
            return

        # Added constructors already exist through the added-function mechanism
        if func.is_constructor and func.is_user_added:
            return

        if func.is_private or (func.is_modified_removed() and not func.is_abstract):
            return

        if (self.options.avoid_protected_hack and func.is_protected
                and not func.is_constructor):
            owner = func.owner.qualified_name
            static = 'static ' if func.is_static else ''
            ret = 'return ' if func.return_type else ''
            call_args = ', '.join(a.name for a in func.arguments)
            signature = self.function_signature(func, wrapper, '_protected')
            gen.line(f'inline {static}{signature} {{ {ret}{owner}::{func.name}({call_args}); }}')

        if func.is_constructor or func.is_abstract or func.is_virtual:
            prefix = 'virtual ' if (func.is_virtual or func.is_abstract) else ''
            gen.line(f'{prefix}{self.function_signature(func, wrapper)};')

    def write_code_snips(self, gen: CodeGen, meta_class: 'MetaClass',
                         position: SnipPosition, language: Language):
        for snip in meta_class.type_entry.code_snips_for(position, language):
            code = snip.code(self.db, self.report)
            if code:
                gen.raw(code)

    def _includes(self, meta_class: 'MetaClass') -> list[str]:
        entry = meta_class.type_entry
        result: list[str] = []
        if entry.include.is_valid():
            result.append(str(entry.include))
        for inc in entry.extra_includes:
            if str(inc) not in result:
                result.append(str(inc))
        return result

    def generate(self, meta_class: 'MetaClass') -> Optional[str]:
        """Text of the class's wrapper header, None for opaque classes"""
        if meta_class.type_entry is None:
            return None
        self.report.debug(f'Generating header for {meta_class.qualified_name}')

        wrapper = wrapper_name(meta_class)
        guard = header_guard(wrapper)
        gen = CodeGen()

        license_text = license_block(self.options.license_comment)
        if license_text:
            gen.raw(license_text)
            gen.line()

        gen.line(f'#ifndef {guard}')
        gen.line(f'#define {guard}')
        gen.line()

        if not self.options.avoid_protected_hack:
            gen.line('#define protected public')
            gen.line()

        gen.line('#include <shiboken.h>')
        gen.line()

        includes = self._includes(meta_class)
        if includes:
            gen.lines(*includes)
            gen.line()

        if self.should_generate_cpp_wrapper(meta_class):
            qobject_ext = self.options.use_qobject_extensions and meta_class.is_qobject
            if qobject_ext:
                gen.line('namespace PySide { class DynamicQMetaObject; }')
                gen.line()

            gen.line(f'class {wrapper} : public {meta_class.qualified_name}')
            gen.line('{')
            gen.line('public:')
            gen.indent()

            if self.is_copyable(meta_class):
                self.write_copy_ctor(gen, meta_class)

            for func in self.filter_functions(meta_class):
                self.write_function(gen, func, wrapper)

            virtual = 'virtual ' if meta_class.has_virtual_destructor else ''
            gen.line(f'{virtual}~{wrapper}();')

            self.write_code_snips(gen, meta_class, SnipPosition.DECLARATION, Language.NATIVE)
            gen.dedent()

            if qobject_ext:
                gen.line('public:')
                gen.line('    virtual int qt_metacall(QMetaObject::Call call, int id, void** args);')
                gen.line('private:')
                gen.line('    mutable PySide::DynamicQMetaObject* m_metaObject;')

            gen.line('};')
            gen.line()

        gen.line(f'#endif // {guard}')
        return gen.output()
