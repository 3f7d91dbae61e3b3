"""
Enum binding generation module

Generates the runtime type accessors for enums and their associated flags.
"""

from typing import TYPE_CHECKING

from .codegen import CodeGen, DEFAULT_API_PREFIX, type_object_expr

if TYPE_CHECKING:
    from .entries import TypeEntry
    from .ir import MetaEnum


class EnumGenerator:
    """Generates enum and flags type accessors"""

    def __init__(self, module: str, prefix: str = DEFAULT_API_PREFIX):
        self.module = module
        self.prefix = prefix

    def entries(self, enum: 'MetaEnum') -> list['TypeEntry']:
        """The enum entry followed by its flags entry, when bound"""
        entry = enum.type_entry
        if entry is None:
            return []
        result = [entry]
        if entry.enum.flags is not None:
            result.append(entry.enum.flags)
        return result

    def generate_type_function(self, enum: 'MetaEnum', gen: CodeGen):
        """SbkType<T>() specializations for the enum and its flags"""
        entry = enum.type_entry
        if entry is None:
            return
        self._write_accessor(gen, enum.qualified_name, entry)
        flags = entry.enum.flags
        if flags is not None:
            self._write_accessor(gen, flags.qualified_cpp_name, flags)

    def _write_accessor(self, gen: CodeGen, cpp_name: str, entry: 'TypeEntry'):
        gen.line('template<>')
        gen.line(f'inline PyTypeObject* SbkType<{cpp_name} >() '
                 f'{{ return {type_object_expr(entry, self.module, self.prefix)}; }}')
