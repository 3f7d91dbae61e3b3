"""
Code generation utilities

Provides the indentation-aware text builder and the name mangling shared by
every generated artifact. Names derived here are referenced across
artifacts, so they must only depend on qualified native names.
"""

import re
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .entries import TypeEntry
    from .ir import MetaClass

DEFAULT_API_PREFIX = 'Sbk'
TYPE_INDEX_FIELD_WIDTH = 60


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self, indent_str: str = '    '):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = indent_str

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def raw(self, text: str):
        """Add raw text without indentation processing; may span lines"""
        if text.endswith('\n'):
            text = text[:-1]
        self._lines.extend(text.split('\n'))

    def extend(self, other: 'CodeGen'):
        """Append another builder's lines verbatim"""
        self._lines.extend(other._lines)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = '}'):
        """Context manager for code blocks"""
        return _BlockContext(self, header, footer)

    def output(self) -> str:
        """Get generated code as string, newline terminated"""
        if not self._lines:
            return ''
        return '\n'.join(self._lines) + '\n'


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str):
        self._gen = gen
        self._header = header
        self._footer = footer

    def __enter__(self):
        self._gen.line(self._header)
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


def mangle(name: str) -> str:
    """Turn a qualified native name into an identifier fragment

    Examples:
        Outer::Inner      -> Outer_Inner
        QFlags<Color>     -> QFlags_Color
        std::list<int *>  -> std_list_int
    """
    return re.sub(r'\W+', '_', name).strip('_')


def type_index_name(entry: 'TypeEntry') -> str:
    """SBK_OUTER_INNER_IDX"""
    return f'SBK_{mangle(entry.qualified_cpp_name).upper()}_IDX'


def idx_count_name(module: str) -> str:
    return f'SBK_{mangle(module).upper()}_IDX_COUNT'


def api_variable_name(module: str, prefix: str = DEFAULT_API_PREFIX) -> str:
    """Name of the module's runtime type array"""
    return f'{prefix}{mangle(module)}Types'


def check_function_name(entry: 'TypeEntry', prefix: str = DEFAULT_API_PREFIX) -> str:
    """Name of the is-instance-or-subclass predicate for entry"""
    if entry.is_primitive and entry.primitive.target_lang_api_name:
        return f'{entry.primitive.target_lang_api_name}_Check'
    return f'{prefix}{mangle(entry.qualified_cpp_name)}_Check'


def type_object_expr(entry: 'TypeEntry', module: str, prefix: str = DEFAULT_API_PREFIX) -> str:
    """Expression fetching entry's type object from the type array"""
    return f'{api_variable_name(module, prefix)}[{type_index_name(entry)}]'


def type_index_define(entry: 'TypeEntry', idx: int) -> str:
    return f'#define {type_index_name(entry):<{TYPE_INDEX_FIELD_WIDTH}} {idx}'


def wrapper_name(meta_class: 'MetaClass') -> str:
    return mangle(meta_class.qualified_name) + 'Wrapper'


def header_guard(name: str, suffix: str = 'H') -> str:
    return f'SBK_{mangle(name).upper()}_{suffix}'


def file_name_for_class(meta_class: 'MetaClass') -> str:
    return meta_class.qualified_name.lower().replace('::', '_') + '_wrapper.h'


def module_header_file_name(module: str) -> str:
    return f'{mangle(module).lower()}_python.h'


def module_header_guard(module: str) -> str:
    return header_guard(module, 'PYTHON_H')


def api_export_macro(module: str) -> str:
    return f'{mangle(module).upper()}_API'


def converter_type_name(entry: 'TypeEntry', is_pointer: bool = False) -> str:
    """Template argument naming entry in Converter<...> specializations"""
    return entry.qualified_cpp_name + ('*' if is_pointer else '')


def license_block(text: Optional[str]) -> str:
    """Wrap a license text into a C comment block"""
    if not text:
        return ''
    body = '\n'.join(f' * {line}'.rstrip() for line in text.strip().splitlines())
    return f'/*\n{body}\n */\n'
