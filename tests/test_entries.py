import pytest

from wrapgen import (
    AddedFunction,
    CodeGeneration,
    CodeSnip,
    ContainerKind,
    FieldModification,
    Include,
    IncludeType,
    Language,
    TypeEntry,
    TypeKind,
    TypeSystemError,
    container_entry,
    enum_entry,
    flags_entry,
    interface_entry_for,
    link_enum_flags,
    object_entry,
    primitive_entry,
    value_entry,
)
from wrapgen.entries import EnumPayload, PrimitivePayload
from wrapgen.modifications import SnipPosition


def test_empty_name_is_rejected() -> None:
    with pytest.raises(TypeSystemError):
        TypeEntry("", TypeKind.VOID)


def test_mismatched_payload_is_rejected() -> None:
    with pytest.raises(TypeSystemError, match="needs PrimitivePayload"):
        TypeEntry("int", TypeKind.PRIMITIVE, EnumPayload())


def test_payloadless_kind_refuses_payload() -> None:
    with pytest.raises(TypeSystemError, match="takes no payload"):
        TypeEntry("void", TypeKind.VOID, PrimitivePayload())


def test_payload_is_created_for_kind_when_omitted() -> None:
    entry = TypeEntry("int", TypeKind.PRIMITIVE)
    assert isinstance(entry.payload, PrimitivePayload)
    assert entry.primitive.preferred_target_lang_type


def test_wrong_payload_accessor_raises() -> None:
    entry = value_entry("Point")
    with pytest.raises(TypeSystemError):
        entry.enum


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (CodeGeneration.ALL, True),
        (CodeGeneration.CODE, True),
        (CodeGeneration.TARGET_LANG, True),
        (CodeGeneration.NATIVE, True),
        (CodeGeneration.FOR_SUBCLASS, False),
        (CodeGeneration.NOTHING, False),
    ],
)
def test_generate_code_policy(policy: CodeGeneration, expected: bool) -> None:
    entry = value_entry("Point", code_generation=policy)
    assert entry.generate_code() is expected


def test_default_generation_by_kind() -> None:
    assert value_entry("Point").code_generation == CodeGeneration.ALL
    assert not container_entry("std::list", "list").generate_code()
    assert not TypeEntry("QString", TypeKind.STRING).generate_code()


def test_container_kind_from_string() -> None:
    entry = container_entry("std::map", "map")
    assert entry.complex.container_kind == ContainerKind.MAP
    with pytest.raises(TypeSystemError, match="unknown container kind"):
        container_entry("std::deque", "deque")


def test_extra_includes_deduplicate_by_name() -> None:
    entry = value_entry("Point", extra_includes=[Include("a.h"), Include("a.h", IncludeType.LOCAL_PATH)])
    entry.add_extra_include(Include("b.h"))
    entry.add_extra_include(Include("a.h"))
    assert [inc.name for inc in entry.extra_includes] == ["a.h", "b.h"]


@pytest.mark.parametrize(
    ("include", "text"),
    [
        (Include("point.h"), "#include <point.h>"),
        (Include("point.h", IncludeType.LOCAL_PATH), '#include "point.h"'),
        (Include("sample.core", IncludeType.TARGET_LANG_IMPORT), "import sample.core;"),
    ],
)
def test_include_rendering(include: Include, text: str) -> None:
    assert str(include) == text


def test_enum_and_flags_link_both_ways() -> None:
    color = enum_entry("Drawing", "Color", package="sample")
    colors = flags_entry("QFlags<Drawing::Color>", flags_name="Colors")
    link_enum_flags(color, colors)

    assert color.name == "Drawing::Color"
    assert color.enum.flags is colors
    assert colors.flags.originator is color
    assert colors.flags.original_name == "QFlags<Drawing::Color>"
    assert colors.target_lang_name == "Colors"
    assert colors.target_lang_package == "sample"
    assert color.qualified_target_lang_name == "sample.Drawing.Color"


def test_interface_relation() -> None:
    shape = object_entry("Shape", package="sample")
    interface = interface_entry_for(shape)

    assert interface.is_interface
    assert interface.name == "ShapeInterface"
    assert interface.qualified_cpp_name == "Shape"
    assert interface.complex.origin == "Shape"
    assert shape.complex.designated_interface == "ShapeInterface"


def test_interface_requires_object_origin() -> None:
    with pytest.raises(TypeSystemError):
        interface_entry_for(value_entry("Point"))


def test_primitive_alias_chain() -> None:
    double = primitive_entry("double", "PyFloat")
    qreal = primitive_entry("qreal", "PyFloat", aliased=double)
    real = primitive_entry("real", aliased=qreal)
    assert real.basic_aliased_entry is double
    assert double.basic_aliased_entry is double


def test_code_snips_filter_by_position_and_language() -> None:
    entry = object_entry("Shape")
    decl = CodeSnip(language=Language.NATIVE, position=SnipPosition.DECLARATION)
    begin = CodeSnip(language=Language.TARGET_LANG, position=SnipPosition.BEGINNING)
    entry.add_code_snip(decl)
    entry.add_code_snip(begin)

    assert entry.code_snips_for(SnipPosition.DECLARATION, Language.NATIVE) == [decl]
    assert entry.code_snips_for(SnipPosition.DECLARATION, Language.TARGET_LANG) == []


def test_enum_bounds_and_values() -> None:
    color = enum_entry("", "Color")
    assert color.is_bounds_checked
    color.enum.lower_bound = "Red"
    assert not color.is_bounds_checked

    color.enum.rejected_values.append("Invalid")
    color.enum.redirections["Grey"] = "Gray"
    assert color.is_enum_value_rejected("Invalid")
    assert color.enum_value_redirection("Grey") == "Gray"
    assert color.enum_value_redirection("Red") == ""


def test_field_modifications_and_added_functions() -> None:
    entry = value_entry("Point")
    entry.add_field_modification(FieldModification(name="m_x", writable=False, renamed_to="x"))
    entry.add_new_function(AddedFunction.from_signature("length()", return_type="double"))

    assert not entry.field_modification("m_x").writable
    assert entry.field_modification("m_x").is_rename_modifier
    assert entry.field_modification("m_y").writable
    assert [f.name for f in entry.complex.added_functions] == ["length"]


def test_native_id_based_kinds() -> None:
    assert value_entry("Point").is_native_id_based
    assert object_entry("Shape").is_native_id_based
    assert not container_entry("std::list", "list").is_native_id_based
    assert not primitive_entry("int").is_native_id_based
