import pytest

from wrapgen import FunctionModification, Language, MetaModel, MetaType, TypeDatabase
from wrapgen.ir import Access
from wrapgen.modifications import Access as ModAccess


@pytest.mark.parametrize(
    ("text", "name", "const", "ref", "ptr", "signature"),
    [
        ("int", "int", False, False, 0, "int"),
        ("const Tuple &", "Tuple", True, True, 0, "const Tuple&"),
        ("Node *", "Node", False, False, 1, "Node*"),
        ("char **", "char", False, False, 2, "char**"),
        ("const  std::list<int> &", "std::list<int>", True, True, 0, "const std::list<int>&"),
    ],
)
def test_meta_type_parse(text: str, name: str, const: bool, ref: bool, ptr: int, signature: str) -> None:
    parsed = MetaType.parse(text)
    assert parsed.name == name
    assert parsed.is_constant is const
    assert parsed.is_reference is ref
    assert parsed.indirections == ptr
    assert parsed.cpp_signature == signature


def test_meta_type_binds_entries(sample_db: TypeDatabase) -> None:
    assert MetaType.parse("const Tuple &", sample_db).entry is sample_db.find_type("Tuple")
    assert MetaType.parse("std::list<int>", sample_db).entry is sample_db.find_container_type("std::list")
    assert MetaType.parse("Unknown *", sample_db).is_opaque


def test_classes_bind_type_entries(sample_model: MetaModel, sample_db: TypeDatabase) -> None:
    point = sample_model.find_class("Point")
    assert point.type_entry is sample_db.find_type("Point")
    assert sample_model.find_class("Drawing").is_namespace
    assert sample_model.find_class("Drawing::Canvas").type_entry is None
    assert sample_model.find_class("Missing") is None


def test_ordered_classes_visit_outer_before_inner(sample_model: MetaModel) -> None:
    names = [c.qualified_name for c in sample_model.ordered_classes()]
    assert names == ["Tuple", "Point", "Shape", "Drawing", "Drawing::Canvas", "Handle"]


def test_inner_class_listed_before_outer_is_still_visited_after_it(sample_db: TypeDatabase) -> None:
    model = MetaModel.from_dict(
        {
            "module": "m",
            "classes": [
                {"name": "Outer::Inner", "enclosing": "Outer"},
                {"name": "Outer"},
                {"name": "Outer::Inner::Deep", "enclosing": "Outer::Inner"},
            ],
        },
        sample_db,
    )
    names = [c.qualified_name for c in model.ordered_classes()]
    assert names == ["Outer", "Outer::Inner", "Outer::Inner::Deep"]


def test_function_signatures_are_normalized(sample_model: MetaModel) -> None:
    point = sample_model.find_class("Point")
    assert [f.minimal_signature for f in point.functions] == [
        "Point(int,int)",
        "Point(const Tuple&)",
        "Point(const Point&)",
        "x()",
        "y()",
    ]
    assert all(f.owner is point for f in point.functions)


def test_function_modifications_are_found_by_signature(sample_model: MetaModel) -> None:
    ctor = sample_model.find_class("Point").functions[0]
    mods = ctor.modifications()
    assert len(mods) == 1
    assert mods[0].argument_modification(2).replaced_default_expression == "0"


def test_implicit_conversion_candidates(sample_model: MetaModel) -> None:
    point = sample_model.find_class("Point")
    two_args, from_tuple, copy, *_ = point.functions
    assert not two_args.is_implicit_conversion()
    assert from_tuple.is_implicit_conversion()
    assert not copy.is_implicit_conversion()


def test_model_implicit_conversions_include_conversion_operators(sample_db: TypeDatabase) -> None:
    model = MetaModel.from_dict(
        {
            "module": "m",
            "classes": [
                {"name": "Point", "functions": [
                    {"name": "Point", "constructor": True,
                     "arguments": [{"name": "t", "type": "const Tuple &"}]},
                    {"name": "Point", "constructor": True, "explicit": True,
                     "arguments": [{"name": "v", "type": "int"}]},
                ]},
                {"name": "Tuple", "functions": [
                    {"name": "operator Point", "conversion_operator": True, "return_type": "Point"},
                ]},
            ],
        },
        sample_db,
    )
    conversions = model.implicit_conversions(sample_db.find_type("Point"))
    assert [f.name for f in conversions] == ["Point", "operator Point"]
    assert model.implicit_conversions(sample_db.find_type("Shape")) == []


def test_removed_and_access_modifications(sample_db: TypeDatabase) -> None:
    shape = sample_db.find_type("Shape")
    shape.add_function_modification(FunctionModification(signature="draw(double)", removal=Language.ALL))
    shape.add_function_modification(
        FunctionModification(signature="invalidate()", access=ModAccess.PUBLIC, renamed_to="reset"))
    model = MetaModel.from_dict(
        {
            "module": "m",
            "classes": [{"name": "Shape", "functions": [
                {"name": "draw", "virtual": True, "arguments": [{"name": "s", "type": "double"}]},
                {"name": "invalidate", "access": "protected"},
            ]}],
        },
        sample_db,
    )
    draw, invalidate = model.find_class("Shape").functions
    assert draw.is_modified_removed()
    assert draw.is_modified_removed(Language.TARGET_LANG)
    assert not invalidate.is_modified_removed()
    assert invalidate.effective_access == Access.PUBLIC
    assert not invalidate.is_protected
    assert invalidate.target_name == "reset"


def test_partial_removal_is_not_full_removal(sample_db: TypeDatabase) -> None:
    shape = sample_db.find_type("Shape")
    shape.add_function_modification(FunctionModification(signature="draw()", removal=Language.TARGET_LANG))
    model = MetaModel.from_dict(
        {"module": "m", "classes": [{"name": "Shape", "functions": [{"name": "draw"}]}]},
        sample_db,
    )
    draw = model.find_class("Shape").functions[0]
    assert draw.is_modified_removed(Language.TARGET_LANG)
    assert not draw.is_modified_removed()


def test_enums_bind_entries(sample_model: MetaModel, sample_db: TypeDatabase) -> None:
    color = sample_model.find_class("Drawing").enums[0]
    assert color.qualified_name == "Drawing::Color"
    assert color.type_entry is sample_db.find_type("Drawing::Color")
    assert [v.value for v in color.values] == [1, 2, 4]

    mode = sample_model.global_enums[0]
    assert mode.type_entry is None
    assert mode.include_file == "mode.h"
