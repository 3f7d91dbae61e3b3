from collections.abc import Callable

import pytest

from wrapgen import (
    ClassHeaderGenerator,
    Copyable,
    FunctionModification,
    GeneratorOptions,
    Language,
    MetaModel,
    ReportHandler,
    TypeDatabase,
    object_entry,
    value_entry,
)


@pytest.fixture
def make_class_gen(sample_db: TypeDatabase, report: ReportHandler) -> Callable[..., ClassHeaderGenerator]:
    def _make_class_gen(**overrides: object) -> ClassHeaderGenerator:
        return ClassHeaderGenerator(sample_db, GeneratorOptions(**overrides), report)

    return _make_class_gen


def _model(db: TypeDatabase, *classes: dict) -> MetaModel:
    return MetaModel.from_dict({"module": "sample", "classes": list(classes)}, db)


def _class_lines(text: str, wrapper: str) -> list[str]:
    lines = text.splitlines()
    start = lines.index(f"class {wrapper} : public {wrapper[:-len('Wrapper')]}")
    end = lines.index("};", start)
    return lines[start + 3:end]


def test_polymorphic_class_header(make_class_gen, sample_model: MetaModel) -> None:
    text = make_class_gen().generate(sample_model.find_class("Shape"))

    assert text == (
        "#ifndef SBK_SHAPEWRAPPER_H\n"
        "#define SBK_SHAPEWRAPPER_H\n"
        "\n"
        "#define protected public\n"
        "\n"
        "#include <shiboken.h>\n"
        "\n"
        "#include <shape.h>\n"
        "\n"
        "class ShapeWrapper : public Shape\n"
        "{\n"
        "public:\n"
        "    ShapeWrapper();\n"
        "    virtual double area() const;\n"
        "    virtual void draw(double scale = 1.0);\n"
        "    virtual ~ShapeWrapper();\n"
        "// TEMPLATE - shape_cache - START\n"
        "mutable Shape* m_cache;\n"
        "// TEMPLATE - shape_cache - END\n"
        "};\n"
        "\n"
        "#endif // SBK_SHAPEWRAPPER_H\n"
    )


def test_plain_value_class_has_no_wrapper(make_class_gen, sample_model: MetaModel) -> None:
    class_gen = make_class_gen()
    point = sample_model.find_class("Point")

    assert not class_gen.should_generate_cpp_wrapper(point)
    assert class_gen.generate(point) == (
        "#ifndef SBK_POINTWRAPPER_H\n"
        "#define SBK_POINTWRAPPER_H\n"
        "\n"
        "#define protected public\n"
        "\n"
        "#include <shiboken.h>\n"
        "\n"
        "#include <point.h>\n"
        "\n"
        "#endif // SBK_POINTWRAPPER_H\n"
    )


def test_opaque_class_yields_nothing(make_class_gen, sample_model: MetaModel) -> None:
    assert make_class_gen().generate(sample_model.find_class("Drawing::Canvas")) is None


def test_namespace_never_gets_wrapper(make_class_gen, sample_model: MetaModel) -> None:
    assert not make_class_gen().should_generate_cpp_wrapper(sample_model.find_class("Drawing"))


def test_avoid_protected_hack_emits_forwarders(make_class_gen, sample_model: MetaModel) -> None:
    text = make_class_gen(avoid_protected_hack=True).generate(sample_model.find_class("Shape"))

    assert "#define protected public" not in text
    assert _class_lines(text, "ShapeWrapper")[:6] == [
        "    ShapeWrapper();",
        "    virtual double area() const;",
        "    virtual void draw(double scale = 1.0);",
        "    inline void invalidate_protected() { Shape::invalidate(); }",
        "    inline static int count_protected() { return Shape::count(); }",
        "    virtual ~ShapeWrapper();",
    ]


def test_private_and_rejected_members_are_skipped(make_class_gen, sample_model: MetaModel) -> None:
    text = make_class_gen(avoid_protected_hack=True).generate(sample_model.find_class("Shape"))
    assert "secret" not in text
    assert "debugDump" not in text


def test_replaced_default_expression_is_used(make_class_gen, sample_model: MetaModel) -> None:
    ctor = sample_model.find_class("Point").functions[0]
    assert make_class_gen().argument_list(ctor) == "int x, int y = 0"
    assert make_class_gen().argument_list(ctor, with_defaults=False) == "int x, int y"


def test_copyable_polymorphic_value_gets_copy_ctor(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(value_entry("Widget"))
    model = _model(sample_db, {"name": "Widget", "functions": [
        {"name": "Widget", "constructor": True, "copy_constructor": True,
         "arguments": [{"name": "other", "type": "const Widget &"}]},
        {"name": "paint", "virtual": True},
    ]})

    lines = _class_lines(make_class_gen().generate(model.find_class("Widget")), "WidgetWrapper")

    assert lines == [
        "    WidgetWrapper(const Widget& self) : Widget(self)",
        "    {",
        "    }",
        "",
        "    virtual void paint();",
        "    ~WidgetWrapper();",
    ]


def test_non_copyable_entry_suppresses_copy_ctor(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(value_entry("Widget", copyable=Copyable.NON_COPYABLE))
    model = _model(sample_db, {"name": "Widget", "functions": [
        {"name": "Widget", "constructor": True, "copy_constructor": True,
         "arguments": [{"name": "other", "type": "const Widget &"}]},
        {"name": "paint", "virtual": True},
    ]})
    assert "WidgetWrapper(const Widget& self)" not in make_class_gen().generate(model.find_class("Widget"))


def test_member_emission_policy(make_class_gen, sample_db: TypeDatabase) -> None:
    widget = sample_db.add_type(object_entry("Widget"))
    widget.add_function_modification(FunctionModification(signature="hidden()", removal=Language.ALL))
    widget.add_function_modification(FunctionModification(signature="mustStay()", removal=Language.ALL))
    model = _model(sample_db, {"name": "Widget", "virtual_destructor": True, "functions": [
        {"name": "Widget", "constructor": True, "user_added": True,
         "arguments": [{"name": "v", "type": "int"}]},
        {"name": "hidden", "virtual": True},
        {"name": "mustStay", "virtual": True, "abstract": True},
        {"name": "paint", "virtual": True, "access": "protected"},
        {"name": "layout", "abstract": True, "access": "protected"},
        {"name": "plain"},
    ]})

    lines = _class_lines(
        make_class_gen(avoid_protected_hack=True).generate(model.find_class("Widget")), "WidgetWrapper")

    assert lines == [
        "    virtual void mustStay();",
        "    inline void paint_protected() { Widget::paint(); }",
        "    virtual void paint();",
        "    inline void layout_protected() { Widget::layout(); }",
        "    virtual void layout();",
        "    virtual ~WidgetWrapper();",
    ]


def test_private_destructor_blocks_wrapper_without_protected_hack(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(object_entry("Widget"))
    model = _model(sample_db, {"name": "Widget", "private_destructor": True,
                               "functions": [{"name": "paint", "virtual": True}]})
    widget = model.find_class("Widget")

    assert make_class_gen().should_generate_cpp_wrapper(widget)
    assert not make_class_gen(avoid_protected_hack=True).should_generate_cpp_wrapper(widget)


def test_protected_members_need_wrapper_only_with_avoid_protected_hack(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(object_entry("Widget"))
    model = _model(sample_db, {"name": "Widget", "functions": [{"name": "tick", "access": "protected"}]})
    widget = model.find_class("Widget")

    assert not make_class_gen().should_generate_cpp_wrapper(widget)
    assert make_class_gen(avoid_protected_hack=True).should_generate_cpp_wrapper(widget)


def test_qobject_extensions_add_meta_call_section(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(object_entry("Widget", qobject=True))
    model = _model(sample_db, {"name": "Widget", "functions": []})
    widget = model.find_class("Widget")

    assert not make_class_gen().should_generate_cpp_wrapper(widget)
    text = make_class_gen(use_qobject_extensions=True).generate(widget)
    assert "namespace PySide { class DynamicQMetaObject; }" in text
    assert "    virtual int qt_metacall(QMetaObject::Call call, int id, void** args);" in text
    assert "    mutable PySide::DynamicQMetaObject* m_metaObject;" in text


def test_license_comment_heads_the_header(make_class_gen, sample_model: MetaModel) -> None:
    text = make_class_gen(license_comment="Copyright sample\nAll rights reserved").generate(
        sample_model.find_class("Point"))
    assert text.startswith("/*\n * Copyright sample\n * All rights reserved\n */\n\n#ifndef")


def test_abstract_protected_function_gets_forwarder(make_class_gen, sample_db: TypeDatabase) -> None:
    sample_db.add_type(object_entry("Widget"))
    model = _model(sample_db, {"name": "Widget", "functions": [
        {"name": "layout", "abstract": True, "virtual": True, "access": "protected"},
    ]})

    lines = _class_lines(
        make_class_gen(avoid_protected_hack=True).generate(model.find_class("Widget")), "WidgetWrapper")

    assert lines == [
        "    inline void layout_protected() { Widget::layout(); }",
        "    virtual void layout();",
        "    ~WidgetWrapper();",
    ]
