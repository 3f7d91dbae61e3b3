"""
Sample library rule configuration

Configures the type database for the 'sample' test library:
- Point/Tuple value types with an implicit Tuple -> Point conversion
- Shape object hierarchy with abstract and protected members
- Color enum with its Colors flags
- a raw conversion rule for Handle
"""

from wrapgen import (
    TypeDatabase, Include, IncludeType, CodeSnip, Copyable, TemplateEntry, TemplateInstance,
    FunctionModification, ArgumentModification, Language, SnipPosition,
    primitive_entry, value_entry, object_entry, namespace_entry, container_entry,
    enum_entry, flags_entry, link_enum_flags,
)


# ==============================================================================
# Primitive and container types
# ==============================================================================

def _add_primitives(db: TypeDatabase):
    db.add_type(primitive_entry('int', 'PyInt', include=Include('conversions_int.h')))
    db.add_type(primitive_entry('double', 'PyFloat'))
    db.add_type(primitive_entry('bool', 'PyBool'))
    # 'qreal' is an alias of double that must not win name resolution
    db.add_type(primitive_entry('qreal', 'PyFloat', preferred_target_lang_type=False))
    db.add_type(container_entry('std::list', 'list', include=Include('list')))


# ==============================================================================
# Classes
# ==============================================================================

def _add_classes(db: TypeDatabase):
    db.add_type(value_entry('Tuple', include=Include('tuple.h')))

    point = db.add_type(value_entry('Point', include=Include('point.h')))
    point.add_function_modification(FunctionModification(
        signature='Point(int,int)',
        argument_mods=[ArgumentModification(index=2, replaced_default_expression='0')],
    ))

    shape = db.add_type(object_entry('Shape', include=Include('shape.h'),
                                     copyable=Copyable.NON_COPYABLE))
    declaration = CodeSnip(language=Language.NATIVE, position=SnipPosition.DECLARATION)
    declaration.add_template_instance(TemplateInstance('shape_cache', {'TYPE': 'Shape'}))
    shape.add_code_snip(declaration)

    db.add_type(namespace_entry('Drawing', include=Include('drawing.h')))

    color = db.add_type(enum_entry('Drawing', 'Color'))
    colors = db.add_type(flags_entry('QFlags<Drawing::Color>', flags_name='Colors'))
    link_enum_flags(color, colors)

    handle = db.add_type(value_entry('Handle', include=Include('handle.h', IncludeType.LOCAL_PATH)))
    handle.conversion_rule = '// Handle is converted by hand-written code\n'


def _add_templates(db: TypeDatabase):
    cache = TemplateEntry('shape_cache')
    cache.add_code('mutable ${TYPE}* m_cache;')
    db.add_template(cache)


def configure(db: TypeDatabase):
    """Apply sample library configuration to the type database"""
    _add_primitives(db)
    _add_classes(db)
    _add_templates(db)

    db.add_rejection(class_name='Shape', function_name='debugDump')
    db.add_suppressed_warning('enum * has no type entry*')
    db.add_required_target_import('core')
