import io
import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

from bindings import sample  # noqa: E402
from wrapgen import (  # noqa: E402
    GeneratorOptions,
    HeaderGenerator,
    MetaModel,
    ReportHandler,
    TypeDatabase,
)

DATA_DIR = Path(__file__).resolve().parent / "data"
SAMPLE_METAMODEL = DATA_DIR / "sample_metamodel.json"


@pytest.fixture
def db() -> TypeDatabase:
    return TypeDatabase()


@pytest.fixture
def sample_db() -> TypeDatabase:
    database = TypeDatabase()
    sample.configure(database)
    return database


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def report(sample_db: TypeDatabase, stream: io.StringIO) -> ReportHandler:
    return ReportHandler(sample_db, stream=stream)


@pytest.fixture
def sample_metamodel_dict() -> dict:
    return json.loads(SAMPLE_METAMODEL.read_text(encoding="utf-8"))


@pytest.fixture
def sample_model(sample_db: TypeDatabase, sample_metamodel_dict: dict) -> MetaModel:
    return MetaModel.from_dict(sample_metamodel_dict, sample_db)


@pytest.fixture
def make_generator(
    sample_db: TypeDatabase, sample_model: MetaModel, report: ReportHandler
) -> Callable[..., HeaderGenerator]:
    def _make_generator(**overrides: object) -> HeaderGenerator:
        options = GeneratorOptions(**overrides)
        return HeaderGenerator(sample_db, sample_model, options, report)

    return _make_generator


@pytest.fixture
def make_class_decl() -> Callable[..., dict]:
    def _make_class_decl(name: str, *functions: dict, **extra: object) -> dict:
        decl: dict = {"name": name, "functions": list(functions)}
        decl.update(extra)
        return decl

    return _make_class_decl
