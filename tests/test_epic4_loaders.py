from dataclasses import dataclass, field
from pathlib import Path

import pytest

from fieldpath.deserializers import JSONDeserializer, YAMLDeserializer
from fieldpath.errors import ConfigLoadError, FieldNotFoundError, OverrideError
from fieldpath.loader import ConfigLoader
from fieldpath.mock_loader import MockLoader


@dataclass
class Nested:
    field3: bool = False


@dataclass
class Config:
    field1: str = ""
    field2: int = 0
    nested: Nested = field(default_factory=Nested)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_with_yaml_deserializer(tmp_path: Path):
    _write(tmp_path / "main.yaml", "field1: value1\nfield2: 2\nnested:\n  field3: true")

    cfg = Config()
    loader = ConfigLoader("main.yaml", tmp_path, deserializer=YAMLDeserializer())
    loader.load(cfg)

    assert cfg == Config(field1="value1", field2=2, nested=Nested(field3=True))


def test_deserializer_not_set(tmp_path: Path):
    loader = ConfigLoader("nonexistent.yaml", tmp_path)
    with pytest.raises(ConfigLoadError):
        loader.load(Config())


def test_missing_file_propagates(tmp_path: Path):
    loader = ConfigLoader("missing.yaml", tmp_path, deserializer=YAMLDeserializer())
    with pytest.raises(FileNotFoundError):
        loader.load(Config())


def test_override_file_layers_over_main(tmp_path: Path):
    main_dir = tmp_path / "main"
    over_dir = tmp_path / "override"
    main_dir.mkdir()
    over_dir.mkdir()
    _write(main_dir / "app.yaml", "field1: main1\nfield2: 1\nnested:\n  field3: false")
    _write(over_dir / "app.yaml", "field1: override1\nnested:\n  field3: true")

    cfg = Config()
    loader = ConfigLoader(
        "app.yaml",
        main_dir,
        override_name="app.yaml",
        override_path=over_dir,
        deserializer=YAMLDeserializer(),
    )
    loader.load(cfg)

    assert cfg.field1 == "override1"
    assert cfg.field2 == 1
    assert cfg.nested.field3 is True


def test_override_file_with_its_own_deserializer(tmp_path: Path):
    _write(tmp_path / "app.yaml", "field1: main1\nfield2: 1")
    _write(tmp_path / "local.json", '{"field2": 5}')

    cfg = Config()
    ConfigLoader(
        "app.yaml",
        tmp_path,
        override_name="local.json",
        override_path=tmp_path,
        deserializer=YAMLDeserializer(),
        override_deserializer=JSONDeserializer(),
    ).load(cfg)

    assert (cfg.field1, cfg.field2) == ("main1", 5)


def test_path_overrides_applied_last(tmp_path: Path):
    _write(tmp_path / "app.yaml", "field1: value1\nfield2: 2")

    cfg = Config()
    loader = ConfigLoader("app.yaml", tmp_path, deserializer=YAMLDeserializer())
    loader.override("field1", "newvalue1")
    loader.override("nested.field3", True)
    loader.load(cfg)

    assert cfg == Config(field1="newvalue1", field2=2, nested=Nested(field3=True))


def test_failed_overrides_are_aggregated(tmp_path: Path):
    _write(tmp_path / "app.yaml", "field1: value1")

    cfg = Config()
    loader = ConfigLoader(
        "app.yaml",
        tmp_path,
        deserializer=YAMLDeserializer(),
        overrides={"field2": 7, "renamed_field": 1, "nested.field3": "yes"},
    )
    with pytest.raises(OverrideError) as exc:
        loader.load(cfg)

    assert sorted(e.path for e in exc.value.errors) == ["nested.field3", "renamed_field"]
    assert cfg.field2 == 7


def test_mock_loader_end_to_end():
    cfg = Config()
    loader = MockLoader({"field1": "value1", "field2": 2, "nested.field3": True})
    loader.load(cfg)
    assert cfg == Config(field1="value1", field2=2, nested=Nested(field3=True))

    loader.override("field1", "newvalue1")
    loader.override("nested.field3", False)
    loader.load(cfg)
    assert cfg == Config(field1="newvalue1", field2=2, nested=Nested(field3=False))


def test_mock_loader_rejects_unknown_base_field():
    loader = MockLoader({"field1": "value1", "field_x": "oops"})
    with pytest.raises(FieldNotFoundError):
        loader.load(Config())


def test_mock_loader_soft_override_failures():
    cfg = Config()
    loader = MockLoader({"field1": "value1"})
    loader.override("field2", 9)
    loader.override("gone", 1)

    with pytest.raises(OverrideError) as exc:
        loader.load(cfg)

    assert [e.path for e in exc.value.errors] == ["gone"]
    assert cfg.field2 == 9
