import pytest

from eventflow.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Schema bootstrap failed"):
        bootstrap.ensure_schema()


def test_required_columns_cover_the_core_tables():
    assert set(bootstrap.REQUIRED_COLUMNS) == {
        "events",
        "activities",
        "schedules",
        "activity_registries",
        "presences",
    }
    for table_name, columns in bootstrap.REQUIRED_COLUMNS.items():
        table = bootstrap.Base.metadata.tables[table_name]
        assert columns <= set(table.columns.keys())
