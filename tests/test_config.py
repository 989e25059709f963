from __future__ import annotations

import pytest
from bson import ObjectId

from softdelete.config import SoftDeleteOptions, load_options_from_env
from softdelete.errors import ConfigurationError

_ENV_KEYS = [
    "SOFT_DELETE_FIELD_DELETED",
    "SOFT_DELETE_FIELD_DELETED_AT",
    "SOFT_DELETE_FIELD_DELETED_BY",
    "SOFT_DELETE_DELETED_AT",
    "SOFT_DELETE_DELETED_BY",
    "SOFT_DELETE_INDEX_FIELDS",
    "SOFT_DELETE_USE_NE_OPERATOR",
    "SOFT_DELETE_OVERRIDE_METHODS",
    "SOFT_DELETE_VALIDATE_BEFORE_DELETE",
    "SOFT_DELETE_VALIDATE_BEFORE_RESTORE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults():
    opts = SoftDeleteOptions.coerce(None)

    assert opts.field_name_deleted is None
    assert opts.deleted_at is False
    assert opts.deleted_by is False
    assert opts.use_ne_operator is True
    assert opts.override_methods is None
    assert opts.validate_before_delete is True
    assert opts.validate_before_restore is True


def test_option_keys_and_python_names_are_both_accepted():
    by_key = SoftDeleteOptions.coerce({"fieldNameDeleted": "removed", "use$neOperator": False})
    by_name = SoftDeleteOptions.coerce({"field_name_deleted": "removed", "use_ne_operator": False})

    assert by_key == by_name
    assert by_key.field_name_deleted == "removed"
    assert by_key.use_ne_operator is False


def test_coerce_returns_existing_instance():
    opts = SoftDeleteOptions.coerce({"deletedAt": True})
    assert SoftDeleteOptions.coerce(opts) is opts


def test_non_boolean_ne_operator_is_ignored():
    opts = SoftDeleteOptions.coerce({"use$neOperator": "no"})
    assert opts.use_ne_operator is True


def test_deleted_by_type_must_be_a_type():
    assert SoftDeleteOptions.coerce({"deletedByType": str}).deleted_by_type is str
    with pytest.raises(ConfigurationError):
        SoftDeleteOptions.coerce({"deletedByType": "str"})


def test_malformed_index_fields_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        SoftDeleteOptions.coerce({"indexFields": 42})


def test_options_are_immutable():
    opts = SoftDeleteOptions.coerce({"deletedAt": True})
    with pytest.raises(Exception):
        opts.deleted_at = False


def test_load_options_from_env(clean_env):
    clean_env.setenv("SOFT_DELETE_FIELD_DELETED", "isDeleted")
    clean_env.setenv("SOFT_DELETE_DELETED_AT", "true")
    clean_env.setenv("SOFT_DELETE_DELETED_BY", "yes")
    clean_env.setenv("SOFT_DELETE_INDEX_FIELDS", "isDeleted, deletedAt")
    clean_env.setenv("SOFT_DELETE_USE_NE_OPERATOR", "false")
    clean_env.setenv("SOFT_DELETE_OVERRIDE_METHODS", "all")
    clean_env.setenv("SOFT_DELETE_VALIDATE_BEFORE_RESTORE", "0")

    opts = load_options_from_env()

    assert opts.field_name_deleted == "isDeleted"
    assert opts.deleted_at is True
    assert opts.deleted_by is True
    assert opts.index_fields == ["isDeleted", "deletedAt"]
    assert opts.use_ne_operator is False
    assert opts.override_methods == "all"
    assert opts.validate_before_delete is True
    assert opts.validate_before_restore is False


def test_load_options_from_env_overrides_win(clean_env):
    clean_env.setenv("SOFT_DELETE_OVERRIDE_METHODS", "find,count")
    clean_env.setenv("SOFT_DELETE_DELETED_AT", "true")

    opts = load_options_from_env(overrideMethods=True, deleted_at=False, deletedByType=ObjectId)

    assert opts.override_methods is True
    assert opts.deleted_at is False
    assert opts.deleted_by_type is ObjectId


def test_load_options_from_env_rejects_bad_boolean(clean_env):
    clean_env.setenv("SOFT_DELETE_DELETED_AT", "maybe")
    with pytest.raises(ConfigurationError):
        load_options_from_env()


def test_unknown_option_key_is_reported(caplog):
    with caplog.at_level("WARNING", logger="softdelete.config"):
        options = SoftDeleteOptions.coerce({"overideMethods": "all", "deletedAt": True})

    assert options.override_methods is None
    assert options.deleted_at is True
    assert "overideMethods" in caplog.text


def test_known_option_keys_are_not_reported(caplog):
    with caplog.at_level("WARNING", logger="softdelete.config"):
        SoftDeleteOptions.coerce({"overrideMethods": "all", "field_name_deleted": "removed"})

    assert "Ignoring unknown" not in caplog.text
