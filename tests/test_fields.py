"""Tests for field registration and metadata resolution"""

import pytest

from envdeck import BaseSettings, setting, v
from envdeck.fields import (
    SettingField,
    attach_metadata,
    collect_field_schemas,
    declared_fields,
    get_aliases,
    get_field_metadata,
    get_field_schemas,
    get_push_to_env,
    is_dev_only,
    is_secret,
    register_field,
    registered_classes,
)


class BaseServiceSettings(BaseSettings):
    name: str = setting(v.string(), "svc")
    token: str = setting(v.string().optional(), secret=True, alias="SERVICE_TOKEN")


class ChildServiceSettings(BaseServiceSettings):
    replicas: int = setting(v.integer(), 1, push_to_env=True)
    tags: list = setting(v.array(), default_factory=list, dev_only=True)


class TestFieldRegistry:
    """Test the per-class schema registry"""

    def test_fields_register_at_class_creation(self):
        """Test setting() registers the schema on the declaring class"""
        assert list(get_field_schemas(BaseServiceSettings)) == ["name", "token"]
        assert BaseServiceSettings in registered_classes()

    def test_registry_is_keyed_by_declaring_class(self):
        """Test a subclass only owns the fields it declares"""
        assert list(get_field_schemas(ChildServiceSettings)) == ["replicas", "tags"]

    def test_collect_merges_ancestors(self):
        """Test inherited fields augment the subclass fields"""
        assert list(collect_field_schemas(ChildServiceSettings)) == [
            "name",
            "token",
            "replicas",
            "tags",
        ]

    def test_explicit_registration_last_wins(self):
        """Test register_field adds fields and replaces earlier registrations"""

        class RuntimeSettings(BaseSettings):
            pass

        register_field(RuntimeSettings, "level", v.string())
        register_field(RuntimeSettings, "level", v.integer())
        assert get_field_schemas(RuntimeSettings)["level"].kind == "integer"
        assert RuntimeSettings.load({"level": "3"}).level == 3

    def test_declared_fields(self):
        """Test descriptors are collected base classes first"""
        fields = declared_fields(ChildServiceSettings)
        assert list(fields) == ["name", "token", "replicas", "tags"]
        assert all(isinstance(field, SettingField) for field in fields.values())


class TestFieldMetadata:
    """Test metadata tags and their inheritance"""

    def test_tags_are_recorded(self):
        """Test secret, alias, push_to_env and dev_only tags"""
        assert is_secret(BaseServiceSettings, "token")
        assert not is_secret(BaseServiceSettings, "name")
        assert get_aliases(BaseServiceSettings) == {"token": "SERVICE_TOKEN"}
        assert get_push_to_env(ChildServiceSettings) == ["replicas"]
        assert is_dev_only(ChildServiceSettings, "tags")

    def test_false_tags_are_not_stored(self):
        """Test unset tags leave no metadata behind"""
        assert get_field_metadata(BaseServiceSettings, "name") == {}

    def test_subclass_inherits_metadata(self):
        """Test lookups walk the MRO"""
        assert is_secret(ChildServiceSettings, "token")
        assert get_aliases(ChildServiceSettings) == {"token": "SERVICE_TOKEN"}

    def test_subclass_shadows_one_tag(self):
        """Test the nearest class wins per tag"""

        class PublicTokenSettings(BaseServiceSettings):
            pass

        attach_metadata(PublicTokenSettings, "token", secret=False)

        assert not is_secret(PublicTokenSettings, "token")
        assert get_aliases(PublicTokenSettings) == {"token": "SERVICE_TOKEN"}
        assert is_secret(BaseServiceSettings, "token")

    def test_redeclared_field_turns_tags_off(self):
        """Test explicit False and empty alias shadow inherited tags"""

        class OpenServiceSettings(ChildServiceSettings):
            token: str = setting(v.string().optional(), secret=False, alias="")
            replicas: int = setting(v.integer(), 2, push_to_env=False)

        assert not is_secret(OpenServiceSettings, "token")
        assert get_aliases(OpenServiceSettings) == {}
        assert get_push_to_env(OpenServiceSettings) == []
        assert OpenServiceSettings.env_var_for("token") == "OPENSERVICE_TOKEN"
        assert is_dev_only(OpenServiceSettings, "tags")
        assert OpenServiceSettings.load({"token": "t"}).to_dict()["token"] == "t"

    def test_redeclared_field_keeps_unset_tags(self):
        """Test tags left unset are inherited by a redeclaration"""

        class RenamedServiceSettings(BaseServiceSettings):
            token: str = setting(v.string(), "x")

        assert is_secret(RenamedServiceSettings, "token")
        assert get_aliases(RenamedServiceSettings) == {"token": "SERVICE_TOKEN"}

    def test_unknown_tag_rejected(self):
        """Test attach_metadata only accepts known tags"""
        with pytest.raises(TypeError, match="colour"):
            attach_metadata(BaseServiceSettings, "name", colour="blue")


class TestSettingField:
    """Test the class-body descriptor"""

    def test_unloaded_instance_reads_defaults(self):
        """Test an instance that was never loaded exposes declared defaults"""
        instance = ChildServiceSettings()
        assert instance.name == "svc"
        assert instance.replicas == 1
        assert instance.token is None

    def test_class_access_returns_descriptor(self):
        """Test the descriptor is visible on the class"""
        field = BaseServiceSettings.name
        assert isinstance(field, SettingField)
        assert field.name == "name"
        assert field.owner is BaseServiceSettings

    def test_default_factory_is_called_per_instance(self):
        """Test mutable defaults are not shared"""
        first = ChildServiceSettings()
        second = ChildServiceSettings()
        first.tags.append("x")
        assert second.tags == []

    def test_default_and_factory_conflict(self):
        """Test that both default styles cannot be combined"""
        with pytest.raises(TypeError):
            setting(v.string(), "a", default_factory=lambda: "b")
