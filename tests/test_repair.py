"""Unit tests for auth/repair.py -- pure reference-repair transforms.

Covers:
- Rename propagation into every scalar reference and in-place response entries
- Removal clearing of every reference
- Inputs are never mutated
- Empty old/new names
- normalize(): dedupe, password exclusion, allow_both clearing
"""

from auth.models import AuthConfig, LoginFieldMapping, default_auth_config
from auth.repair import apply_change, apply_removal, apply_rename, normalize


def _config(**overrides) -> AuthConfig:
    config = default_auth_config()
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


class TestApplyRename:
    def test_email_rename_updates_reference_and_response_slot(self):
        result = apply_rename(default_auth_config(), "email", "primary_email")
        assert result.login_fields.email_field == "primary_email"
        assert result.response_fields == ["id", "primary_email", "name", "created_at"]

    def test_password_rename(self):
        result = apply_rename(default_auth_config(), "password", "secret")
        assert result.password_field == "secret"

    def test_username_rename(self):
        config = _config(login_fields=LoginFieldMapping("email", "handle", True))
        result = apply_rename(config, "handle", "nick")
        assert result.login_fields.username_field == "nick"
        assert result.login_fields.allow_both is True

    def test_input_is_not_mutated(self):
        config = default_auth_config()
        apply_rename(config, "email", "primary_email")
        assert config.login_fields.email_field == "email"
        assert config.response_fields == ["id", "email", "name", "created_at"]

    def test_unrelated_rename_changes_nothing(self):
        result = apply_rename(default_auth_config(), "nickname", "alias")
        assert result == default_auth_config()

    def test_empty_old_name_never_captures_unset_references(self):
        config = _config(login_fields=LoginFieldMapping("email", "", False))
        result = apply_rename(config, "", "handle")
        assert result.login_fields.username_field == ""

    def test_rename_to_empty_clears_references(self):
        result = apply_rename(default_auth_config(), "email", "")
        assert result.login_fields.email_field == ""
        assert "email" not in result.response_fields
        assert "" not in result.response_fields

    def test_rename_onto_password_name_drops_response_entry(self):
        # "name" renamed to the password field's name: the response entry
        # would now disclose the password and must go.
        result = apply_rename(default_auth_config(), "name", "password")
        assert "password" not in result.response_fields
        assert result.password_field == "password"

    def test_rename_onto_existing_response_name_dedupes(self):
        result = apply_rename(default_auth_config(), "name", "email")
        assert result.response_fields == ["id", "email", "created_at"]


class TestApplyRemoval:
    def test_removal_clears_every_reference(self):
        config = _config(
            login_fields=LoginFieldMapping("email", "email", True),
            password_field="email",
        )
        result = apply_removal(config, "email")
        assert result.login_fields.email_field == ""
        assert result.login_fields.username_field == ""
        assert result.password_field == ""
        assert "email" not in result.response_fields

    def test_clearing_username_clears_allow_both(self):
        config = _config(login_fields=LoginFieldMapping("email", "handle", True))
        result = apply_removal(config, "handle")
        assert result.login_fields.allow_both is False

    def test_apply_change_dispatches_on_none(self):
        assert apply_change(default_auth_config(), "password", None).password_field == ""
        assert apply_change(default_auth_config(), "password", "pw").password_field == "pw"


class TestNormalize:
    def test_password_removed_from_response(self):
        config = _config(response_fields=["id", "password", "email"])
        assert normalize(config).response_fields == ["id", "email"]

    def test_duplicates_keep_first_occurrence(self):
        config = _config(response_fields=["name", "id", "name", "id"])
        assert normalize(config).response_fields == ["name", "id"]

    def test_hidden_names_removed(self):
        assert "name" not in normalize(default_auth_config(), hidden={"name"}).response_fields

    def test_allow_both_requires_username(self):
        config = _config(login_fields=LoginFieldMapping("email", "", True))
        assert normalize(config).login_fields.allow_both is False
