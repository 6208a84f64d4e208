"""Tests for ``db`` annotation parsing."""

from __future__ import annotations

import pytest

from tagorm.tags import InvalidTagError, ParsedTag, parse_tag
from tagorm.types import Role


class TestColumnName:
    def test_missing_tag_uses_field_name(self):
        assert parse_tag(None, "name") == ParsedTag(name="name")

    def test_first_token_names_column(self):
        tag = parse_tag("item_name", "name")
        assert tag.name == "item_name"
        assert tag.roles == Role.NONE

    def test_tokens_are_trimmed_and_lowered(self):
        tag = parse_tag("  Owner_ID , FK1 ", "owner")
        assert tag.name == "owner_id"
        assert tag.roles == Role.FK1

    def test_leading_role_token_keeps_field_name(self):
        tag = parse_tag("pk", "person_id")
        assert tag.name == "person_id"
        assert tag.roles == Role.PRIMARY_KEY

    def test_empty_first_token_keeps_field_name(self):
        tag = parse_tag(",pk", "code")
        assert tag.name == "code"
        assert tag.roles == Role.PRIMARY_KEY


class TestRoles:
    def test_identity_and_primary_key(self):
        tag = parse_tag("id,pk", "id")
        assert tag.roles == Role.IDENTITY | Role.PRIMARY_KEY

    @pytest.mark.parametrize(
        "token,role",
        [("fk1", Role.FK1), ("fk2", Role.FK2), ("fk3", Role.FK3), ("fk4", Role.FK4)],
    )
    def test_foreign_keys(self, token, role):
        assert parse_tag(f"col,{token}", "f").roles == role

    def test_unknown_tokens_are_ignored(self):
        tag = parse_tag("col,pk,unique", "f")
        assert tag.name == "col"
        assert tag.roles == Role.PRIMARY_KEY


class TestIgnoredAndInvalid:
    def test_dash_excludes_field(self):
        assert parse_tag("-", "notes").ignored is True

    def test_dash_anywhere_excludes_field(self):
        assert parse_tag("notes,-", "notes").ignored is True

    @pytest.mark.parametrize("raw", ["", "   ", 5])
    def test_blank_or_non_string_tag_rejected(self, raw):
        with pytest.raises(InvalidTagError):
            parse_tag(raw, "field")
