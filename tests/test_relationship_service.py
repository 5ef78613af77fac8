"""Tests for relationships and invite-code pairing."""

import pytest

from souvella.exceptions import MalformedDocumentError, NotFoundError, ValidationError
from souvella.services.relationship_service import INVITE_CODE_LENGTH, generate_invite_code
from souvella.store.base import MEMBERSHIPS, RELATIONSHIPS


class TestInviteCode:
    """Test invite code generation."""

    def test_length_and_alphabet(self):
        """Test codes are 10 alphanumeric characters."""
        code = generate_invite_code()
        assert len(code) == INVITE_CODE_LENGTH
        assert code.isalnum()

    def test_codes_differ(self):
        """Test consecutive codes are not repeated."""
        assert len({generate_invite_code() for _ in range(50)}) == 50


class TestRelationshipService:
    """Test relationship lifecycle."""

    async def test_create_seats_creator(self, relationships, store):
        """Test the creator becomes a member of the new relationship."""
        relationship = await relationships.create_relationship("alice", name="  Us  ")

        assert relationship.name == "Us"
        members = await store.query_by_field(MEMBERSHIPS, "relationship_id", relationship.id)
        assert [m["user_id"] for m in members] == ["alice"]

    async def test_join_with_invite_code(self, relationships, relationship):
        """Test a partner joins with the shared code."""
        joined = await relationships.join_relationship(f" {relationship.invite_code} ", "bob")

        assert joined.id == relationship.id
        assert [r.id for r in await relationships.list_for_user("bob")] == [relationship.id]

    async def test_join_twice_is_noop(self, relationships, relationship, store):
        """Test joining again does not add a second membership."""
        await relationships.join_relationship(relationship.invite_code, "bob")
        await relationships.join_relationship(relationship.invite_code, "bob")

        members = await store.query_by_field(MEMBERSHIPS, "user_id", "bob")
        assert len(members) == 1

    async def test_join_unknown_code(self, relationships):
        """Test an unknown code raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await relationships.join_relationship("NOPE123456", "bob")

    async def test_list_for_user_newest_first(self, relationships, clock):
        """Test the most recent relationship is listed first."""
        first = await relationships.create_relationship("alice", name="first")
        clock.advance(hours=1)
        second = await relationships.create_relationship("alice", name="second")

        listed = await relationships.list_for_user("alice")

        assert [r.id for r in listed] == [second.id, first.id]

    async def test_list_skips_dangling_membership(self, relationships, relationship, store):
        """Test a membership whose relationship vanished is skipped."""
        await store.delete_document(RELATIONSHIPS, relationship.id)
        assert await relationships.list_for_user("alice") == []

    async def test_list_for_stranger(self, relationships):
        """Test a user without relationships gets an empty list."""
        assert await relationships.list_for_user("nobody") == []

    async def test_rename(self, relationships, relationship):
        """Test renaming trims the new name."""
        renamed = await relationships.rename(relationship.id, "  Our jar ")
        assert renamed.name == "Our jar"
        assert (await relationships.get_relationship(relationship.id)).name == "Our jar"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    async def test_rename_rejects_bad_names(self, relationships, relationship, name):
        """Test blank and overlong names are rejected."""
        with pytest.raises(ValidationError):
            await relationships.rename(relationship.id, name)

    async def test_rename_unknown(self, relationships):
        """Test renaming an unknown relationship raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await relationships.rename("missing", "name")

    async def test_get_malformed_relationship(self, relationships, store):
        """Test a corrupt relationship document is reported, not returned."""
        await store.set_document(RELATIONSHIPS, "broken", {"name": "no code"})
        with pytest.raises(MalformedDocumentError):
            await relationships.get_relationship("broken")

    async def test_ensure_exists(self, relationships, relationship):
        """Test ensure_exists passes for known and raises for unknown ids."""
        await relationships.ensure_exists(relationship.id)
        with pytest.raises(NotFoundError):
            await relationships.ensure_exists("missing")
