"""Relationship service tests."""

import uuid

import pytest
from sqlalchemy import delete

from diary_bridge.core.exceptions import DuplicateRelationship, NotAuthorized, RelationshipNotFound
from diary_bridge.enums import FamilyRole, RelationshipType
from diary_bridge.models.user import User
from diary_bridge.services.relationship_service import (
    create_relationship,
    get_relationship_for_pair,
    link_family_members,
    list_family_members,
    remove_relationship,
)


class TestCreateRelationship:
    async def test_create(self, db_session, make_user):
        parent = await make_user()
        child = await make_user(user_type=FamilyRole.CHILD)

        rel = await create_relationship(db_session, parent.id, child.id)

        assert rel.parent_id == parent.id
        assert rel.child_id == child.id
        assert rel.relationship_type == RelationshipType.PARENT_CHILD

    async def test_duplicate_pair_raises(self, db_session, make_user):
        parent = await make_user()
        child = await make_user()
        await create_relationship(db_session, parent.id, child.id)

        with pytest.raises(DuplicateRelationship):
            await create_relationship(db_session, parent.id, child.id)

    async def test_reverse_pair_is_a_different_link(self, db_session, make_user):
        x = await make_user()
        y = await make_user()
        first = await create_relationship(db_session, x.id, y.id)
        second = await create_relationship(db_session, y.id, x.id)
        assert first.id != second.id

    async def test_link_reuses_existing(self, db_session, make_user):
        parent = await make_user()
        child = await make_user()
        first = await link_family_members(db_session, parent.id, child.id)
        second = await link_family_members(db_session, parent.id, child.id)
        assert first.id == second.id


class TestListFamilyMembers:
    async def test_many_to_many(self, db_session, make_user):
        mom = await make_user(full_name="Mom", email="mom@example.com")
        dad = await make_user(full_name="Dad", email="dad@example.com")
        kid1 = await make_user(full_name="Kid 1", user_type=FamilyRole.CHILD)
        kid2 = await make_user(full_name="Kid 2", user_type=FamilyRole.CHILD)
        for parent in (mom, dad):
            for kid in (kid1, kid2):
                await create_relationship(db_session, parent.id, kid.id)

        mom_members = await list_family_members(db_session, mom.id)
        assert {(m.member_id, m.role) for m in mom_members} == {
            (kid1.id, FamilyRole.CHILD),
            (kid2.id, FamilyRole.CHILD),
        }

        kid_members = await list_family_members(db_session, kid1.id)
        assert {(m.member_id, m.role) for m in kid_members} == {
            (mom.id, FamilyRole.PARENT),
            (dad.id, FamilyRole.PARENT),
        }
        names = {m.full_name for m in kid_members}
        assert names == {"Mom", "Dad"}

    async def test_no_members(self, db_session, make_user):
        loner = await make_user()
        assert await list_family_members(db_session, loner.id) == []


class TestRemoveRelationship:
    async def test_either_party_can_remove(self, db_session, make_user):
        parent = await make_user()
        child = await make_user()
        rel = await create_relationship(db_session, parent.id, child.id)

        await remove_relationship(db_session, rel.id, user_id=child.id)

        assert await get_relationship_for_pair(db_session, parent.id, child.id) is None
        assert await list_family_members(db_session, parent.id) == []

    async def test_outsider_cannot_remove(self, db_session, make_user):
        parent = await make_user()
        child = await make_user()
        outsider = await make_user()
        rel = await create_relationship(db_session, parent.id, child.id)

        with pytest.raises(NotAuthorized):
            await remove_relationship(db_session, rel.id, user_id=outsider.id)

    async def test_unknown_relationship(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(RelationshipNotFound):
            await remove_relationship(db_session, uuid.uuid4(), user_id=user.id)


class TestUserRemoval:
    async def test_deleting_user_removes_their_links(self, db_session, make_user):
        parent = await make_user()
        child = await make_user(user_type=FamilyRole.CHILD)
        await create_relationship(db_session, parent.id, child.id)

        await db_session.execute(
            delete(User)
            .where(User.id == child.id)
            .execution_options(synchronize_session=False)
        )

        assert await get_relationship_for_pair(db_session, parent.id, child.id) is None
        assert await list_family_members(db_session, parent.id) == []
