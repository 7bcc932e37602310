from datetime import UTC, datetime

import pytest

from src.userhub.entities.core.user import (
    USER_FIELDS,
    CreationType,
    DuplicateKeyError,
    Gender,
    User,
    UserFilter,
    select_fields,
)


class TestSelectFields:
    def test_intersection_keeps_whitelist_order(self):
        assert select_fields(["email", "id", "unknown"]) == ["id", "email"]

    @pytest.mark.parametrize("requested", [None, [], ["password", "deleted"], [" "]])
    def test_falls_back_to_whitelist(self, requested):
        assert select_fields(requested) == list(USER_FIELDS)


class TestUserEntity:
    def test_defaults(self):
        user = User(phone="13800138000")

        assert len(user.id) == 24
        assert user.gender is Gender.UNSET
        assert user.deleted is False
        assert user.has_password is False

    def test_project_converts_datetimes(self):
        user = User(
            phone="13800138000",
            birthday=datetime(2000, 1, 1, tzinfo=UTC),
            created_at=datetime(2020, 1, 1, tzinfo=UTC),
        )

        view = user.project()

        assert view["birthday"] == 946684800000
        assert view["created_at"] == 1577836800000
        assert "password" not in view

    def test_project_treats_naive_datetimes_as_utc(self):
        user = User(phone="13800138000", birthday=datetime(2000, 1, 1))
        assert user.project(["birthday"]) == {"birthday": 946684800000}

    def test_apply_only_touches_mutable_fields(self):
        user = User(phone="13800138000")

        user.apply({"nickname": "neo", "gender": 1, "birthday": 0, "password": "x", "id": "y"})

        assert user.nickname == "neo"
        assert user.gender is Gender.MALE
        assert user.birthday == datetime(1970, 1, 1, tzinfo=UTC)
        assert user.password is None
        assert user.id != "y"

    def test_apply_null_gender_means_unset(self):
        user = User(phone="13800138000", gender=Gender.FEMALE)

        user.apply({"gender": None})

        assert user.gender is Gender.UNSET


class TestUserRepository:
    def test_save_and_get(self, user_repository):
        saved = user_repository.save(
            User(phone="13800138000", nickname="neo", creation_type=CreationType.PHONE)
        )

        found = user_repository.get(saved.id)

        assert found == saved
        assert found.creation_type is CreationType.PHONE

    def test_find_one(self, user_repository):
        saved = user_repository.save(User(email="neo@matrix.io"))

        assert user_repository.find_one(email="neo@matrix.io").id == saved.id
        assert user_repository.find_one(phone="13800138000") is None
        with pytest.raises(ValueError):
            user_repository.find_one()

    def test_duplicate_phone_reports_field(self, user_repository):
        user_repository.save(User(phone="13800138000"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            user_repository.save(User(phone="13800138000"))

        assert exc_info.value.field == "phone"

    def test_duplicate_email_reports_field(self, user_repository):
        user_repository.save(User(email="neo@matrix.io"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            user_repository.save(User(email="neo@matrix.io"))

        assert exc_info.value.field == "email"

    def test_missing_accounts_do_not_collide(self, user_repository):
        user_repository.save(User(email="a@example.com"))
        user_repository.save(User(email="b@example.com"))

        assert user_repository.count() == 2

    def test_deleted_rows_are_hidden(self, user_repository):
        user = user_repository.save(User(phone="13800138000"))
        user.deleted = True
        user_repository.save(user)

        assert user_repository.get(user.id) is None
        assert user_repository.get(user.id, include_deleted=True) is not None
        assert user_repository.find_one(phone="13800138000") is None
        assert user_repository.count() == 0

    def test_find_with_filters_and_paging(self, user_repository):
        users = [user_repository.save(User(phone=f"1380013800{n}")) for n in range(5)]

        assert len(user_repository.find(limit=2)) == 2
        assert len(user_repository.find(offset=4)) == 1
        found = user_repository.find([UserFilter.by_ids([users[0].id, users[1].id])])
        assert {u.id for u in found} == {users[0].id, users[1].id}
        assert user_repository.count([UserFilter.by_phone("13800138003")]) == 1

    def test_remove(self, user_repository):
        user = user_repository.save(User(phone="13800138000"))

        assert user_repository.remove(user.id) is True
        assert user_repository.get(user.id, include_deleted=True) is None
        assert user_repository.remove(user.id) is False
