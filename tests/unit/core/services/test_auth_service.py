import threading
from unittest.mock import patch

import pytest

from src.userhub.core.errors import InvalidAccountType, InvalidPassword
from src.userhub.core.identifiers import IdType, classify
from src.userhub.core.models.session import SessionOptions


@pytest.fixture
def account(make_user):
    return make_user(phone="13800138000", email="neo@matrix.io", password="pw")


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_mode_none_returns_user_only(self, auth_service, session_service, account):
        result = await auth_service.authenticate("13800138000", "pw", SessionOptions(mode="none"))

        assert set(result) == {"user"}
        assert result["user"]["id"] == account.id
        assert await session_service.list_by_owner(account.id) == []

    @pytest.mark.asyncio
    async def test_default_mode_is_independent(self, auth_service, session_service, account):
        await session_service.create(account.id)

        result = await auth_service.authenticate("neo@matrix.io", "pw")

        assert result["session"]["owner_id"] == account.id
        assert classify(result["session"]["token"]) is IdType.TOKEN
        assert len(await session_service.list_by_owner(account.id)) == 2

    @pytest.mark.asyncio
    async def test_exclusive_mode_revokes_other_sessions(
        self, auth_service, session_service, account
    ):
        await session_service.create(account.id)
        await session_service.create(account.id)

        result = await auth_service.authenticate(
            "13800138000", "pw", SessionOptions(mode="exclusive", ttl=60)
        )

        sessions = await session_service.list_by_owner(account.id)
        assert len(sessions) == 1
        assert sessions[0].ttl == 60
        assert (await session_service.get(result["session"]["token"])).owner_id == account.id

    @pytest.mark.asyncio
    async def test_unrecognized_mode_issues_independent_session(
        self, auth_service, session_service, account
    ):
        await session_service.create(account.id)

        result = await auth_service.authenticate(
            "13800138000", "pw", SessionOptions(mode="sticky")
        )

        assert "session" in result
        assert len(await session_service.list_by_owner(account.id)) == 2

    @pytest.mark.asyncio
    async def test_session_options_are_applied(self, auth_service, session_service, account):
        result = await auth_service.authenticate(
            "13800138000", "pw", SessionOptions(ip="10.1.1.1", data={"device": "ios"})
        )

        session = await session_service.get(result["session"]["token"])
        assert session.ip == "10.1.1.1"
        assert session.data == {"device": "ios"}

    @pytest.mark.asyncio
    async def test_failures_propagate_without_session(
        self, auth_service, session_service, account
    ):
        with pytest.raises(InvalidPassword):
            await auth_service.authenticate("13800138000", "wrong")
        with pytest.raises(InvalidAccountType):
            await auth_service.authenticate(account.id, "pw")

        assert await session_service.list_by_owner(account.id) == []

    @pytest.mark.asyncio
    async def test_credential_check_runs_off_the_event_loop(
        self, auth_service, user_directory, account
    ):
        loop_thread = threading.get_ident()
        seen = []
        verify = user_directory.verify_credential

        def recording_verify(*args):
            seen.append(threading.get_ident())
            return verify(*args)

        with patch.object(user_directory, "verify_credential", side_effect=recording_verify):
            result = await auth_service.authenticate("13800138000", "pw", SessionOptions(mode="none"))

        assert result["user"]["id"] == account.id
        assert seen and seen[0] != loop_thread
