import pytest

from app.core.errors import AccountNotFound, InvalidInput, PoolExhausted
from app.models import AccountSource
from app.services.account_pool import AccountPool, synthesize_credentials
from app.services.identity import IdentityResolver


async def _user_id(db, settings, device_id):
    return (await IdentityResolver(db, settings).resolve_or_create(device_id)).user.id


class TestAllocate:

    async def test_synthesizes_source_specific_bundle(self, db, settings):
        owner = await _user_id(db, settings, "d1")
        pool = AccountPool(db, settings)

        google = await pool.allocate(owner, AccountSource.GOOGLE)
        github = await pool.allocate(owner, AccountSource.GITHUB)
        await db.commit()

        assert set(google.credentials()) == {"email", "refresh_token", "access_token", "client_id", "client_secret"}
        assert google.credentials()["email"].endswith("@example.com")
        assert set(github.credentials()) == {"username", "access_token", "refresh_token", "profile_url"}
        assert github.profile_url == f"https://github.com/{github.username}"
        assert google.user_id == owner and github.user_id == owner

    async def test_claims_seeded_account_before_synthesizing(self, db, settings):
        owner = await _user_id(db, settings, "d1")
        pool = AccountPool(db, settings)
        await pool.seed(AccountSource.GOOGLE, [{"email": "pooled@corp.test", "refresh_token": "rt-1"}])

        account = await pool.allocate(owner, AccountSource.GOOGLE)
        await db.commit()

        assert account.email == "pooled@corp.test"
        assert account.user_id == owner
        assert account.assigned_at is not None
        assert (await pool.count_available())["google"] == 0

    async def test_empty_pool_without_synthesis(self, db, settings):
        settings.synthesize_accounts = False
        owner = await _user_id(db, settings, "d1")

        with pytest.raises(PoolExhausted):
            await AccountPool(db, settings).allocate(owner, AccountSource.GITHUB)

    def test_synthesized_credentials_are_distinct(self):
        first = synthesize_credentials(AccountSource.GOOGLE)
        second = synthesize_credentials(AccountSource.GOOGLE)
        assert first["refresh_token"] != second["refresh_token"]


class TestParseSource:

    def test_accepts_enabled_sources(self, settings):
        pool = AccountPool(None, settings)
        assert pool.parse_source("google") is AccountSource.GOOGLE
        assert pool.parse_source(" GitHub ") is AccountSource.GITHUB

    def test_rejects_unknown_source(self, settings):
        with pytest.raises(InvalidInput):
            AccountPool(None, settings).parse_source("gitlab")

    def test_rejects_disabled_source(self, settings):
        settings.account_sources = "google"
        with pytest.raises(InvalidInput):
            AccountPool(None, settings).parse_source("github")


class TestHideAndGet:

    async def test_hide_foreign_account_is_noop(self, db, settings):
        owner = await _user_id(db, settings, "owner")
        other = await _user_id(db, settings, "other")
        pool = AccountPool(db, settings)
        account = await pool.allocate(owner, AccountSource.GOOGLE)
        await db.commit()

        assert await pool.hide(other, account.id) is False

        visible = await pool.list_visible(owner)
        assert [a.id for a in visible] == [account.id]

    async def test_hidden_account_leaves_list_but_stays_retrievable(self, db, settings):
        owner = await _user_id(db, settings, "owner")
        pool = AccountPool(db, settings)
        account = await pool.allocate(owner, AccountSource.GOOGLE)
        await db.commit()

        assert await pool.hide(owner, account.id) is True

        assert await pool.list_visible(owner) == []
        fetched = await pool.get(owner, account.id)
        assert fetched.id == account.id

    async def test_get_checks_owner_and_source(self, db, settings):
        owner = await _user_id(db, settings, "owner")
        other = await _user_id(db, settings, "other")
        pool = AccountPool(db, settings)
        account = await pool.allocate(owner, AccountSource.GITHUB)
        await db.commit()

        with pytest.raises(AccountNotFound):
            await pool.get(other, account.id)
        with pytest.raises(AccountNotFound):
            await pool.get(owner, account.id, AccountSource.GOOGLE)
        with pytest.raises(AccountNotFound):
            await pool.get(owner, 9999)
        assert (await pool.get(owner, account.id, AccountSource.GITHUB)).id == account.id

    async def test_list_visible_newest_first(self, db, settings):
        owner = await _user_id(db, settings, "owner")
        pool = AccountPool(db, settings)
        ids = []
        for _ in range(3):
            ids.append((await pool.allocate(owner, AccountSource.GOOGLE)).id)
        await db.commit()

        listed = [a.id for a in await pool.list_visible(owner)]
        assert listed == sorted(ids, reverse=True)
        assert listed == [a.id for a in await pool.list_visible(owner)]
