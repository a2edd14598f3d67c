"""Concurrent requests against the same code or the same user, each on its own session."""
import asyncio

from sqlalchemy import func, select

from app.core.errors import CodeInvalidOrUsed, InsufficientPoints
from app.models import Account, AccountSource, ActivationCode, User
from app.services.account_pool import AccountPool
from app.services.activation import ActivationLedger
from app.services.exchange import ExchangeEngine
from app.services.identity import IdentityResolver


async def _login(session_maker, settings, device_id):
    async with session_maker() as session:
        await IdentityResolver(session, settings).resolve_or_create(device_id)


async def _points(session_maker, settings, device_id):
    async with session_maker() as session:
        return (await IdentityResolver(session, settings).require(device_id)).points


async def test_concurrent_redeem_single_winner(session_maker, settings, make_code):
    devices = [f"dev-{i}" for i in range(5)]
    for device_id in devices:
        await _login(session_maker, settings, device_id)
    await make_code("RACE", points=300)

    async def attempt(device_id):
        async with session_maker() as session:
            return await ActivationLedger(session, settings).redeem(device_id, "RACE")

    results = await asyncio.gather(*(attempt(d) for d in devices), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 4
    assert all(isinstance(e, CodeInvalidOrUsed) for e in losers)

    balances = [await _points(session_maker, settings, d) for d in devices]
    assert sorted(balances) == [0, 0, 0, 0, 300]

    async with session_maker() as session:
        code = await session.scalar(select(ActivationCode).where(ActivationCode.code == "RACE"))
        assert code.is_used is True


async def test_concurrent_redeem_same_device_credits_once(session_maker, settings, make_code):
    await _login(session_maker, settings, "d1")
    await make_code("TWICE", points=500)

    async def attempt():
        async with session_maker() as session:
            return await ActivationLedger(session, settings).redeem("d1", "TWICE")

    results = await asyncio.gather(attempt(), attempt(), attempt(), return_exceptions=True)

    assert sum(1 for r in results if not isinstance(r, Exception)) == 1
    assert await _points(session_maker, settings, "d1") == 500


async def test_concurrent_exchange_cannot_double_spend(session_maker, settings, make_code):
    await _login(session_maker, settings, "d1")
    await make_code("ONE", points=100)
    async with session_maker() as session:
        await ActivationLedger(session, settings).redeem("d1", "ONE")

    async def attempt():
        async with session_maker() as session:
            return await ExchangeEngine(session, settings).exchange("d1", "google")

    results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert winners[0].remaining_points == 0
    assert len(losers) == 1 and isinstance(losers[0], InsufficientPoints)

    assert await _points(session_maker, settings, "d1") == 0
    async with session_maker() as session:
        assert await session.scalar(select(func.count(Account.id))) == 1


async def test_concurrent_claims_never_share_a_pooled_account(session_maker, settings, make_code):
    settings.synthesize_accounts = False
    devices = ["p1", "p2", "p3"]
    for i, device_id in enumerate(devices):
        await _login(session_maker, settings, device_id)
        await make_code(f"FUND{i}", points=100)
        async with session_maker() as session:
            await ActivationLedger(session, settings).redeem(device_id, f"FUND{i}")

    async with session_maker() as session:
        await AccountPool(session, settings).seed(
            AccountSource.GITHUB,
            [{"username": "pool-a"}, {"username": "pool-b"}],
        )

    async def attempt(device_id):
        async with session_maker() as session:
            return await ExchangeEngine(session, settings).exchange(device_id, "github")

    results = await asyncio.gather(*(attempt(d) for d in devices), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    assert len(winners) == 2
    assert {w.account.username for w in winners} == {"pool-a", "pool-b"}
    assert len({w.account.user_id for w in winners}) == 2

    balances = sorted([await _points(session_maker, settings, d) for d in devices])
    assert balances == [0, 0, 100]


async def test_concurrent_first_logins_create_one_user(session_maker, settings):
    async def attempt():
        async with session_maker() as session:
            identity = await IdentityResolver(session, settings).resolve_or_create("newdev")
            return identity.user.id, identity.created

    results = await asyncio.gather(*(attempt() for _ in range(5)))

    assert len({user_id for user_id, _ in results}) == 1
    assert sum(1 for _, created in results if created) == 1

    async with session_maker() as session:
        assert await session.scalar(select(func.count(User.id))) == 1
