import asyncio
from datetime import timedelta

from app.repositories import WidgetCacheRepository
from app.schemas.insights import GitHubUser, Insights
from app.services.github import GitHubAPIError
from app.services.widget_cache import WidgetCacheService

from conftest import FETCHED_AT, make_repo


class StubAssembler:
    def __init__(self, result):
        self.result = result
        self.builds: list[tuple[str, bool]] = []

    async def build(self, username, refresh=False, timezone_offset=0):
        self.builds.append((username, refresh))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def sample_insights(login="octocat"):
    return Insights(
        user=GitHubUser(login=login, name="The Octocat", followers=12, created_at="2011-01-25T18:44:36Z"),
        repos_count=2,
        topics=[("web", 2)],
        top_starred=[make_repo("app", stars=7), make_repo("lib", stars=1)],
        weekly=[("2025-W22", 3)],
    )


def run(session_factory, scenario):
    async def _run():
        session = await session_factory()
        async with session:
            return await scenario(session)

    return asyncio.run(_run())


def test_miss_builds_and_stores(session_factory):
    assembler = StubAssembler(sample_insights())
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        result = await service.get_or_generate("octocat")
        row = await WidgetCacheRepository(session).get_by_username("octocat")
        return result, row

    result, row = run(session_factory, scenario)

    assert result.user.login == "octocat"
    assert assembler.builds == [("octocat", False)]
    assert row.last_updated == FETCHED_AT
    assert row.insights["user"]["login"] == "octocat"


def test_fresh_entry_is_served_without_rebuilding(session_factory):
    assembler = StubAssembler(sample_insights())
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        first = await service.get_or_generate("octocat")
        clock.now = FETCHED_AT + timedelta(hours=5)
        second = await service.get_or_generate("octocat")
        return first, second

    first, second = run(session_factory, scenario)

    assert len(assembler.builds) == 1
    assert second.model_dump() == first.model_dump()


def test_stale_entry_is_rebuilt_once(session_factory):
    assembler = StubAssembler(sample_insights())
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        await service.get_or_generate("octocat")
        clock.now = FETCHED_AT + timedelta(hours=7)
        assembler.result = sample_insights().model_copy(update={"repos_count": 9})
        rebuilt = await service.get_or_generate("octocat")
        again = await service.get_or_generate("octocat")
        row = await WidgetCacheRepository(session).get_by_username("octocat")
        return rebuilt, again, row

    rebuilt, again, row = run(session_factory, scenario)

    assert len(assembler.builds) == 2
    assert rebuilt.repos_count == 9
    assert again.repos_count == 9
    assert row.last_updated == FETCHED_AT + timedelta(hours=7)


def test_refresh_bypasses_fresh_entry(session_factory):
    assembler = StubAssembler(sample_insights())
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        await service.get_or_generate("octocat")
        clock.now = FETCHED_AT + timedelta(minutes=10)
        await service.get_or_generate("octocat", refresh=True)

    run(session_factory, scenario)

    assert assembler.builds == [("octocat", False), ("octocat", True)]


def test_build_failure_returns_none_and_keeps_nothing(session_factory):
    assembler = StubAssembler(GitHubAPIError("GitHub resource not found: /users/ghost"))

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=Clock(FETCHED_AT))
        result = await service.get_or_generate("ghost")
        row = await WidgetCacheRepository(session).get_by_username("ghost")
        return result, row

    result, row = run(session_factory, scenario)

    assert result is None
    assert row is None


def test_failed_rebuild_does_not_serve_stale_entry(session_factory):
    assembler = StubAssembler(sample_insights())
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        await service.get_or_generate("octocat")
        clock.now = FETCHED_AT + timedelta(hours=8)
        assembler.result = GitHubAPIError("rate limit")
        return await service.get_or_generate("octocat")

    assert run(session_factory, scenario) is None


def test_entries_expire_after_thirty_days(session_factory):
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=StubAssembler(sample_insights()), clock=clock)
        await service.get_or_generate("old-user")
        clock.now = FETCHED_AT + timedelta(days=29)
        await service.get_or_generate("mid-user")
        clock.now = FETCHED_AT + timedelta(days=31)
        await service.get_or_generate("new-user")
        repo = WidgetCacheRepository(session)
        return [await repo.get_by_username(name) for name in ("old-user", "mid-user", "new-user")]

    old, mid, new = run(session_factory, scenario)

    assert old is None
    assert mid is not None
    assert new is not None


def test_purge_expired_reports_deleted_rows(session_factory):
    async def scenario(session):
        repo = WidgetCacheRepository(session, expire_after=timedelta(days=30))
        await repo.upsert("a", insights={}, last_updated=FETCHED_AT - timedelta(days=40))
        await repo.upsert("b", insights={}, last_updated=FETCHED_AT - timedelta(days=35))
        await repo.upsert("c", insights={}, last_updated=FETCHED_AT - timedelta(days=1))
        purged = await repo.purge_expired(FETCHED_AT)
        remaining = [row.username for row in await repo.get_all()]
        return purged, remaining

    purged, remaining = run(session_factory, scenario)

    assert purged == 2
    assert remaining == ["c"]


def test_invalidate(session_factory):
    async def scenario(session):
        service = WidgetCacheService(session, assembler=StubAssembler(sample_insights()), clock=Clock(FETCHED_AT))
        await service.get_or_generate("octocat")
        return await service.invalidate("octocat"), await service.invalidate("octocat")

    assert run(session_factory, scenario) == (True, False)


class SlowAssembler(StubAssembler):
    async def build(self, username, refresh=False, timezone_offset=0):
        await asyncio.sleep(0.05)
        return await super().build(username, refresh, timezone_offset)


def test_concurrent_regenerations_both_succeed(session_factory):
    first_build = SlowAssembler(sample_insights().model_copy(update={"repos_count": 1}))
    second_build = SlowAssembler(sample_insights().model_copy(update={"repos_count": 2}))
    clock = Clock(FETCHED_AT)

    async def scenario():
        first, second = await session_factory(), await session_factory()
        async with first, second:
            results = await asyncio.gather(
                WidgetCacheService(first, assembler=first_build, clock=clock).get_or_generate("octocat"),
                WidgetCacheService(second, assembler=second_build, clock=clock).get_or_generate("octocat"),
            )
        check = await session_factory()
        async with check:
            rows = await WidgetCacheRepository(check).get_all()
        return results, rows

    (one, two), rows = asyncio.run(scenario())

    assert one is not None and one.repos_count == 1
    assert two is not None and two.repos_count == 2
    assert len(rows) == 1
    assert rows[0].insights["repos_count"] in (1, 2)


def test_save_overwrites_existing_row(session_factory):
    async def scenario(session):
        repo = WidgetCacheRepository(session)
        await repo.save("octocat", {"repos_count": 1}, last_updated=FETCHED_AT)
        saved = await repo.save("octocat", {"repos_count": 5}, last_updated=FETCHED_AT + timedelta(hours=1))
        return saved, await repo.get_all()

    saved, rows = run(session_factory, scenario)
    assert saved.insights == {"repos_count": 5}
    assert saved.last_updated == FETCHED_AT + timedelta(hours=1)
    assert len(rows) == 1


def test_minimal_cached_insights_are_served(session_factory):
    assembler = StubAssembler(Insights(user=GitHubUser(login="octocat")))
    clock = Clock(FETCHED_AT)

    async def scenario(session):
        service = WidgetCacheService(session, assembler=assembler, clock=clock)
        await service.get_or_generate("octocat")
        clock.now = FETCHED_AT + timedelta(hours=1)
        return await service.get_or_generate("octocat")

    served = run(session_factory, scenario)

    assert served.repos_count == 0
    assert served.top_starred == []
    assert len(assembler.builds) == 1
