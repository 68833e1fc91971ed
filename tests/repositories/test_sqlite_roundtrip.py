"""Run the repository against a real (in-memory SQLite) database"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio

pytest.importorskip("aiosqlite")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from willow_vault.ancestry import render_location, resolve_ancestors
from willow_vault.db.models import Base, Building, Container, Item, Room, Shelf, ShelvingUnit
from willow_vault.db.repositories.postgres import PostgresEntityRepository
from willow_vault.hierarchy import Category


BASE_TIME = datetime(2024, 3, 1, 9, 0, 0)


def _at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def _seed(user_id: str = "alice") -> list:
    return [
        Building(id=1, name="Home", notes="main house", address="123 Willow Lane",
                 user_id=user_id, created_at=_at(0)),
        Building(id=2, name="Cabin", address="1 Lake Rd", user_id=user_id, created_at=_at(1)),
        Room(id=1, name="Garage", parent_id=1, parent_category="building",
             user_id=user_id, created_at=_at(2)),
        ShelvingUnit(id=1, name="Metal Rack", parent_id=1, parent_category="room",
                     user_id=user_id, created_at=_at(3)),
        Shelf(id=1, name="Top Shelf", parent_id=1, parent_category="shelving_unit",
              user_id=user_id, created_at=_at(4)),
        Container(id=1, name="Red Bin", notes="50% full", parent_id=1, parent_category="shelf",
                  user_id=user_id, created_at=_at(5)),
        Item(id=1, name="Drill", notes="cordless", parent_id=1, parent_category="container",
             user_id=user_id, created_at=_at(6)),
        Item(id=2, name="Old Saw", parent_id=1, parent_category="container",
             user_id=user_id, created_at=_at(7), deleted_at=_at(8)),
    ]


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        s.add_all(_seed("alice"))
        s.add(Building(id=3, name="Bob's Flat", address="9 Elm St", user_id="bob", created_at=_at(0)))
        await s.commit()
        yield s

    await engine.dispose()


@pytest.fixture
def repo(session):
    return PostgresEntityRepository(session)


@pytest.mark.asyncio
async def test_listing_orders_by_rank_then_creation(repo):
    rows = await repo.list_entities("alice")

    assert [(r.category, r.id) for r in rows] == [
        (Category.BUILDING, 1),
        (Category.BUILDING, 2),
        (Category.ROOM, 1),
        (Category.SHELVING_UNIT, 1),
        (Category.SHELF, 1),
        (Category.CONTAINER, 1),
        (Category.ITEM, 1),
    ]
    assert rows[0].address == "123 Willow Lane"
    assert rows[0].parent_id == 0
    assert rows[-1].parent_category == "container"


@pytest.mark.asyncio
async def test_page_spanning_categories(repo):
    rows = await repo.list_entities("alice", offset=1, limit=3)
    assert [r.name for r in rows] == ["Cabin", "Garage", "Metal Rack"]


@pytest.mark.asyncio
async def test_deep_offset_reaches_last_table(repo):
    rows = await repo.list_entities("alice", offset=6, limit=5)
    assert [r.name for r in rows] == ["Drill"]


@pytest.mark.asyncio
async def test_count_skips_deleted_and_other_owners(repo):
    assert await repo.count_entities("alice") == 7
    assert await repo.count_entities("bob") == 1
    assert await repo.count_entities("carol") == 0


@pytest.mark.asyncio
async def test_search_matches_notes_case_insensitively(repo):
    rows = await repo.list_entities("alice", search="CORDLESS")
    assert [r.name for r in rows] == ["Drill"]
    assert await repo.count_entities("alice", search="CORDLESS") == 1


@pytest.mark.asyncio
async def test_search_percent_is_literal(repo):
    rows = await repo.list_entities("alice", search="50%")
    assert [r.name for r in rows] == ["Red Bin"]
    assert await repo.list_entities("alice", search="%") == rows


@pytest.mark.asyncio
async def test_filters_restrict_tables(repo):
    rows = await repo.list_entities("alice", filters=("item", "building"))
    assert [r.name for r in rows] == ["Home", "Cabin", "Drill"]
    assert await repo.count_entities("alice", filters=("item", "building")) == 3


@pytest.mark.asyncio
async def test_unknown_filters_return_nothing(repo):
    assert await repo.list_entities("alice", filters=("tag1",)) == []
    assert await repo.count_entities("alice", filters=("tag1",)) == 0


@pytest.mark.asyncio
async def test_get_node_respects_soft_delete_and_owner(repo):
    shelf = await repo.get_node(Category.SHELF, "alice", 1)
    assert shelf.name == "Top Shelf"
    assert shelf.parent_category == "shelving_unit"

    assert await repo.get_node(Category.ITEM, "alice", 2) is None
    assert await repo.get_node(Category.BUILDING, "alice", 3) is None


@pytest.mark.asyncio
async def test_ancestor_walk_over_database(repo):
    rows = await repo.list_entities("alice", filters=("item",))
    chain = await resolve_ancestors(repo, "alice", rows[0])
    assert render_location(chain) == "Red Bin, Top Shelf, Metal Rack, Garage, Home"
