import asyncio
import random
from datetime import datetime
from typing import List, Optional

import pytest

from mealshelf.client.http import StoreError
from mealshelf.client.listing import MealListing, pick_random
from mealshelf.schemas import MealOut, MealPage


def make_meal(i: int, name: Optional[str] = None, complexity: str = "easy", cuisine: str = "Italian", labels=None) -> MealOut:
    ts = datetime(2026, 1, 1)
    return MealOut(
        id=f"m{i}",
        user_id="cook@example.com",
        name=name or f"Meal {i}",
        complexity=complexity,
        cuisine=cuisine,
        labels=labels,
        created_at=ts,
        updated_at=ts,
    )


class FakeMealStore:
    """Store en memoria: trocea `meals` por offset/limit y registra las llamadas."""

    def __init__(self, meals: List[MealOut], max_page: Optional[int] = None, total_override: Optional[int] = None):
        self.meals = meals
        self.max_page = max_page
        self.total_override = total_override
        self.calls = []
        self.fail_next = False
        self.gate: Optional[asyncio.Event] = None

    async def fetch_meals(self, offset: int, limit: int) -> MealPage:
        self.calls.append((offset, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            self.fail_next = False
            raise StoreError("connection reset")
        size = min(limit, self.max_page) if self.max_page else limit
        chunk = self.meals[offset:offset + size]
        total = len(self.meals) if self.total_override is None else self.total_override
        return MealPage(meals=chunk, total=total, has_more=offset + len(chunk) < len(self.meals))


def _listing(n: int, **store_kwargs):
    meals = [make_meal(i) for i in range(n)]
    store = FakeMealStore(meals, **store_kwargs)
    return MealListing(store, page_size=20), store, meals


def test_load_more_completes_25_meal_scenario():
    listing, store, meals = _listing(25)
    listing.initialize(meals[:20], total=25, has_more=True)

    added = asyncio.run(listing.load_more())
    assert store.calls == [(20, 20)]
    assert added == meals[20:]
    assert len(listing) == 25
    assert listing.has_more is False
    assert listing.offset == 25
    assert listing.meals == meals

    assert asyncio.run(listing.load_more()) == []
    assert store.calls == [(20, 20)]
    assert len(listing) == 25


def test_snapshot_grows_strictly_and_never_exceeds_total():
    listing, store, meals = _listing(47)
    listing.page_size = 10
    asyncio.run(listing.reload())
    sizes = [len(listing)]
    while listing.has_more:
        asyncio.run(listing.load_more())
        sizes.append(len(listing))
    assert sizes == [10, 20, 30, 40, 47]
    assert all(s <= listing.total for s in sizes)
    assert listing.meals == meals


def test_offset_advances_by_returned_count_on_short_pages():
    listing, store, meals = _listing(10, max_page=3)
    listing.initialize([], total=10, has_more=True)
    asyncio.run(listing.load_more())
    asyncio.run(listing.load_more())
    assert store.calls == [(0, 20), (3, 20)]
    assert listing.offset == 6
    assert listing.meals == meals[:6]


def test_load_more_failure_leaves_snapshot_unchanged():
    listing, store, meals = _listing(25)
    listing.initialize(meals[:20], total=25, has_more=True)
    store.fail_next = True

    with pytest.raises(StoreError):
        asyncio.run(listing.load_more())
    assert listing.meals == meals[:20]
    assert listing.offset == 20
    assert listing.has_more is True
    assert listing.is_loading is False

    # el siguiente intento (p.ej. otro aviso de scroll) funciona
    asyncio.run(listing.load_more())
    assert len(listing) == 25


def test_total_smaller_than_loaded_is_trusted_without_truncation():
    listing, store, meals = _listing(25, total_override=12)
    listing.initialize(meals[:20], total=25, has_more=True)
    asyncio.run(listing.load_more())
    assert listing.total == 12
    assert len(listing) == 25


def test_load_more_without_more_is_noop():
    listing, store, meals = _listing(5)
    listing.initialize(meals, total=5, has_more=False)
    assert asyncio.run(listing.load_more()) == []
    assert store.calls == []
    assert listing.meals == meals


def test_sentinel_outside_margin_does_not_fetch():
    listing, store, meals = _listing(25)
    listing.initialize(meals[:20], total=25, has_more=True)
    assert asyncio.run(listing.on_sentinel(listing.proximity_margin + 1)) is False
    assert store.calls == []
    assert asyncio.run(listing.on_sentinel(listing.proximity_margin)) is True
    assert store.calls == [(20, 20)]
    assert asyncio.run(listing.on_sentinel(0)) is False


def test_sentinel_triggers_are_dropped_while_fetch_in_flight():
    listing, store, meals = _listing(60)
    listing.initialize(meals[:20], total=60, has_more=True)

    async def scenario():
        store.gate = asyncio.Event()
        first = asyncio.create_task(listing.on_sentinel(0))
        await asyncio.sleep(0)
        assert listing.is_loading
        dropped = [await listing.on_sentinel(0), await listing.on_sentinel(50)]
        direct = await listing.load_more()
        store.gate.set()
        return await first, dropped, direct

    fired, dropped, direct = asyncio.run(scenario())
    assert fired is True
    assert dropped == [False, False]
    assert direct == []
    assert store.calls == [(20, 20)]
    assert len(listing) == 40
    assert listing.is_loading is False


def test_apply_filters_search_is_case_insensitive():
    listing, _, _ = _listing(0)
    soup, dumplings, pasta = make_meal(1, "Tomato Soup"), make_meal(2, "Soup Dumplings"), make_meal(3, "Pasta")
    listing.initialize([soup, dumplings, pasta], total=3, has_more=False)
    assert listing.apply_filters(search="soup") == [soup, dumplings]
    assert listing.apply_filters(search="SOUP") == [soup, dumplings]


def test_apply_filters_defaults_return_full_snapshot_in_order():
    listing, _, meals = _listing(0)
    meals = [make_meal(i) for i in range(6)]
    listing.initialize(meals, total=6, has_more=False)
    assert listing.apply_filters() == meals
    assert listing.apply_filters(search="", complexity="all", cuisine="all", labels=set()) == meals


def test_apply_filters_is_pure():
    listing, _, _ = _listing(0)
    meals = [make_meal(i, complexity=c) for i, c in enumerate(["easy", "hard", "easy"])]
    listing.initialize(meals, total=3, has_more=False)
    before = listing.meals
    a = listing.apply_filters(complexity="easy")
    b = listing.apply_filters(complexity="easy")
    assert a == b == [meals[0], meals[2]]
    assert listing.meals == before


def test_label_filter_has_and_semantics():
    listing, _, _ = _listing(0)
    meal = make_meal(1, labels=["Quick", "Dinner"])
    listing.initialize([meal], total=1, has_more=False)
    assert listing.apply_filters(labels={"Quick"}) == [meal]
    assert listing.apply_filters(labels={"quick", "DINNER"}) == [meal]
    assert listing.apply_filters(labels={"Quick", "Vegan"}) == []


def test_complexity_and_cuisine_filters():
    listing, _, _ = _listing(0)
    a = make_meal(1, complexity="easy", cuisine="Italian")
    b = make_meal(2, complexity="hard", cuisine="Mexican")
    c = make_meal(3, complexity="hard", cuisine="italian")
    listing.initialize([a, b, c], total=3, has_more=False)
    assert listing.apply_filters(complexity="hard") == [b, c]
    assert listing.apply_filters(cuisine="Italian") == [a, c]
    assert listing.apply_filters(complexity="hard", cuisine="Italian") == [c]
    assert listing.cuisines() == ["Italian", "Mexican"]


def test_snapshot_labels_vocabulary():
    listing, _, _ = _listing(0)
    listing.initialize([make_meal(1, labels=["Quick"]), make_meal(2, labels=["Vegan", "Quick"]), make_meal(3)], total=3, has_more=False)
    assert listing.labels() == ["Quick", "Vegan"]


def test_pick_random_returns_whole_pool_when_k_is_large():
    pool = [make_meal(i) for i in range(3)]
    for k in (3, 4, 10):
        picked = pick_random(pool, k)
        assert picked == pool
        assert picked is not pool
    assert pick_random(pool, 0) == []
    assert pick_random([], 3) == []


def test_pick_random_picks_distinct_members():
    pool = [make_meal(i) for i in range(10)]
    rng = random.Random(1234)
    picked = pick_random(pool, 3, rng=rng)
    assert len(picked) == 3
    assert len({m.id for m in picked}) == 3
    assert all(m in pool for m in picked)


def test_pick_random_is_not_degenerate():
    pool = [make_meal(i) for i in range(10)]
    rng = random.Random(7)
    draws = {frozenset(m.id for m in pick_random(pool, 3, rng=rng)) for _ in range(20)}
    assert len(draws) > 1


def test_pick_random_seeded_is_reproducible_and_index_based():
    a = pick_random(range(10**12), 3, rng=random.Random(99))
    b = pick_random(range(10**12), 3, rng=random.Random(99))
    assert a == b
    assert len(set(a)) == 3


def test_listing_pick_random_uses_its_rng():
    store = FakeMealStore([])
    pool = [make_meal(i) for i in range(10)]
    one = MealListing(store, rng=random.Random(5)).pick_random(pool, 3)
    two = MealListing(store, rng=random.Random(5)).pick_random(pool, 3)
    assert one == two


def test_listing_over_http_api(api_client, seed_meals):
    ordered = seed_meals(25)

    async def scenario():
        async with api_client() as client:
            listing = MealListing(client, page_size=20)
            await listing.reload()
            first = (len(listing), listing.total, listing.has_more)
            await listing.on_sentinel(0)
            return listing, first

    listing, first = asyncio.run(scenario())
    assert first == (20, 25, True)
    assert len(listing) == 25
    assert listing.has_more is False
    assert [m.id for m in listing.meals] == [m.id for m in ordered]


def test_cuisines_vocabulary_matches_filter_semantics():
    listing, _, _ = _listing(0)
    meals = [make_meal(1, cuisine="thai"), make_meal(2, cuisine="Italian"), make_meal(3, cuisine=" Thai "), make_meal(4, cuisine="")]
    listing.initialize(meals, total=4, has_more=False)
    assert listing.cuisines() == ["Italian", "thai"]
    for option in listing.cuisines():
        assert listing.apply_filters(cuisine=option)
    assert listing.apply_filters(cuisine="thai") == [meals[0], meals[2]]
