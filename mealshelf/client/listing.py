from __future__ import annotations
import random
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, TypeVar

from ..schemas import MealOut, MealPage
from ..services.labels import label_set

T = TypeVar("T")

ALL = "all"
DEFAULT_PAGE_SIZE = 20
DEFAULT_PROXIMITY_PX = 200.0


class MealStore(Protocol):
    async def fetch_meals(self, offset: int, limit: int) -> MealPage: ...


def pick_random(pool: Sequence[T], k: int, rng: Optional[random.Random] = None) -> List[T]:
    """
    k elementos distintos del pool, uniformes y sin reemplazo.

    Fisher-Yates parcial sobre índices con un dict de intercambios: O(k) sin
    copiar ni barajar el pool. Con k >= len(pool) devuelve el pool entero en su
    orden original. Cada llamada muestrea de cero (sirve para "barajar otra vez").
    """
    n = len(pool)
    if k >= n:
        return list(pool)
    if k <= 0:
        return []
    rng = rng or random.Random()
    swapped: Dict[int, int] = {}
    picked: List[T] = []
    for i in range(k):
        j = rng.randrange(i, n)
        idx = swapped.get(j, j)
        swapped[j] = swapped.get(i, i)
        picked.append(pool[idx])
    return picked


class MealListing:
    """
    Snapshot de comidas de una vista de listado, cargado página a página.

    Los filtros se calculan en local sobre lo ya cargado; sólo load_more()
    hace I/O y, como mucho, hay un fetch de página en vuelo a la vez.
    """

    def __init__(
        self,
        store: MealStore,
        page_size: int = DEFAULT_PAGE_SIZE,
        proximity_margin: float = DEFAULT_PROXIMITY_PX,
        rng: Optional[random.Random] = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.store = store
        self.page_size = page_size
        self.proximity_margin = proximity_margin
        self.rng = rng or random.Random()
        self._meals: List[MealOut] = []
        self.total = 0
        self.has_more = False
        self.offset = 0
        self._loading = False

    @property
    def meals(self) -> List[MealOut]:
        return list(self._meals)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def __len__(self) -> int:
        return len(self._meals)

    def initialize(self, first_page: Iterable[MealOut], total: int, has_more: bool) -> None:
        self._meals = list(first_page)
        self.total = total
        self.has_more = has_more
        self.offset = len(self._meals)

    async def reload(self) -> None:
        """Descarta el snapshot y pide la primera página."""
        page = await self.store.fetch_meals(offset=0, limit=self.page_size)
        self.initialize(page.meals, page.total, page.has_more)

    async def load_more(self) -> List[MealOut]:
        """
        Pide la página en el offset actual y la añade al final.

        No-op (devuelve []) si no hay más o si ya hay un fetch en vuelo.
        Si el store falla el snapshot no cambia y el error se propaga; el
        siguiente aviso de scroll volverá a intentarlo.
        """
        if not self.has_more or self._loading:
            return []
        self._loading = True
        try:
            page = await self.store.fetch_meals(offset=self.offset, limit=self.page_size)
        finally:
            self._loading = False
        self._meals.extend(page.meals)
        # el offset avanza por lo recibido, no por page_size (páginas cortas)
        self.offset += len(page.meals)
        # si el total baja por debajo de lo cargado se acepta, sin truncar
        self.total = page.total
        self.has_more = page.has_more
        return list(page.meals)

    async def on_sentinel(self, distance_px: float) -> bool:
        """
        El centinela del final de la lista está a distance_px del viewport.
        Lanza load_more() si está dentro del margen; True si hubo fetch.
        """
        if distance_px > self.proximity_margin:
            return False
        if not self.has_more or self._loading:
            return False
        await self.load_more()
        return True

    def apply_filters(
        self,
        search: str = "",
        complexity: str = ALL,
        cuisine: str = ALL,
        labels: Iterable[str] = (),
    ) -> List[MealOut]:
        needle = search.strip().lower()
        wanted = label_set(labels)
        cuisine_key = cuisine.strip().lower()
        out: List[MealOut] = []
        for meal in self._meals:
            if needle and needle not in meal.name.lower():
                continue
            if complexity != ALL and meal.complexity != complexity:
                continue
            if cuisine != ALL and meal.cuisine.strip().lower() != cuisine_key:
                continue
            if wanted and not wanted.issubset(label_set(meal.labels)):
                continue
            out.append(meal)
        return out

    def pick_random(self, pool: Sequence[MealOut], k: int = 3) -> List[MealOut]:
        return pick_random(pool, k, rng=self.rng)

    def cuisines(self) -> List[str]:
        """Cocinas del snapshot sin duplicados por mayúsculas; gana la primera grafía."""
        seen = {}
        for m in self._meals:
            name = (m.cuisine or "").strip()
            if name:
                seen.setdefault(name.lower(), name)
        return sorted(seen.values(), key=str.lower)

    def labels(self) -> List[str]:
        found = set()
        for m in self._meals:
            found.update(m.labels or [])
        return sorted(found)
