from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class FavoritesStore(Protocol):
    async def list_favorite_ids(self, user_id: str) -> Iterable[str]: ...
    async def add_favorite(self, user_id: str, meal_id: str) -> None: ...
    async def remove_favorite(self, user_id: str, meal_id: str) -> None: ...


class ToggleState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class FavoriteToggle:
    """Un cambio optimista de favorito y su desenlace."""
    user_id: str
    meal_id: str
    was_favorited: bool
    state: ToggleState = ToggleState.PENDING
    error: Optional[BaseException] = None

    @property
    def favorited(self) -> bool:
        """Estado que se pidió (el contrario del previo)."""
        return not self.was_favorited


class FavoritesSync:
    """
    Copia local del conjunto de favoritos de un usuario.

    is_favorited() es O(1) y sin I/O. toggle_favorite() aplica el cambio antes
    de llamar al store y lo deshace si la llamada falla. Los fallos de red se
    registran y dejan un estado degradado; nunca se propagan.

    No serializa toggles concurrentes sobre el mismo id: el llamador debe
    bloquear el botón mientras haya uno en vuelo.
    """

    def __init__(self, store: FavoritesStore) -> None:
        self.store = store
        self.user_id: Optional[str] = None
        self.is_loading = False
        self._favorites: Set[str] = set()
        # sube con cada load() y clear(); una carga vieja no escribe encima
        self._generation = 0

    @property
    def favorites(self) -> FrozenSet[str]:
        return frozenset(self._favorites)

    def is_favorited(self, meal_id: str) -> bool:
        return meal_id in self._favorites

    def clear(self) -> None:
        """Logout: vacía el conjunto y olvida al usuario."""
        self._generation += 1
        self.user_id = None
        self._favorites = set()
        self.is_loading = False

    async def load(self, user_id: str) -> FrozenSet[str]:
        if user_id != self.user_id:
            # otro usuario: no mostrar nunca los favoritos del anterior
            self._favorites = set()
        self._generation += 1
        generation = self._generation
        self.user_id = user_id
        self.is_loading = True
        try:
            ids = await self.store.list_favorite_ids(user_id)
        except Exception:
            logger.exception("Error loading favorites for user %s", user_id)
        else:
            if self._is_current(generation, user_id):
                self._favorites = set(ids)
            else:
                logger.debug("Discarding stale favorites load for user %s", user_id)
        finally:
            if generation == self._generation:
                self.is_loading = False
        return self.favorites

    def _is_current(self, generation: int, user_id: str) -> bool:
        return generation == self._generation and self.user_id == user_id

    def begin_toggle(self, meal_id: str) -> Optional[FavoriteToggle]:
        """Paso síncrono del toggle: invierte la pertenencia y devuelve el registro pendiente."""
        if self.user_id is None:
            return None
        toggle = FavoriteToggle(user_id=self.user_id, meal_id=meal_id, was_favorited=meal_id in self._favorites)
        self._apply(meal_id, toggle.favorited)
        return toggle

    async def commit(self, toggle: FavoriteToggle) -> FavoriteToggle:
        """Persiste un toggle pendiente; si falla, revierte sólo ese meal_id."""
        if toggle.state is not ToggleState.PENDING:
            return toggle
        try:
            if toggle.was_favorited:
                await self.store.remove_favorite(toggle.user_id, toggle.meal_id)
            else:
                await self.store.add_favorite(toggle.user_id, toggle.meal_id)
        except Exception as e:
            logger.warning("Error toggling favorite %s for user %s: %s", toggle.meal_id, toggle.user_id, e)
            # si entretanto hubo logout o cambio de usuario, no tocar el conjunto nuevo
            if self.user_id == toggle.user_id:
                self._apply(toggle.meal_id, toggle.was_favorited)
            toggle.state = ToggleState.ROLLED_BACK
            toggle.error = e
        else:
            toggle.state = ToggleState.COMMITTED
        return toggle

    async def toggle_favorite(self, meal_id: str) -> Optional[FavoriteToggle]:
        """Toggle optimista completo. None si no hay usuario cargado."""
        toggle = self.begin_toggle(meal_id)
        if toggle is None:
            logger.debug("toggle_favorite(%s) ignored: no user loaded", meal_id)
            return None
        return await self.commit(toggle)

    def _apply(self, meal_id: str, favorited: bool) -> None:
        if favorited:
            self._favorites.add(meal_id)
        else:
            self._favorites.discard(meal_id)
