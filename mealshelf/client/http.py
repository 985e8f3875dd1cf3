from __future__ import annotations
from typing import Any, Dict, List, Optional

import httpx

from ..schemas import FavoriteIds, LabelsOut, MealIn, MealOut, MealPage, NutritionFacts


class StoreError(RuntimeError):
    """Fallo de una llamada al servicio: red, timeout o respuesta no-2xx."""

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _error_detail(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or r.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return str(body)


class MealShelfClient:
    """
    Cliente async del API. Implementa los protocolos MealStore y FavoritesStore
    que consumen MealListing y FavoritesSync.

    Uso:
        async with MealShelfClient("http://localhost:8000", token=jwt) as client:
            page = await client.fetch_meals(offset=0, limit=20)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers: Dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if api_key:
            headers["X-API-Key"] = api_key
        self._http = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "MealShelfClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            r = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {url} failed: {e}") from e
        if r.status_code >= 400:
            raise StoreError(_error_detail(r), status_code=r.status_code)
        return r

    # --- Meal Store ---

    async def fetch_meals(self, offset: int, limit: int) -> MealPage:
        r = await self._request("GET", "/meals", params={"offset": offset, "limit": limit})
        return MealPage.model_validate(r.json())

    async def get_meal(self, meal_id: str) -> Optional[MealOut]:
        """None si la comida ya no existe (p.ej. borrada desde otra sesión)."""
        try:
            r = await self._request("GET", f"/meals/{meal_id}")
        except StoreError as e:
            if e.status_code == 404:
                return None
            raise
        return MealOut.model_validate(r.json())

    async def create_meal(self, data: MealIn, estimate_macros: bool = False) -> MealOut:
        r = await self._request(
            "POST", "/meals",
            params={"estimate_macros": estimate_macros},
            json=data.model_dump(mode="json"),
        )
        return MealOut.model_validate(r.json())

    async def replace_meal(self, meal_id: str, data: MealIn, estimate_macros: bool = False) -> MealOut:
        r = await self._request(
            "PUT", f"/meals/{meal_id}",
            params={"estimate_macros": estimate_macros},
            json=data.model_dump(mode="json"),
        )
        return MealOut.model_validate(r.json())

    async def delete_meal(self, meal_id: str) -> None:
        await self._request("DELETE", f"/meals/{meal_id}")

    async def list_labels(self) -> List[str]:
        r = await self._request("GET", "/labels")
        return LabelsOut.model_validate(r.json()).labels

    async def estimate_nutrition(self, ingredients: List[str]) -> NutritionFacts:
        r = await self._request("POST", "/nutrition", json={"ingredients": ingredients})
        return NutritionFacts.model_validate(r.json())

    # --- Favorites Store ---

    async def list_favorite_ids(self, user_id: str) -> List[str]:
        r = await self._request("GET", f"/users/{user_id}/favorites")
        return FavoriteIds.model_validate(r.json()).meal_ids

    async def list_favorite_meals(self, user_id: str) -> List[MealOut]:
        r = await self._request("GET", f"/users/{user_id}/favorites/meals")
        return [MealOut.model_validate(m) for m in r.json()]

    async def add_favorite(self, user_id: str, meal_id: str) -> None:
        await self._request("PUT", f"/users/{user_id}/favorites/{meal_id}")

    async def remove_favorite(self, user_id: str, meal_id: str) -> None:
        await self._request("DELETE", f"/users/{user_id}/favorites/{meal_id}")
