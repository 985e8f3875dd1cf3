from sqlmodel import select

from mealshelf.models_db import Favorite
from mealshelf.services import favorites as svc

ANA = "ana@example.com"


def test_favorite_insert_is_idempotent(client, auth, seed_meals):
    meal = seed_meals(1)[0]
    headers = auth(ANA)
    for _ in range(2):
        r = client.put(f"/users/{ANA}/favorites/{meal.id}", headers=headers)
        assert r.status_code == 200
        assert r.json() == {"ok": True, "meal_id": meal.id}
    assert client.get(f"/users/{ANA}/favorites", headers=headers).json() == {"meal_ids": [meal.id]}


def test_favorite_delete_absent_is_noop(client, auth, seed_meals):
    meal = seed_meals(1)[0]
    headers = auth(ANA)
    r = client.delete(f"/users/{ANA}/favorites/{meal.id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["removed"] is False

    client.put(f"/users/{ANA}/favorites/{meal.id}", headers=headers)
    r = client.delete(f"/users/{ANA}/favorites/{meal.id}", headers=headers)
    assert r.json()["removed"] is True
    assert client.get(f"/users/{ANA}/favorites", headers=headers).json()["meal_ids"] == []


def test_favorite_of_missing_meal_is_404(client, auth):
    r = client.put(f"/users/{ANA}/favorites/nope", headers=auth(ANA))
    assert r.status_code == 404


def test_cannot_touch_other_users_favorites(client, auth, seed_meals):
    meal = seed_meals(1)[0]
    bob = auth("bob@example.com")
    assert client.get(f"/users/{ANA}/favorites", headers=bob).status_code == 403
    assert client.put(f"/users/{ANA}/favorites/{meal.id}", headers=bob).status_code == 403
    assert client.delete(f"/users/{ANA}/favorites/{meal.id}", headers=bob).status_code == 403
    r = client.get(f"/users/{ANA}/favorites/meals", headers=bob)
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


def test_favorite_meals_newest_favorite_first(client, auth, seed_meals):
    first, second, third = seed_meals(3)
    headers = auth(ANA)
    for meal in (third, first, second):
        client.put(f"/users/{ANA}/favorites/{meal.id}", headers=headers)

    ids = client.get(f"/users/{ANA}/favorites", headers=headers).json()["meal_ids"]
    assert ids == [second.id, first.id, third.id]
    meals = client.get(f"/users/{ANA}/favorites/meals", headers=headers).json()
    assert [m["id"] for m in meals] == [second.id, first.id, third.id]
    assert meals[0]["name"] == second.name


def test_favorites_are_per_user(client, auth, seed_meals):
    meal = seed_meals(1)[0]
    client.put(f"/users/{ANA}/favorites/{meal.id}", headers=auth(ANA))
    assert client.get("/users/bob@example.com/favorites", headers=auth("bob@example.com")).json()["meal_ids"] == []


def test_service_add_favorite_returns_existing_row(session, seed_meals):
    meal = seed_meals(1)[0]
    a = svc.add_favorite(session, ANA, meal.id)
    b = svc.add_favorite(session, ANA, meal.id)
    assert a.id == b.id
    rows = session.exec(select(Favorite).where(Favorite.user_id == ANA)).all()
    assert len(rows) == 1
