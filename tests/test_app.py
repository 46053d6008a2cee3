from __future__ import annotations

import io
import json
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from family_recipes import create_app
from family_recipes.models import RecipeFields
from family_recipes.repository import RecipeRepository
from family_recipes.storage import MemoryBlobStore

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


def create_test_client():
    repository = RecipeRepository(MemoryBlobStore())
    app = create_app(repository=repository)
    app.config.update(TESTING=True)
    return app.test_client(), repository


def test_index_shows_existing_recipes():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Chocolate Cake", author="Grandma", ingredients="flour\nsugar"))

    response = client.get("/")
    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert "Chocolate Cake" in page
    assert "Grandma" in page
    assert "flour, sugar" in page


def test_index_filters_by_query_tag_and_author():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Apple Pie", author="Bob", tags="dessert, fall"))
    repository.create(RecipeFields(title="Tomato Soup", author="Alice", tags="soup"))

    page = client.get("/", query_string={"tag": "dessert"}).get_data(as_text=True)
    assert "Apple Pie" in page
    assert "Tomato Soup" not in page

    page = client.get("/", query_string={"author": "Alice"}).get_data(as_text=True)
    assert "Tomato Soup" in page
    assert "Apple Pie" not in page

    page = client.get("/", query_string={"q": "SOUP"}).get_data(as_text=True)
    assert "Tomato Soup" in page
    assert "Apple Pie" not in page


def test_can_add_recipe_via_form():
    client, repository = create_test_client()

    response = client.post(
        "/recipes",
        data={
            "title": "Summer Salad",
            "author": "Ann",
            "date": "2024-06-01",
            "tags": "salad, summer",
            "ingredients": "tomatoes\ncucumber",
            "directions": "Mix everything.",
            "notes": "Best cold.",
        },
        follow_redirects=True,
    )

    assert response.status_code == 200
    recipes = repository.list_all()
    assert [recipe.title for recipe in recipes] == ["Summer Salad"]
    assert recipes[0].date == "2024-06-01"
    assert recipes[0].photo is None
    assert "Recipe &#39;Summer Salad&#39; saved." in response.get_data(as_text=True)


def test_can_add_recipe_with_photo():
    client, repository = create_test_client()

    response = client.post(
        "/recipes",
        data={
            "title": "Bread",
            "photo": (io.BytesIO(PNG_BYTES), "bread.png", "image/png"),
        },
        content_type="multipart/form-data",
        follow_redirects=True,
    )

    assert response.status_code == 200
    photo = repository.list_all()[0].photo
    assert photo is not None
    assert photo.startswith("data:image/png;base64,")


def test_rejects_unsupported_photo_format():
    client, repository = create_test_client()

    response = client.post(
        "/recipes",
        data={"title": "Bread", "photo": (io.BytesIO(b"text"), "notes.txt")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )

    assert not repository.list_all()
    assert b"Unsupported image format." in response.data


def test_cannot_add_recipe_without_title():
    client, repository = create_test_client()

    response = client.post(
        "/recipes",
        data={"title": "", "ingredients": "water"},
        follow_redirects=True,
    )

    assert response.status_code == 200
    assert not repository.list_all()
    assert b"Please provide a recipe title." in response.data


def test_delete_recipe_requires_confirmation():
    client, repository = create_test_client()
    recipe = repository.create(RecipeFields(title="Tofu Stir Fry"))

    response = client.post(f"/recipes/{recipe.id}/delete", follow_redirects=True)

    assert repository.find_by_id(recipe.id) is not None
    assert b"Please confirm that you want to delete this recipe." in response.data


def test_delete_recipe_removes_item():
    client, repository = create_test_client()
    recipe = repository.create(RecipeFields(title="Tofu Stir Fry"))

    response = client.post(
        f"/recipes/{recipe.id}/delete", data={"confirm": "yes"}, follow_redirects=True
    )

    assert response.status_code == 200
    assert repository.find_by_id(recipe.id) is None
    assert b"Recipe deleted." in response.data


def test_edit_recipe_page_prefills_current_values():
    client, repository = create_test_client()
    recipe = repository.create(
        RecipeFields(title="Pasta Salad", notes="Perfect for picnics", ingredients="pasta\ntomatoes")
    )

    response = client.get(f"/recipes/{recipe.id}/edit")

    assert response.status_code == 200
    page = response.get_data(as_text=True)
    assert 'value="Pasta Salad"' in page
    assert "Perfect for picnics" in page
    assert "pasta\ntomatoes" in page


def test_edit_unknown_recipe_redirects():
    client, _ = create_test_client()

    response = client.get("/recipes/missing/edit", follow_redirects=True)

    assert b"Recipe not found." in response.data


def test_can_update_recipe_via_form_and_keep_photo():
    client, repository = create_test_client()
    recipe = repository.create(
        RecipeFields(title="Veggie Curry", ingredients="carrots", photo="data:image/png;base64,AAAA")
    )

    response = client.post(
        f"/recipes/{recipe.id}",
        data={
            "title": "Spicy Veggie Curry",
            "ingredients": "carrots\npotatoes",
            "directions": "Add spices.",
        },
        follow_redirects=True,
    )

    assert response.status_code == 200
    updated = repository.get(recipe.id)
    assert updated.title == "Spicy Veggie Curry"
    assert updated.ingredients == "carrots\npotatoes"
    assert updated.directions == "Add spices."
    assert updated.photo == "data:image/png;base64,AAAA"
    assert "Recipe &#39;Spicy Veggie Curry&#39; updated." in response.get_data(as_text=True)


def test_can_remove_photo_via_form():
    client, repository = create_test_client()
    recipe = repository.create(RecipeFields(title="Curry", photo="data:image/png;base64,AAAA"))

    client.post(f"/recipes/{recipe.id}", data={"title": "Curry", "remove_photo": "1"})

    assert repository.get(recipe.id).photo is None


def test_cannot_update_recipe_without_title():
    client, repository = create_test_client()
    recipe = repository.create(RecipeFields(title="Soup"))

    response = client.post(
        f"/recipes/{recipe.id}",
        data={"title": "", "directions": "Boil longer."},
        follow_redirects=True,
    )

    assert response.status_code == 200
    assert b"Please provide a recipe title." in response.data
    assert repository.get(recipe.id).title == "Soup"


def test_update_unknown_recipe_flashes_not_found():
    client, repository = create_test_client()

    response = client.post("/recipes/missing", data={"title": "Soup"}, follow_redirects=True)

    assert b"Recipe not found." in response.data
    assert not repository.list_all()


def test_view_and_print_documents_escape_title():
    client, repository = create_test_client()
    recipe = repository.create(RecipeFields(title="<script>alert(1)</script>"))

    for path in (f"/recipes/{recipe.id}", f"/recipes/{recipe.id}/print"):
        page = client.get(path).get_data(as_text=True)
        assert "<script>alert(1)</script>" not in page
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page


def test_export_downloads_json_array():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Pancakes"))

    response = client.get("/export")

    assert response.status_code == 200
    assert response.mimetype == "application/json"
    assert "family-recipes.json" in response.headers["Content-Disposition"]
    assert [item["title"] for item in json.loads(response.get_data(as_text=True))] == ["Pancakes"]


def test_import_merges_uploaded_file():
    client, repository = create_test_client()
    existing = repository.create(RecipeFields(title="Pancakes"))
    payload = json.dumps([{"id": existing.id, "title": "Fluffy Pancakes"}, {"title": "Waffles"}])

    response = client.post(
        "/import",
        data={"file": (io.BytesIO(payload.encode("utf-8")), "backup.json"), "confirm": "yes"},
        content_type="multipart/form-data",
        follow_redirects=True,
    )

    assert b"Imported 2 recipes." in response.data
    assert [recipe.title for recipe in repository.list_all()] == ["Fluffy Pancakes", "Waffles"]


def test_import_rejects_non_array():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Pancakes"))
    before = repository.list_all()

    response = client.post(
        "/import",
        data={"file": (io.BytesIO(b'{"title": "Waffles"}'), "backup.json"), "confirm": "yes"},
        content_type="multipart/form-data",
        follow_redirects=True,
    )

    assert b"Imported file must be a JSON array of recipes." in response.data
    assert repository.list_all() == before


def test_clear_requires_confirmation():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Pancakes"))

    client.post("/clear", follow_redirects=True)
    assert len(repository) == 1

    response = client.post("/clear", data={"confirm": "yes"}, follow_redirects=True)
    assert len(repository) == 0
    assert b"All recipes deleted." in response.data


def test_import_with_lone_surrogate_keeps_pages_working():
    client, repository = create_test_client()
    payload = b'[{"id": "a", "title": "Pie \\ud800"}]'

    response = client.post(
        "/import",
        data={"file": (io.BytesIO(payload), "backup.json"), "confirm": "yes"},
        content_type="multipart/form-data",
        follow_redirects=True,
    )

    assert response.status_code == 200
    assert b"Imported 1 recipes." in response.data
    assert repository.get("a").title == "Pie ?"
    assert client.get("/export").status_code == 200
    assert client.get("/recipes/a/print").status_code == 200


def test_import_rejects_deeply_nested_json():
    client, repository = create_test_client()
    repository.create(RecipeFields(title="Pancakes"))
    before = repository.list_all()

    response = client.post(
        "/import",
        data={"file": (io.BytesIO(b"[" * 200000), "backup.json"), "confirm": "yes"},
        content_type="multipart/form-data",
    )

    assert response.status_code == 302
    assert repository.list_all() == before
    page = client.get("/").get_data(as_text=True)
    assert "Invalid JSON file." in page
