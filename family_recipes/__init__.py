import os
from typing import Optional

from flask import Flask, Response, flash, redirect, render_template, request, url_for

from .cards import format_date, render_detail, render_print_card
from .codec import EXPORT_FILENAME
from .config import blob_store_from_env
from .errors import InvalidImportFormat, RecipeNotFound
from .filters import distinct_authors, distinct_tags, excerpt, filter_recipes
from .models import Recipe, RecipeFields
from .photos import allowed_image, has_upload, read_photo
from .repository import RecipeRepository

UNSUPPORTED_IMAGE = "Unsupported image format. Allowed formats: PNG, JPG, JPEG, GIF, WEBP."


def create_app(repository: Optional[RecipeRepository] = None) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    repository:
        Optional recipe repository. When ``None`` the application builds one
        on top of the blob store selected through environment variables.
    """

    app = Flask(__name__)
    app.config.setdefault("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me")

    if repository is None:
        repository = RecipeRepository(blob_store_from_env())
    app.config["RECIPE_REPOSITORY"] = repository
    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["excerpt"] = excerpt

    def _repository() -> RecipeRepository:
        return app.config["RECIPE_REPOSITORY"]

    @app.get("/")
    def index() -> str:
        recipes = _repository().list_all()
        query = request.args.get("q", "")
        tag = request.args.get("tag", "")
        author = request.args.get("author", "")

        return render_template(
            "index.html",
            recipes=filter_recipes(recipes, query, tag, author),
            total=len(recipes),
            tags=distinct_tags(recipes),
            authors=distinct_authors(recipes),
            query=query,
            selected_tag=tag,
            selected_author=author,
            title="Family Recipes",
        )

    @app.get("/recipes/new")
    def new_recipe() -> str:
        return render_template("recipe_form.html", recipe=None, title="New Recipe")

    @app.post("/recipes")
    def create_recipe() -> Response:
        fields = _fields_from_form()
        image = request.files.get("photo")

        if not fields.title:
            flash("Please provide a recipe title.", "error")
            return redirect(url_for("new_recipe"))

        if has_upload(image) and not allowed_image(image.filename):
            flash(UNSUPPORTED_IMAGE, "error")
            return redirect(url_for("new_recipe"))

        fields.photo = read_photo(image)
        recipe = _repository().create(fields)
        flash(f"Recipe '{recipe.title}' saved.", "success")
        return redirect(url_for("index"))

    @app.get("/recipes/<recipe_id>")
    def view_recipe(recipe_id: str):
        recipe = _repository().find_by_id(recipe_id)
        if recipe is None:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))
        return render_detail(recipe)

    @app.get("/recipes/<recipe_id>/print")
    def print_recipe(recipe_id: str):
        recipe = _repository().find_by_id(recipe_id)
        if recipe is None:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))
        return render_print_card(recipe)

    @app.get("/recipes/<recipe_id>/edit")
    def edit_recipe(recipe_id: str):
        try:
            recipe = _repository().get(recipe_id)
        except RecipeNotFound:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

        return render_template("recipe_form.html", recipe=recipe, title="Edit Recipe")

    @app.post("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str) -> Response:
        fields = _fields_from_form()
        image = request.files.get("photo")
        remove_photo = request.form.get("remove_photo") == "1"

        if has_upload(image):
            remove_photo = False

        if not fields.title:
            flash("Please provide a recipe title.", "error")
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))

        if has_upload(image) and not allowed_image(image.filename):
            flash(UNSUPPORTED_IMAGE, "error")
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))

        fields.photo = read_photo(image)
        try:
            updated = _repository().update(recipe_id, fields, remove_photo=remove_photo)
        except RecipeNotFound:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

        flash(f"Recipe '{updated.title}' updated.", "success")
        return redirect(url_for("index"))

    @app.post("/recipes/<recipe_id>/delete")
    def delete_recipe(recipe_id: str) -> Response:
        if not _confirmed():
            flash("Please confirm that you want to delete this recipe.", "error")
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))

        if _repository().delete(recipe_id):
            flash("Recipe deleted.", "success")
        else:
            flash("Recipe not found.", "error")
        return redirect(url_for("index"))

    @app.get("/export")
    def export_recipes() -> Response:
        return Response(
            _repository().export_json(),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
        )

    @app.post("/import")
    def import_recipes() -> Response:
        upload = request.files.get("file")

        if not has_upload(upload):
            flash("Choose a JSON file to import.", "error")
            return redirect(url_for("index"))

        if not _confirmed():
            flash("Please confirm the import.", "error")
            return redirect(url_for("index"))

        try:
            text = upload.read().decode("utf-8-sig")
        except UnicodeDecodeError:
            flash("Invalid JSON file.", "error")
            return redirect(url_for("index"))

        try:
            count = _repository().import_json(text)
        except InvalidImportFormat as exc:
            app.logger.warning("Rejected import of %s: %s", upload.filename, exc)
            flash(str(exc), "error")
        else:
            flash(f"Imported {count} recipes.", "success")
        return redirect(url_for("index"))

    @app.post("/clear")
    def clear_recipes() -> Response:
        if not _confirmed():
            flash("Please confirm that you want to delete all recipes.", "error")
            return redirect(url_for("index"))

        _repository().clear()
        flash("All recipes deleted.", "success")
        return redirect(url_for("index"))

    return app


def _fields_from_form() -> RecipeFields:
    return RecipeFields(
        title=request.form.get("title", "").strip(),
        author=request.form.get("author", "").strip(),
        date=request.form.get("date", "").strip() or None,
        tags=request.form.get("tags", "").strip(),
        ingredients=request.form.get("ingredients", "").strip(),
        directions=request.form.get("directions", "").strip(),
        notes=request.form.get("notes", "").strip(),
    )


def _confirmed() -> bool:
    return request.form.get("confirm") == "yes"


__all__ = ["create_app", "Recipe", "RecipeRepository"]
