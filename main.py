"""WSGI entrypoint for the Family Recipes application.

Local development can use ``flask --app main run``, which imports the ``app``
object defined below. ``LOG_LEVEL`` controls how chatty the storage layer is.
"""

import logging
import os

from family_recipes import create_app

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


__all__ = ["app"]
