from __future__ import annotations

from typing import TYPE_CHECKING

from flask import current_app
from flask_sqlalchemy import SQLAlchemy

if TYPE_CHECKING:
    from navhub.services.catalog import CatalogStore


db = SQLAlchemy()

CATALOG_EXTENSION_KEY = "navhub.catalog"


def get_catalog() -> CatalogStore:
    return current_app.extensions[CATALOG_EXTENSION_KEY]
