import json
import sys

import click
from flask import Flask

from navhub.api import api_bp
from navhub.config import Config
from navhub.extensions import CATALOG_EXTENSION_KEY, db, get_catalog
from navhub.services.catalog import CatalogStore
from navhub.services.reconcile import import_snapshot
from navhub.services.snapshot import export_snapshot
from navhub.storage import SQLAlchemyStorage


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized navhub database.")

    @app.cli.command("export-data")
    @click.argument("path", required=False, type=click.Path(dir_okay=False))
    def export_data_command(path):
        text = json.dumps(export_snapshot(get_catalog()), ensure_ascii=False, indent=2)
        if path:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(text)
            print(f"Exported catalog to {path}.")
        else:
            print(text)

    @app.cli.command("import-data")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def import_data_command(path):
        with open(path, encoding="utf-8") as handle:
            payload = json.load(handle)
        result = import_snapshot(get_catalog(), payload)
        print(json.dumps(result.as_dict(), indent=2))
        if not result.success:
            sys.exit(1)

    with app.app_context():
        db.create_all()
        store = CatalogStore(
            SQLAlchemyStorage(), delete_policy=app.config["GROUP_DELETE_POLICY"]
        )
        app.extensions[CATALOG_EXTENSION_KEY] = store.load()

    return app
