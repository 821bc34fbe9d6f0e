"""Static file server for rendered frames and the landing page."""

from typing import Optional
import logging
import os
import shutil

from flask import Flask, abort, send_from_directory

from .config import ServerConfig


logger = logging.getLogger(__name__)

PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")


def ensure_static_dir(directory: str) -> str:
    """Create ``directory`` if needed and seed it with the packaged landing page."""
    root = os.path.abspath(directory)
    os.makedirs(root, exist_ok=True)
    index = os.path.join(root, "index.html")
    if not os.path.exists(index):
        shutil.copyfile(os.path.join(PUBLIC_DIR, "index.html"), index)
        logger.debug("Seeded %s", index)
    return root


def create_app(static_dir: Optional[str] = None) -> Flask:
    """Flask app that serves ``static_dir`` at the URL root and nothing else."""
    root = os.path.abspath(static_dir or PUBLIC_DIR)
    if not os.path.isdir(root):
        raise ValueError(f"Static directory does not exist: {root}")

    app = Flask(__name__, static_folder=None)
    app.config["STATIC_ROOT"] = root

    @app.route("/", defaults={"path": "index.html"})
    @app.route("/<path:path>")
    def static_file(path):
        if os.path.isdir(os.path.join(root, path)):
            path = os.path.join(path, "index.html")
        if not os.path.isfile(os.path.join(root, path)):
            abort(404)
        return send_from_directory(root, path)

    return app


def serve(config: Optional[ServerConfig] = None):
    config = config or ServerConfig()
    app = create_app(ensure_static_dir(config.directory))
    logger.info("Server started on port %d serving %s", config.port, app.config["STATIC_ROOT"])
    app.run(host=config.host, port=config.port)
