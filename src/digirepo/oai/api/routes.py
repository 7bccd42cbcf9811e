from typing import Any

from flask import Response

from digirepo.oai.api.app import app


@app.route("/oai", methods=["GET", "POST"])
def oai() -> Response:
    return app.manager.oai_controller.handle()


# Controllers used for operations purposes
@app.route("/version.json")
def application_version() -> dict[str, Any]:
    return app.manager.version.version()


@app.route("/healthcheck.html")
def health_check() -> Response:
    return Response("", 200)
