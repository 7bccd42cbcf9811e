import logging
import sys
import urllib.parse

from digirepo.oai.api.app import initialize_application
from digirepo.oai.service.container import container_instance
from digirepo.oai.store.sqlalchemy.session import SessionManager


def run(url=None):
    base_url = url or "http://localhost:6500/"
    scheme, netloc, path, parameters, query, fragment = urllib.parse.urlparse(base_url)
    if ":" in netloc:
        host, port = netloc.split(":")
        port = int(port)
    else:
        host = netloc
        port = 80

    debug = True

    services = container_instance()
    # Create the repository tables if they don't exist yet.
    SessionManager.initialize_schema(services.store.engine())
    app = initialize_application(services)

    logging.info("Starting app on %s:%s", host, port)

    sslContext = "adhoc" if scheme == "https" else None
    app.run(debug=debug, host=host, port=port, threaded=True, ssl_context=sslContext)


if __name__ == "__main__":
    url = sys.argv.pop() if len(sys.argv) > 1 else None
    run(url)
