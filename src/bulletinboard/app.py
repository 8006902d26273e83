"""
=============================================================================
APPLICATION FACTORY
=============================================================================

Builds a ready-to-run bulletin board server:

    store    BoardStore (optionally seeded with demo data)
    pipeline LoggingMiddleware → AuthMiddleware → router
    router   /api/* → BoardAPI, anything else → static files or 404

    server = create_app(ServerConfig(static_dir="./public"))
    server.run()

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .handlers import BoardAPI, StaticFileHandler
from .middleware import LoggingMiddleware, AuthMiddleware
from .server import HTTPServer
from .store import BoardStore, seed_demo_data


logger = logging.getLogger(__name__)


def create_store(config: ServerConfig) -> BoardStore:
    store = BoardStore(
        session_ttl=config.session_ttl,
        password_rounds=config.password_rounds,
    )
    if config.seed_demo_data:
        seed_demo_data(store)
    return store


def create_app(
    config: Optional[ServerConfig] = None,
    store: Optional[BoardStore] = None,
) -> HTTPServer:
    """
    Create the bulletin board server.

    Args:
        config: Server configuration. Defaults are used if not provided.
        store: An existing store to serve. A new one is built from config
            if not provided.

    Returns:
        An HTTPServer with every endpoint registered; call run() to start it.

    Raises:
        ValueError: If the configuration is invalid or static_dir is not a
            directory.
    """
    config = config or ServerConfig()
    server = HTTPServer(config)

    if store is None:
        store = create_store(config)

    server.use(LoggingMiddleware(log_format=config.log_format))
    server.use(AuthMiddleware(store))

    BoardAPI(store).register(server.router)

    if config.static_dir:
        static = StaticFileHandler(config.static_dir)
        server.router.default = static.handle
        logger.info(f"Serving static files from {static.root_dir}")

    return server
