"""
Knowledge Oracle — TCP server for ServerBackedKnowledgeSource clients.

Serves either:
  • a static JSON config        RESPONDS_TO_ORACLE_CONFIG=/path/config.json
  • live Python classes          RESPONDS_TO_ORACLE_MODULES=app.models,app.billing
                                 RESPONDS_TO_ORACLE_OVERRIDES=user=SemUser

Bind address: RESPONDS_TO_ORACLE_HOST / RESPONDS_TO_ORACLE_PORT.
"""

import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from responds_to.knowledge_source import StaticKnowledgeSource, load_config
from responds_to.oracle import OracleServer
from responds_to.reflection import ClassRegistry, ReflectiveKnowledgeSource
from responds_to.settings import OracleSettings

logger = logging.getLogger("oracle_server")


def build_knowledge_source(settings: OracleSettings):
    if settings.config_path:
        return StaticKnowledgeSource(load_config(settings.config_path))
    if settings.modules:
        registry = ClassRegistry.from_modules(settings.modules)
        return ReflectiveKnowledgeSource(registry, overrides=settings.overrides)
    raise SystemExit(
        "Nothing to serve: set RESPONDS_TO_ORACLE_CONFIG or RESPONDS_TO_ORACLE_MODULES"
    )


def main():
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    settings = OracleSettings.from_env()
    knowledge_source = build_knowledge_source(settings)

    with OracleServer(
        knowledge_source, settings.host, settings.port, read_timeout=settings.timeout
    ) as server:
        host, port = server.address
        logger.info("Oracle listening on %s:%d", host, port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Oracle stopped")


if __name__ == "__main__":
    main()
