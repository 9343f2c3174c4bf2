"""Docstring for star_registry.run_node."""

import logging
import os
import sys
from argparse import ArgumentParser
from typing import Final

from pydantic import BaseModel

from star_registry.constants import DEFAULT_HOST, DEFAULT_PORT
from star_registry.node import app

logger = logging.getLogger("star-registry-run-node")

stdout_handler = logging.StreamHandler(stream=sys.stdout)
stdout_handler.setFormatter(
    logging.Formatter(
        "[%(name)s] %(asctime)s | %(levelname)s | %(filename)s:%(lineno)s >>> %(message)s",
    ),
)

logger.addHandler(stdout_handler)
logger.setLevel(logging.INFO)
logger.propagate = False


class Config(BaseModel):
    """Used as a checkpoint between user input and software."""

    host: str
    port: int
    debug: bool


COMPUTED_HOST: Final[str] = os.environ.get("STAR_REGISTRY_HOST", DEFAULT_HOST)
COMPUTED_PORT: Final[int] = int(
    os.environ.get("STAR_REGISTRY_PORT", DEFAULT_PORT),
)

parser = ArgumentParser(
    prog="Star Registry run_node",
    description=f"""
The defaults are computed like this:

    If supplied by CLI, use that.
    If not, look into STAR_REGISTRY_HOST and STAR_REGISTRY_PORT environment variables.
    If not defined, use the standard defaults ({DEFAULT_HOST} & {DEFAULT_PORT}).

The chain lives in memory only: it starts again from the Genesis Block
every time the node is started.
""",
)
parser.add_argument(
    "-a",
    "--host",
    default=COMPUTED_HOST,
    help="IP address the API binds to",
)
parser.add_argument(
    "-p",
    "--port",
    default=COMPUTED_PORT,
    type=int,
    help="port of the API",
)
parser.add_argument(
    "--debug",
    default=False,
    action="store_true",
    help="run Flask in debug mode",
)


def main(argv: list[str] | None = None) -> None:
    """Handle running a Star Registry node from the command line."""
    arguments = parser.parse_args(argv)

    config = Config(
        host=arguments.host,
        port=arguments.port,
        debug=arguments.debug,
    )
    logger.info(f"running with config {config}")

    try:
        app.run(
            host=config.host,
            port=config.port,
            debug=config.debug,
            use_reloader=False,
        )
    except KeyboardInterrupt:
        logger.info("user interrupted the node. goodbye! ^-^")


if __name__ == "__main__":
    main()
