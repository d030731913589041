import logging
import os

from terrafying.utils import config

TERRAFYING_CONFIG = "TERRAFYING_CONFIG"
TERRAFYING_LOG_LEVEL = "TERRAFYING_LOG_LEVEL"

LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FMT = (
    "[%(asctime)s] [%(levelname)s] "
    "[%(filename)s:%(funcName)s:%(lineno)d] - %(message)s"
)


def init_env(
    log_level: str | None = None,
    config_file: str | None = None,
) -> None:
    # store env configs in environment variables so that child processes
    # can set up the same environment by calling init_env() without arguments
    if log_level:
        os.environ[TERRAFYING_LOG_LEVEL] = log_level
    if config_file:
        os.environ[TERRAFYING_CONFIG] = config_file

    logging.basicConfig(
        format=LOG_FMT,
        datefmt=LOG_DATEFMT,
        level=getattr(logging, os.environ.get(TERRAFYING_LOG_LEVEL, "INFO")),
    )

    config_file = os.environ.get(TERRAFYING_CONFIG)
    if config_file:
        config.init_from_toml(config_file)
    else:
        logging.debug("no config file specified, using defaults")
