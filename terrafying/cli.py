import json
import logging
import os
import sys
from collections.abc import Callable

import click

from terrafying.components.auditd import (
    DEFAULT_BUCKET,
    DEFAULT_REGION,
    Auditd,
)
from terrafying.components.registry import build_ca
from terrafying.utils import config
from terrafying.utils.exceptions import (
    ConfigurationError,
    NetworkError,
)
from terrafying.utils.runtime.environment import (
    TERRAFYING_CONFIG,
    init_env,
)
from terrafying.utils.terrascript.context import Context


def config_file(function: Callable) -> Callable:
    help_msg = "Path to configuration file in toml format."
    function = click.option(
        "--config",
        "configfile",
        default=os.environ.get(TERRAFYING_CONFIG),
        help=help_msg,
    )(function)
    return function


def log_level(function: Callable) -> Callable:
    function = click.option(
        "--log-level",
        help="log-level of the command. Defaults to INFO.",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    )(function)
    return function


@click.group()
@config_file
@log_level
def components(configfile: str | None, log_level: str | None) -> None:
    init_env(log_level=log_level, config_file=configfile)


@components.command(short_help="Render the CAs of the config file as Terraform JSON.")
@click.option(
    "--output-dir",
    default=None,
    help="Write config.tf.json into this directory instead of stdout.",
)
def render(output_dir: str | None) -> None:
    root = Context()
    try:
        for definition in config.get_config().get("ca", []):
            root.add(build_ca(definition))
    except (ConfigurationError, LookupError, NetworkError) as e:
        logging.error(e)
        sys.exit(1)

    if output_dir:
        logging.info(f"terraform config written to {root.dump(output_dir)}")
    else:
        click.echo(root.dumps())


@components.command(short_help="Render the fluentd configuration shipping auditd logs.")
@click.option("--role-arn", default=None, help="IAM role used to write to S3.")
def auditd_conf(role_arn: str | None) -> None:
    settings = config.section("auditd")
    role_arn = role_arn or settings.get("role_arn")
    if not role_arn:
        logging.error("no audit role given, use --role-arn or [auditd] role_arn")
        sys.exit(1)
    auditd = Auditd(
        bucket=settings.get("bucket", DEFAULT_BUCKET),
        region=settings.get("region", DEFAULT_REGION),
    )
    click.echo(json.dumps(auditd.files(role_arn), indent=2))
