"""Main CLI entry point for SAML IdP Utility.

Defines the ``saml-idp-util`` click group. The group loads the configuration,
makes it the active configuration for assertion builders and configures
logging before any subcommand runs.
"""

from pathlib import Path
from typing import Optional

import click

from saml_idp_util import __version__
from saml_idp_util.cli.assertion_commands import assertion_group
from saml_idp_util.config import (
    AttributeConfig,
    Config,
    get_certificate_paths,
    get_logging_config,
    load_config,
    set_config,
)
from saml_idp_util.logging_audit import configure_logging
from saml_idp_util.saml.name_id_formatter import NameIdFormatter
from saml_idp_util.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="saml-idp-util")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact e-mail addresses and key material from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """SAML IdP Utility - SAML 2.0 assertion issuance for Identity Providers.

    Builds the assertion an IdP returns to a Service Provider after
    authenticating a principal, optionally signed and encrypted.

    Common usage:

        # Build a signed assertion
        saml-idp-util assertion build --principal user.json --sign ...

        # Validate a configuration file
        saml-idp-util config validate config/config.json
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    set_config(config_obj)
    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = verbose

    # CLI flags win over the configuration
    logging_config = get_logging_config(config_obj)
    configure_logging(
        level="DEBUG" if verbose else logging_config.level,
        log_file=log_file or logging_config.log_file,
        redact_pii=redact_pii or logging_config.redact_pii,
    )


cli.add_command(assertion_group)


def _echo_section(title: str, lines: list[str]) -> None:
    click.echo(f"\n{title}:")
    for line in lines or ["None configured"]:
        click.echo(f"  {line}")


def _describe_attribute(friendly_name: str, attr: AttributeConfig) -> str:
    description = f"{friendly_name}: name={attr.name or friendly_name}"
    if attr.getter:
        description += f", getter={attr.getter}"
    return description


def _summarize(config_obj: Config) -> None:
    _echo_section(
        "Assertion", [f"Session expiry: {config_obj.assertion.session_expiry}s"]
    )
    _echo_section(
        "NameID formats (preference order)",
        NameIdFormatter(config_obj.name_id.formats).all,
    )
    _echo_section(
        "Attributes",
        [
            _describe_attribute(friendly_name, attr or AttributeConfig())
            for friendly_name, attr in config_obj.attributes.items()
        ],
    )
    cert_path, key_path = get_certificate_paths(config_obj)
    _echo_section(
        "Certificates",
        [
            f"Cert path:   {cert_path or 'Not configured'}",
            f"Key path:    {key_path or 'Not configured'}",
            f"Password env: {config_obj.certificates.key_password_env_var or 'Not configured'}",
        ],
    )
    logging_config = get_logging_config(config_obj)
    _echo_section(
        "Logging",
        [
            f"Level:       {logging_config.level}",
            f"Log file:    {logging_config.log_file}",
            f"Redact PII:  {logging_config.redact_pii}",
        ],
    )


@cli.group()
def config() -> None:
    """Configuration management commands."""


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file and print the effective settings.

    Example:
        saml-idp-util config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)

    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")
    _summarize(config_obj)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"saml-idp-util version {__version__}")


if __name__ == "__main__":
    cli()
