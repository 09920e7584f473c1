"""Assertion CLI commands.

This module provides CLI commands for issuing SAML assertions:
- assertion build: Build a raw, signed and/or encrypted assertion for a principal
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple

import click
from lxml import etree

from saml_idp_util.config import Config, get_certificate_paths, get_config
from saml_idp_util.models.saml import AssertionRequestContext, EncryptionOptions
from saml_idp_util.saml import AssertionBuilder
from saml_idp_util.saml.certificates import read_pem_file
from saml_idp_util.saml.encryptor import BLOCK_ENCRYPTIONS, KEY_TRANSPORTS
from saml_idp_util.saml.namespaces import PASSWORD_PROTECTED_TRANSPORT
from saml_idp_util.utils.exceptions import SAMLIdPError

logger = logging.getLogger(__name__)


@click.group(name="assertion")
def assertion_group() -> None:
    """SAML assertion issuance commands.

    Builds the assertion an Identity Provider returns to a Service Provider,
    optionally signed and encrypted.
    """
    pass


def _load_principal(path: Path) -> dict:
    """Load a principal description (JSON object) from file."""
    try:
        principal = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.UsageError(
            f"Invalid JSON in principal file {path}: {e}. "
            f"Provide a JSON object with the principal's accessors."
        )
    if not isinstance(principal, dict):
        raise click.UsageError(
            f"Principal file {path} must contain a JSON object."
        )
    return principal


def _resolve_key_paths(
    config: Config, cert: Optional[Path], key: Optional[Path]
) -> Tuple[Path, Path]:
    configured_cert, configured_key = get_certificate_paths(config)
    cert_path = cert or configured_cert
    key_path = key or configured_key
    if not cert_path or not key_path:
        raise click.UsageError(
            "Signing key material required: provide --cert and --key "
            "or set certificates.cert_path/key_path in the configuration."
        )
    return cert_path, key_path


def _format_xml_output(xml_text: str, output_format: str) -> str:
    if output_format == "xml":
        return xml_text
    return etree.tostring(
        etree.fromstring(xml_text.encode("utf-8")), pretty_print=True, encoding="unicode"
    )


@assertion_group.command(name="build")
@click.option(
    "--principal",
    "principal_file",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="JSON file describing the principal (e.g. {\"email\": \"user@example.com\"})",
)
@click.option("--issuer", required=True, help="IdP entity identifier (Issuer)")
@click.option("--audience", required=True, help="SP entity identifier (Audience)")
@click.option("--acs-url", required=True, help="SP Assertion Consumer Service URL")
@click.option("--request-id", default=None, help="AuthnRequest ID for InResponseTo")
@click.option(
    "--reference-id",
    default=None,
    help="Assertion reference ID (default: random)",
)
@click.option(
    "--authn-context",
    default=PASSWORD_PROTECTED_TRANSPORT,
    show_default=True,
    help="AuthnContextClassRef value",
)
@click.option(
    "--algorithm",
    default="sha256",
    show_default=True,
    help="Signature algorithm (sha256, sha384, sha512)",
)
@click.option(
    "--expiry",
    type=int,
    default=3600,
    show_default=True,
    help="Conditions validity in seconds",
)
@click.option(
    "--session-expiry",
    type=int,
    default=None,
    help="SessionNotOnOrAfter offset in seconds (0 omits; default from config)",
)
@click.option(
    "--name-id-format",
    "name_id_formats",
    multiple=True,
    help="NameID format candidate (e.g. persistent or a full URN); repeatable",
)
@click.option(
    "--attribute",
    "attributes",
    multiple=True,
    help="Friendly name of an attribute read from the principal; repeatable",
)
@click.option(
    "--cert",
    type=click.Path(exists=True, path_type=Path),
    help="IdP signing certificate (PEM); default from config",
)
@click.option(
    "--key",
    type=click.Path(exists=True, path_type=Path),
    help="IdP private key (PEM); default from config",
)
@click.option(
    "--key-password",
    type=str,
    default=None,
    help="Private key passphrase (default: environment variable from config)",
)
@click.option("--sign", is_flag=True, help="Sign the assertion")
@click.option(
    "--encrypt-cert",
    type=click.Path(exists=True, path_type=Path),
    help="SP certificate (PEM); encrypts the assertion when given",
)
@click.option(
    "--block-encryption",
    type=click.Choice(list(BLOCK_ENCRYPTIONS)),
    default="aes256-cbc",
    show_default=True,
    help="Content encryption algorithm",
)
@click.option(
    "--key-transport",
    type=click.Choice(list(KEY_TRANSPORTS)),
    default="rsa-oaep-mgf1p",
    show_default=True,
    help="Key transport algorithm",
)
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    help="Save assertion XML to file",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["xml", "pretty"]),
    default="xml",
    show_default=True,
    help="Output format",
)
@click.pass_context
def build(
    ctx: click.Context,
    principal_file: Path,
    issuer: str,
    audience: str,
    acs_url: str,
    request_id: Optional[str],
    reference_id: Optional[str],
    authn_context: str,
    algorithm: str,
    expiry: int,
    session_expiry: Optional[int],
    name_id_formats: Tuple[str, ...],
    attributes: Tuple[str, ...],
    cert: Optional[Path],
    key: Optional[Path],
    key_password: Optional[str],
    sign: bool,
    encrypt_cert: Optional[Path],
    block_encryption: str,
    key_transport: str,
    output: Optional[Path],
    output_format: str,
) -> None:
    """Build a SAML 2.0 assertion for a principal.

    Examples:

        # Signed assertion for an e-mail principal
        saml-idp-util assertion build --principal user.json \\
            --issuer https://idp.example.com \\
            --audience https://sp.example.com \\
            --acs-url https://sp.example.com/saml/acs \\
            --cert certs/idp.pem --key certs/idp.key --sign

        # Signed and encrypted for the SP certificate
        saml-idp-util assertion build --principal user.json ... \\
            --sign --encrypt-cert certs/sp.pem
    """
    config = (ctx.obj or {}).get("config") or get_config()

    try:
        cert_path, key_path = _resolve_key_paths(config, cert, key)
        if key_password is None:
            env_var = config.certificates.key_password_env_var
            key_password = os.environ.get(env_var, "") if env_var else ""

        encryption = None
        if encrypt_cert:
            encryption = EncryptionOptions(
                cert=read_pem_file(encrypt_cert),
                block_encryption=block_encryption,
                key_transport=key_transport,
            )

        context = AssertionRequestContext(
            reference_id=reference_id or uuid.uuid4().hex,
            issuer_uri=issuer,
            principal=_load_principal(principal_file),
            audience_uri=audience,
            saml_request_id=request_id,
            saml_acs_url=acs_url,
            algorithm=algorithm,
            authn_context_classref=authn_context,
            expiry=expiry,
            session_expiry=session_expiry,
            name_id_formats=list(name_id_formats) or None,
            asserted_attributes={name: None for name in attributes} or None,
            encryption=encryption,
            public_cert=read_pem_file(cert_path),
            private_key=read_pem_file(key_path),
            private_key_password=key_password,
        )

        builder = AssertionBuilder(context, config=config)
        if encryption is not None:
            xml_text = builder.encrypt(sign=sign)
        elif sign:
            xml_text = builder.signed()
        else:
            xml_text = builder.raw()

        formatted_xml = _format_xml_output(xml_text, output_format)
        if output:
            output.write_text(formatted_xml, encoding="utf-8")
            click.echo(
                click.style("✓", fg="green", bold=True)
                + f" SAML assertion saved to: {output}"
            )
        else:
            click.echo(formatted_xml)

        logger.info(f"Assertion issued: ID={builder.reference_string}")

    except click.UsageError:
        raise
    except SAMLIdPError as e:
        click.echo(
            click.style("✗", fg="red", bold=True) + f" {type(e).__name__}: {e}",
            err=True,
        )
        logger.error(f"Assertion build failed: {e}")
        raise click.exceptions.Exit(1)
    except Exception as e:
        click.echo(
            click.style("✗", fg="red", bold=True)
            + f" Unexpected error during assertion build: {e}",
            err=True,
        )
        logger.exception("Unexpected error during assertion build")
        raise click.exceptions.Exit(1)
