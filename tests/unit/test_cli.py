"""Unit tests for CLI commands.

This module tests the command-line interface for saml-idp-util including
the main group, assertion build, config validate and option handling.
"""

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner
from lxml import etree
from signxml import XMLVerifier

from saml_idp_util.cli.main import cli

NS = {
    "saml": "urn:oasis:names:tc:SAML:2.0:assertion",
    "ds": "http://www.w3.org/2000/09/xmldsig#",
}


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    """Keep CLI log files and config lookups inside tmp_path.

    Console logging goes to the captured stderr, so INFO records are kept
    out of the XML written to stdout.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SAML_IDP_LOG_FILE", str(tmp_path / "logs" / "cli.log"))
    monkeypatch.setenv("SAML_IDP_LOG_LEVEL", "WARNING")

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    yield
    for handler in root_logger.handlers:
        if handler not in original_handlers:
            handler.close()
    root_logger.handlers[:] = original_handlers


@pytest.fixture
def pem_files(tmp_path, idp_cert_pem, idp_key_pem, sp_cert_pem):
    """Write IdP and SP key material to PEM files."""
    paths = {
        "cert": tmp_path / "idp.pem",
        "key": tmp_path / "idp.key",
        "sp_cert": tmp_path / "sp.pem",
    }
    paths["cert"].write_text(idp_cert_pem)
    paths["key"].write_text(idp_key_pem)
    paths["sp_cert"].write_text(sp_cert_pem)
    return paths


@pytest.fixture
def principal_file(tmp_path) -> Path:
    path = tmp_path / "principal.json"
    path.write_text(
        json.dumps({"email": "cli@example.com", "first_name": "Cli", "groups": ["a", "b"]})
    )
    return path


def _build_args(principal_file, pem_files, *extra):
    return [
        "assertion", "build",
        "--principal", str(principal_file),
        "--issuer", "https://idp.example.com",
        "--audience", "https://sp.example.com",
        "--acs-url", "https://sp.example.com/saml/acs",
        "--reference-id", "cli-1",
        "--cert", str(pem_files["cert"]),
        "--key", str(pem_files["key"]),
        *extra,
    ]


class TestMainCLI:
    """Test cases for main CLI entry point."""

    def test_cli_help(self):
        """Test main CLI help output."""
        # Arrange
        runner = CliRunner()

        # Act
        result = runner.invoke(cli, ["--help"])

        # Assert
        assert result.exit_code == 0
        assert "SAML IdP Utility" in result.output
        assert "--verbose" in result.output
        assert "--version" in result.output

    def test_cli_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "saml-idp-util" in result.output

    def test_cli_version_command(self):
        result = CliRunner().invoke(cli, ["version"])

        assert result.exit_code == 0
        assert "saml-idp-util version 0.1.0" in result.output

    def test_invalid_config_file(self, tmp_path):
        bad_config = tmp_path / "bad.json"
        bad_config.write_text("{not json")

        result = CliRunner().invoke(cli, ["--config", str(bad_config), "version"])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output


class TestAssertionBuild:
    """Test cases for assertion build command."""

    def test_build_raw(self, principal_file, pem_files):
        # Act
        result = CliRunner().invoke(cli, _build_args(principal_file, pem_files))

        # Assert
        assert result.exit_code == 0, result.output
        root = etree.fromstring(result.output.strip().encode("utf-8"))
        assert root.get("ID") == "_cli-1"
        assert root.findtext(".//saml:NameID", namespaces=NS) == "cli@example.com"
        assert root.find("ds:Signature", NS) is None

    def test_build_signed(self, principal_file, pem_files, idp_cert_pem):
        result = CliRunner().invoke(
            cli, _build_args(principal_file, pem_files, "--sign")
        )

        assert result.exit_code == 0, result.output
        XMLVerifier().verify(result.output.strip(), x509_cert=idp_cert_pem)

    def test_build_with_attributes_and_request_id(self, principal_file, pem_files):
        result = CliRunner().invoke(
            cli,
            _build_args(
                principal_file, pem_files,
                "--attribute", "FirstName",
                "--attribute", "Groups",
                "--request-id", "_req-7",
                "--session-expiry", "600",
            ),
        )

        assert result.exit_code == 0, result.output
        root = etree.fromstring(result.output.strip().encode("utf-8"))
        assert root.xpath("//saml:Attribute/@FriendlyName", namespaces=NS) == [
            "FirstName",
            "Groups",
        ]
        assert root.xpath("//saml:AttributeValue/text()", namespaces=NS) == [
            "Cli", "a", "b",
        ]
        assert root.find(".//saml:SubjectConfirmationData", NS).get(
            "InResponseTo"
        ) == "_req-7"
        assert root.find("saml:AuthnStatement", NS).get("SessionNotOnOrAfter")

    def test_build_name_id_format(self, principal_file, pem_files):
        principal_file.write_text(json.dumps({"uid": "u-99"}))

        result = CliRunner().invoke(
            cli,
            _build_args(
                principal_file, pem_files,
                "--name-id-format",
                "urn:oasis:names:tc:SAML:2.0:nameid-format:uid",
            ),
        )

        assert result.exit_code == 0, result.output
        assert "u-99" in result.output

    def test_build_encrypted_to_file(
        self, principal_file, pem_files, tmp_path, decrypt_envelope
    ):
        output = tmp_path / "out" / "assertion.xml"
        output.parent.mkdir()

        result = CliRunner().invoke(
            cli,
            _build_args(
                principal_file, pem_files,
                "--sign",
                "--encrypt-cert", str(pem_files["sp_cert"]),
                "--block-encryption", "aes128-gcm",
                "--output", str(output),
            ),
        )

        assert result.exit_code == 0, result.output
        assert "SAML assertion saved to" in result.output
        plaintext = decrypt_envelope(output.read_text())
        root = etree.fromstring(plaintext.encode("utf-8"))
        assert root.get("ID") == "_cli-1"
        assert root.find("ds:Signature", NS) is not None

    def test_build_pretty_format(self, principal_file, pem_files):
        result = CliRunner().invoke(
            cli, _build_args(principal_file, pem_files, "--format", "pretty")
        )

        assert result.exit_code == 0, result.output
        assert "\n  <saml:Issuer>" in result.output

    def test_unresolvable_name_id_fails(self, principal_file, pem_files):
        principal_file.write_text(json.dumps({"first_name": "NoEmail"}))

        result = CliRunner().invoke(cli, _build_args(principal_file, pem_files))

        assert result.exit_code == 1
        assert "IdentifierResolutionError" in result.output

    def test_unsupported_algorithm_fails(self, principal_file, pem_files):
        result = CliRunner().invoke(
            cli,
            _build_args(principal_file, pem_files, "--sign", "--algorithm", "sha1"),
        )

        assert result.exit_code == 1
        assert "UnsupportedAlgorithmError" in result.output

    def test_non_positive_expiry_fails(self, principal_file, pem_files):
        result = CliRunner().invoke(
            cli, _build_args(principal_file, pem_files, "--expiry", "0")
        )

        assert result.exit_code == 1
        assert "ConstructionError" in result.output

    def test_principal_must_be_object(self, principal_file, pem_files):
        principal_file.write_text(json.dumps(["not", "an", "object"]))

        result = CliRunner().invoke(cli, _build_args(principal_file, pem_files))

        assert result.exit_code == 2
        assert "must contain a JSON object" in result.output

    def test_missing_key_material(self, principal_file):
        result = CliRunner().invoke(
            cli,
            [
                "assertion", "build",
                "--principal", str(principal_file),
                "--issuer", "https://idp.example.com",
                "--audience", "https://sp.example.com",
                "--acs-url", "https://sp.example.com/saml/acs",
            ],
        )

        assert result.exit_code == 2
        assert "--cert and --key" in result.output

    def test_key_password_from_environment(
        self, principal_file, tmp_path, idp_cert_pem, idp_encrypted_key_pem, monkeypatch
    ):
        cert = tmp_path / "idp.pem"
        key = tmp_path / "idp-encrypted.key"
        cert.write_text(idp_cert_pem)
        key.write_text(idp_encrypted_key_pem)
        monkeypatch.setenv("SAML_IDP_KEY_PASSWORD", "secret")

        result = CliRunner().invoke(
            cli,
            [
                "assertion", "build",
                "--principal", str(principal_file),
                "--issuer", "https://idp.example.com",
                "--audience", "https://sp.example.com",
                "--acs-url", "https://sp.example.com/saml/acs",
                "--cert", str(cert),
                "--key", str(key),
                "--sign",
            ],
        )

        assert result.exit_code == 0, result.output
        XMLVerifier().verify(result.output.strip(), x509_cert=idp_cert_pem)


class TestConfigValidate:
    """Test cases for config validate command."""

    def test_valid_config(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "assertion": {"session_expiry": 300},
                    "name_id": {"formats": {"2.0": {"persistent": "uid"}}},
                    "attributes": {"Email": {"name": "mail"}},
                }
            )
        )

        result = CliRunner().invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "Session expiry: 300s" in result.output
        assert "urn:oasis:names:tc:SAML:2.0:nameid-format:persistent" in result.output
        assert "Email: name=mail" in result.output

    def test_null_attribute_summarized_with_defaults(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"attributes": {"Email": None}}))

        result = CliRunner().invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0
        assert "Email: name=Email" in result.output

    def test_certificate_paths_summarized(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {"certificates": {"cert_path": "idp.pem", "key_path": "idp.key"}}
            )
        )

        result = CliRunner().invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 0
        assert "Cert path:   idp.pem" in result.output
        assert "Key path:    idp.key" in result.output

    def test_invalid_config(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"name_id": {"formats": {"9.9": {}}}}))

        result = CliRunner().invoke(cli, ["config", "validate", str(config_file)])

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output
