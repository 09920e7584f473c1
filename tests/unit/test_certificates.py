"""Unit tests for certificate and key helpers."""

import pytest

from saml_idp_util.saml.certificates import (
    PEM_CERT_FOOTER,
    PEM_CERT_HEADER,
    certificate_body,
    load_certificate,
    load_private_key,
    normalize_pem_certificate,
    read_pem_file,
)
from saml_idp_util.utils.exceptions import CertificateLoadError


class TestNormalizePemCertificate:
    def test_pem_unchanged(self, idp_cert_pem):
        assert normalize_pem_certificate(idp_cert_pem).strip() == idp_cert_pem.strip()

    def test_bare_body_wrapped(self, idp_cert_pem):
        pem = normalize_pem_certificate(certificate_body(idp_cert_pem))

        assert pem.startswith(PEM_CERT_HEADER + "\n")
        assert pem.endswith(PEM_CERT_FOOTER + "\n")
        assert all(len(line) <= 64 for line in pem.splitlines())

    def test_body_roundtrips_to_same_certificate(self, idp_cert_pem):
        assert load_certificate(certificate_body(idp_cert_pem)) == load_certificate(
            idp_cert_pem
        )


class TestLoadPrivateKey:
    def test_unencrypted_with_empty_passphrase(self, idp_key_pem, idp_keys):
        key = load_private_key(idp_key_pem, "")
        assert key.private_numbers() == idp_keys[0].private_numbers()

    def test_encrypted_with_passphrase(self, idp_encrypted_key_pem, idp_keys):
        key = load_private_key(idp_encrypted_key_pem, "secret")
        assert key.private_numbers() == idp_keys[0].private_numbers()

    def test_encrypted_without_passphrase_fails(self, idp_encrypted_key_pem):
        with pytest.raises(TypeError):
            load_private_key(idp_encrypted_key_pem, "")


class TestReadPemFile:
    def test_reads_pem(self, tmp_path, idp_cert_pem):
        path = tmp_path / "cert.pem"
        path.write_text(idp_cert_pem)
        assert read_pem_file(path) == idp_cert_pem

    def test_missing_file(self, tmp_path):
        with pytest.raises(CertificateLoadError, match="Failed to read PEM file"):
            read_pem_file(tmp_path / "missing.pem")

    def test_not_pem(self, tmp_path):
        path = tmp_path / "cert.txt"
        path.write_text("hello")
        with pytest.raises(CertificateLoadError, match="does not contain PEM data"):
            read_pem_file(path)
