"""Entry point for running saml_idp_util as a module.

This allows the package to be executed as:
    python -m saml_idp_util
"""

from saml_idp_util.cli.main import cli

if __name__ == "__main__":
    cli()
