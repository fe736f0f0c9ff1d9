"""
docwen — check that C/C++ function docs match between header and source files.

    docwen create [PATH]   write a default docwen.toml
    docwen update [PATH]   (re)discover file groups under the target
    docwen check  [PATH]   report functions whose doc blocks disagree

PATH defaults to ./docwen.toml.
"""

import logging
import sys

import click

from docwen import doc_check, toml_manager
from docwen.docfig import ConfigError
from docwen.function_index import ParseError

DEFAULT_TOML_PATH = "./docwen.toml"


@click.group()
@click.version_option(package_name="docwen")
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """Scans file pairs and reports documentation mismatches"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument('path', default=DEFAULT_TOML_PATH)
def create(path):
    """Create a default docwen.toml at PATH"""
    try:
        toml_manager.create_default(path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created default docwen.toml at {path}")


@cli.command()
@click.argument('path', default=DEFAULT_TOML_PATH)
def update(path):
    """Update the file groups tracked by the docwen.toml at PATH"""
    try:
        toml_manager.update_toml(path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Updated {path} successfully")


@cli.command()
@click.argument('path', default=DEFAULT_TOML_PATH)
def check(path):
    """Run the doc check and print every mismatch"""
    try:
        mismatches = doc_check.check(path)
    except (ConfigError, ParseError, OSError) as e:
        raise click.ClickException(str(e))

    if not mismatches:
        click.echo("Found no mismatches!")
        return

    for m in mismatches:
        click.echo(f"MISMATCH: {m}\n")
    # Non-zero so CI jobs fail on drifting docs
    sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
