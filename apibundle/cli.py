#!/usr/bin/env python3

import click

from apibundle import __version__
from apibundle.commands.export import export_handler
from apibundle.commands.importer import import_handler
from apibundle.commands.config import config_cmd


@click.group()
@click.version_option(version=__version__, prog_name='apibundle')
def cli():
    """apibundle - Portable export and import of API definitions.

    Packages an API with its icon, documentation, WSDL, interface
    definition and mediation sequences into one ZIP archive, and
    registers an equivalent API from such an archive.
    """
    pass


cli.add_command(export_handler, name='export')
cli.add_command(import_handler, name='import')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
