"""
Entry point for python -m tokenlog
"""

import logging

import click
from tokenlog import __version__
from tokenlog.cli import analyze, sessions, count, export
from tokenlog.logger_config import setup_logger


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Log debug details to stderr')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write the log to this file')
def cli(verbose, log_file):
    """tokenlog - token usage and cost from assistant session logs"""
    if verbose or log_file:
        setup_logger('tokenlog', level=logging.DEBUG if verbose else logging.INFO, log_file=log_file)


cli.add_command(analyze)
cli.add_command(sessions)
cli.add_command(count)
cli.add_command(export)


def main():
    cli(auto_envvar_prefix='TOKENLOG')


if __name__ == '__main__':
    main()
