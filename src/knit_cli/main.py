"""CLI main entry point."""

import click

from .commands import eks
from .shared import configure_logging, ensure_dirs, get_log_file


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON")
@click.option("--log-file", is_flag=True, help="Also write logs to ~/.knit/bootstrap.log")
@click.version_option(package_name="knit-cli")
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool, log_json: bool, log_file: bool) -> None:
    """knit bootstraps a Kubernetes cluster that has already been provisioned."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if quiet:
        level = "warning"
    elif verbose:
        level = "debug"
    else:
        level = "info"

    path = None
    if log_file:
        ensure_dirs()
        path = get_log_file()
    configure_logging(level, log_file=path, json_output=log_json)


cli.add_command(eks)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
