"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import typer

from partner_charts.utils.logging_setup import configure_logging

app = typer.Typer(
    name="pcharts",
    help="Partner Charts - Keep a Helm chart repository in sync with upstream partners.",
    no_args_is_help=True,
)


@app.callback()
def root(
    debug: bool = typer.Option(False, "--debug", envvar="PARTNER_CHARTS_DEBUG", help="Enable debug logging"),
) -> None:
    configure_logging(debug)


def _register_commands() -> None:
    from partner_charts.cli.commands.auto_cmd import app as auto_app
    from partner_charts.cli.commands.check_cmd import app as check_app
    from partner_charts.cli.commands.list_cmd import app as list_app
    from partner_charts.cli.commands.hide_cmd import app as hide_app
    from partner_charts.cli.commands.feature_cmd import app as feature_app
    from partner_charts.cli.commands.unfeature_cmd import app as unfeature_app
    from partner_charts.cli.commands.remove_cmd import app as remove_app
    from partner_charts.cli.commands.validate_cmd import app as validate_app

    app.add_typer(auto_app, name="auto", help="Fetch and publish new upstream chart versions")
    app.add_typer(check_app, name="check", help="Show which upstream versions would be fetched")
    app.add_typer(list_app, name="list", help="List configured charts")
    app.add_typer(hide_app, name="hide", help="Hide a chart from the catalog")
    app.add_typer(feature_app, name="feature", help="Feature a chart in the catalog")
    app.add_typer(unfeature_app, name="unfeature", help="Stop featuring a chart")
    app.add_typer(remove_app, name="remove", help="Remove a chart from the repository")
    app.add_typer(validate_app, name="validate", help="Compare published assets with another repository")


_register_commands()


def main() -> None:
    app()
