"""Weather App command line - entry point."""

import asyncio
import json
import logging
import sys
from typing import Awaitable

import click
from dotenv import load_dotenv

from observability import init_tracing, install_log_buffer
from src.config import THEMES, Settings
from src.tools.shared_libraries.helpers import format_weather_summary

from .app import WeatherApp, build_app
from .console import render, render_recent_searches
from .ui_controller import UIController


load_dotenv()

logger = logging.getLogger(__name__)


def run(app: WeatherApp, awaitable: Awaitable) -> None:
    """Run one UI action; unexpected failures end up in the error banner."""
    try:
        asyncio.run(awaitable)
    except Exception as e:
        app.handle_unexpected_error(e)


@click.group(invoke_without_command=True)
@click.option('--db-dir', 'db_dir', default=None, help='Local storage directory')
@click.option('--demo', is_flag=True, help='Use synthetic weather data')
@click.option('--trace', is_flag=True, help='Export traces to Phoenix')
@click.option('--show-logs', is_flag=True, help='Print captured log records on exit')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging')
@click.pass_context
def main(ctx: click.Context, db_dir: str | None, demo: bool, trace: bool, show_logs: bool, verbose: bool):
    """Look up the current weather. Without a command, shows the last searched city."""
    settings = Settings.from_env()
    if db_dir:
        settings = settings.model_copy(update={'db_dir': db_dir})
    if demo:
        settings = settings.model_copy(update={'api_key': None})

    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level)
    log_buffer = install_log_buffer()

    if trace:
        init_tracing(project_name='weather-app')

    if settings.demo_mode:
        logger.info('No OPENWEATHER_API_KEY configured, running in demo mode')

    ui = UIController(
        confirm=lambda message: click.confirm(message, default=False),
        units=settings.units,
    )
    app = build_app(settings, ui)
    ctx.obj = app

    if show_logs:
        ctx.call_on_close(lambda: _print_logs(log_buffer))

    if ctx.invoked_subcommand is None:
        run(app, app.init())
        render(ui)
        _exit_on_error(ui)
    else:
        app.load_state()


@main.command()
@click.argument('city', nargs=-1, required=True)
@click.pass_obj
def search(app: WeatherApp, city: tuple[str, ...]):
    """Show the weather for CITY."""
    run(app, app.ui_controller.submit_search(' '.join(city)))
    render(app.ui_controller)
    _exit_on_error(app.ui_controller)


@main.command()
@click.pass_obj
def locate(app: WeatherApp):
    """Show the weather for the current position."""
    run(app, app.ui_controller.request_location())
    render(app.ui_controller)
    _exit_on_error(app.ui_controller)


@main.command()
@click.pass_obj
def history(app: WeatherApp):
    """List recent searches."""
    if not app.ui_controller.recent_items:
        click.echo('No recent searches.')
        return
    render_recent_searches(app.ui_controller)


@main.command('clear-history')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def clear_history(app: WeatherApp, yes: bool):
    """Delete all recent searches."""
    if not app.clear_recent_searches(confirmed=yes):
        click.echo('Aborted.')
        return
    render(app.ui_controller)


@main.command()
@click.argument('name', type=click.Choice(THEMES))
@click.pass_obj
def theme(app: WeatherApp, name: str):
    """Switch between the light and dark theme."""
    app.set_theme(name)
    click.echo(f'Theme set to {name}.')


@main.command()
@click.option('--summary', is_flag=True, help='One-line text summary instead of JSON')
@click.pass_obj
def export(app: WeatherApp, summary: bool):
    """Print the last searched city's weather as JSON."""
    run(app, app.load_initial_weather())
    data = app.export_weather_data()
    if data is None:
        render(app.ui_controller)
        sys.exit(1)
    if summary:
        record = app.current_weather_data.model_dump()
        click.echo(format_weather_summary(record, app.ui_controller.units))
        return
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@main.command()
@click.pass_obj
def status(app: WeatherApp):
    """Print the application status."""
    click.echo(json.dumps(app.get_app_status(), indent=2))


def _exit_on_error(ui: UIController) -> None:
    if ui.active_error():
        sys.exit(1)


def _print_logs(log_buffer) -> None:
    stats = log_buffer.get_stats()
    click.echo(f"\n{stats['total']} log record(s)", err=True)
    for entry in log_buffer.get_logs():
        click.echo(f'[{entry.timestamp:%H:%M:%S}] [{entry.level}] {entry.message}', err=True)


if __name__ == '__main__':
    main()
