"""Terminal rendering of the UI controller's surfaces."""

import click

from .ui_controller import UIController


PALETTES = {
    'light': {'accent': 'blue', 'muted': 'black', 'error': 'red', 'success': 'green'},
    'dark': {'accent': 'bright_cyan', 'muted': 'bright_black', 'error': 'bright_red', 'success': 'bright_green'},
}

DETAIL_ROWS = (
    ('Humidity', 'humidity'),
    ('Pressure', 'pressure'),
    ('Wind', 'wind_speed'),
    ('Visibility', 'visibility'),
    ('Sunrise', 'sunrise'),
    ('Sunset', 'sunset'),
)


def render(ui: UIController) -> None:
    """Print the visible surfaces of ``ui``."""
    palette = PALETTES[ui.theme]
    elements = ui.elements

    error = ui.active_error()
    if error:
        click.secho(f'✖ {error}', fg=palette['error'], err=True)

    for message in ui.active_toasts():
        click.secho(f'✔ {message}', fg=palette['success'])

    if not elements['loading'].hidden:
        click.secho(elements['loading'].text, fg=palette['muted'])

    if not elements['weather_card'].hidden:
        click.echo()
        click.secho(
            f"{elements['weather_icon'].text}  {elements['location'].text}",
            fg=palette['accent'],
            bold=True,
        )
        click.echo(f"   {elements['temperature'].text}  {elements['description'].text}")
        click.secho(f"   {elements['feels_like'].text}", fg=palette['muted'])
        for label, name in DETAIL_ROWS:
            click.echo(f'   {label:<11}{elements[name].text}')

    if not elements['recent_searches'].hidden:
        render_recent_searches(ui)


def render_recent_searches(ui: UIController) -> None:
    palette = PALETTES[ui.theme]
    click.echo()
    click.secho('Recent searches', fg=palette['accent'], bold=True)
    for index, item in enumerate(ui.recent_items, start=1):
        click.echo(f'  {index}. {item.city}')
