"""
CLI principale per ynh-user-helpers - utenti applicativi e di sistema
"""
import sys
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table
from rich import print as rprint

from .api import user_exists, user_get_info, user_list
from .config import get_helper_config
from .errors import HelperError, MissingInfoKeyError
from .execas import exec_as as run_exec_as
from .system import (
    system_group_exists,
    system_user_create,
    system_user_delete,
    system_user_exists,
)
from .utils import check_sudo_privileges, console, is_command_available, set_verbose

# Errori che un comando riporta e trasforma in exit status 1
HANDLED_ERRORS = (HelperError, ValueError, OSError)


def version_callback(value: bool):
    """Callback per il flag globale --version"""
    if value:
        from . import __version__
        rprint(f"[bold blue]ynh-user-helpers v{__version__}[/bold blue]")
        raise typer.Exit()


app = typer.Typer(
    name="ynh-user",
    help="Gestione utenti applicativi YunoHost e utenti di sistema dagli script delle app",
    add_completion=False
)


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V",
        help="Mostra versione del programma",
        callback=version_callback,
        is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Mostra i comandi esterni su stderr")
):
    """ynh-user-helpers - gestione utenti per gli script delle app YunoHost"""
    if verbose:
        set_verbose(True)


def _fail(error: Exception, prefix: str = "Error") -> None:
    console.print(f"[bold red]❌ {prefix}: {escape(str(error))}[/bold red]")
    sys.exit(1)


@app.command("exists")
def exists(
    username: str = typer.Option(..., "--username", "-u", help="Utente applicativo da cercare")
):
    """Esce con 0 se l'utente YunoHost esiste, 1 altrimenti"""
    try:
        found = user_exists(username)
    except HANDLED_ERRORS as e:
        _fail(e)
    raise typer.Exit(code=0 if found else 1)


@app.command("info")
def info(
    username: str = typer.Option(..., "--username", "-u", help="Utente applicativo"),
    key: str = typer.Option(..., "--key", "-k", help="Campo del profilo da leggere (es. mail)")
):
    """Stampa un campo del profilo di un utente YunoHost"""
    try:
        value = user_get_info(username, key)
    except MissingInfoKeyError as e:
        _fail(e, prefix="Missing key")
    except HANDLED_ERRORS as e:
        _fail(e)
    typer.echo(value)


@app.command("list")
def list_users():
    """Stampa tutti gli username YunoHost, uno per riga"""
    try:
        usernames = user_list()
    except HANDLED_ERRORS as e:
        _fail(e)
    for username in usernames:
        typer.echo(username)


@app.command("system-exists")
def system_exists(
    username: str = typer.Option(..., "--username", "-u", help="Utente di sistema da cercare")
):
    """Esce con 0 se l'utente di sistema esiste, 1 altrimenti"""
    raise typer.Exit(code=0 if system_user_exists(username) else 1)


@app.command("group-exists")
def group_exists(
    group: str = typer.Option(..., "--group", "-g", help="Gruppo di sistema da cercare")
):
    """Esce con 0 se il gruppo di sistema esiste, 1 altrimenti"""
    raise typer.Exit(code=0 if system_group_exists(group) else 1)


@app.command("system-create")
def system_create(
    username: str = typer.Option(..., "--username", "-u", help="Utente di sistema da creare"),
    home_dir: Optional[str] = typer.Option(
        None, "--home_dir", "--home-dir", "-h",
        help="Home directory (default: nessuna home)"
    ),
    use_shell: bool = typer.Option(
        False, "--use_shell", "--use-shell", "-s",
        help="Mantiene la shell di login di default invece di nologin"
    ),
    groups: Optional[List[str]] = typer.Option(
        None, "--groups", "-G", help="Gruppo aggiuntivo per l'utente (ripetibile)"
    )
):
    """Crea un utente di sistema, se non esiste già"""
    try:
        created = system_user_create(username, home_dir=home_dir,
                                     use_shell=use_shell, groups=groups)
    except HANDLED_ERRORS as e:
        _fail(e)
    if created:
        console.print(f"[green]✅ System user created: {username}[/green]")
    else:
        console.print(f"[yellow]ℹ️ System user already exists: {username}[/yellow]")


@app.command("system-delete")
def system_delete(
    username: str = typer.Option(..., "--username", "-u", help="Utente di sistema da eliminare")
):
    """Elimina un utente di sistema e il gruppo omonimo"""
    try:
        deleted = system_user_delete(username)
    except HANDLED_ERRORS as e:
        _fail(e)
    if deleted:
        console.print(f"[green]✅ System user deleted: {username}[/green]")


@app.command(
    "exec-as",
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True}
)
def exec_as(
    user: str = typer.Argument(help="Utente con cui eseguire il comando"),
    command: List[str] = typer.Argument(help="Comando e relativi argomenti")
):
    """Esegue un comando come un altro utente (direttamente se è l'utente corrente)"""
    try:
        result = run_exec_as(user, *command)
    except HANDLED_ERRORS as e:
        _fail(e)
    raise typer.Exit(code=result.returncode)


@app.command()
def config():
    """Mostra configurazione corrente"""
    rprint("[blue]⚙️ ynh-user-helpers configuration[/blue]")

    try:
        helper_config = get_helper_config()
    except HelperError as e:
        _fail(e, prefix="Configuration error")

    table = Table(title="Configuration")
    table.add_column("Variable", style="cyan")
    table.add_column("Value", style="white")
    table.add_column("Available", style="green")

    def available(command: str) -> str:
        return "✅" if is_command_available(command) else "❌"

    table.add_row("YNH_CLI", helper_config.ynh_cli, available(helper_config.ynh_cli))
    table.add_row("YNH_NOLOGIN_SHELL", helper_config.nologin_shell,
                  available(helper_config.nologin_shell))
    table.add_row("YNH_SUDO", helper_config.sudo, available(helper_config.sudo))
    table.add_row("YNH_HELPERS_VERBOSE", str(helper_config.verbose), "")

    rprint(table)

    has_sudo = check_sudo_privileges(helper_config.sudo)
    rprint(f"[bold]Sudo privileges:[/bold] {'✅ Available' if has_sudo else '❌ Not available'}")


@app.command()
def version():
    """Mostra versione"""
    from . import __version__
    rprint(f"[bold blue]ynh-user-helpers v{__version__}[/bold blue]")


if __name__ == "__main__":
    app()
