"""
Funzioni di utilità per ynh-user-helpers
"""
import os
import pwd
import shlex
import shutil
import subprocess
from typing import List

from rich.console import Console
from rich.markup import escape

from .config import env_flag
from .errors import CommandError

# Diagnostica su stderr, stdout resta per i valori letti dagli script
console = Console(stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Mostra ogni comando esterno prima di eseguirlo"""
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose or env_flag("YNH_HELPERS_VERBOSE")


def print_warn(message: str) -> None:
    """Warning non fatale"""
    console.print(f"[yellow]⚠️ {escape(message)}[/yellow]")


def print_debug(message: str) -> None:
    if is_verbose():
        console.print(f"[dim]{escape(message)}[/dim]")


def run(cmd: List[str], check: bool = True) -> str:
    """
    Esegue comando di sistema e restituisce lo stdout

    Args:
        cmd: Comando e argomenti, un token ciascuno
        check: Solleva CommandError se l'exit status è diverso da zero

    Returns:
        Lo stdout del comando, senza spazi finali
    """
    print_debug(f"$ {shlex.join(cmd)}")
    result = subprocess.run(cmd, capture_output=True, text=True)
    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr)
    return result.stdout.strip()


def is_command_available(command: str) -> bool:
    """Verifica se un comando è disponibile nel PATH"""
    return shutil.which(command) is not None


def check_sudo_privileges(sudo: str = "sudo") -> bool:
    """Verifica se sudo funziona senza richiesta password"""
    try:
        result = subprocess.run(
            [sudo, "-n", "true"],
            capture_output=True,
            timeout=5
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


def current_username() -> str:
    """Nome dell'identità effettiva del processo, come riportato da whoami"""
    return pwd.getpwuid(os.geteuid()).pw_name
