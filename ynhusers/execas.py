"""
Esecuzione di un comando come altro utente di sistema
"""
import subprocess
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .config import get_helper_config
from .utils import current_username, print_debug


def _subprocess_runner(args, shell: bool = False, env: Optional[Dict[str, str]] = None,
                       cwd: Optional[str] = None) -> subprocess.CompletedProcess:
    # Output non catturato: va direttamente al terminale del chiamante
    return subprocess.run(args, shell=shell, env=env, cwd=cwd)


@dataclass
class ExecutionContext:
    """
    Chi esegue i comandi, e come

    Contiene ciò che exec_as leggerebbe altrimenti dal processo stesso, così
    chi chiama (e i test) può descrivere l'identità in esecuzione.
    """
    current_user: str
    # None eredita l'ambiente di questo processo
    env: Optional[Dict[str, str]] = None
    cwd: Optional[str] = None
    sudo: str = "sudo"
    runner: Callable[..., subprocess.CompletedProcess] = _subprocess_runner

    @classmethod
    def from_process(cls) -> "ExecutionContext":
        return cls(
            current_user=current_username(),
            sudo=get_helper_config().sudo,
        )


def exec_as(user: str, *command: str,
            context: Optional[ExecutionContext] = None) -> subprocess.CompletedProcess:
    """
    Esegue un comando come `user`

    Se `user` è l'identità corrente, gli argomenti vengono uniti e valutati
    dalla shell nel contesto corrente, come `eval "$@"`. Altrimenti il
    comando passa da sudo, un token per argomento e nessuna shell in mezzo.

    Returns:
        Il CompletedProcess del ramo eseguito, invariato
    """
    if not user:
        raise ValueError("Missing required argument: user")
    if not command:
        raise ValueError("Missing command to execute")

    context = context or ExecutionContext.from_process()

    if user == context.current_user:
        script = " ".join(command)
        print_debug(f"eval {script}")
        return context.runner(script, shell=True, env=context.env, cwd=context.cwd)

    args: List[str] = [context.sudo, "-u", user, *command]
    print_debug(f"$ {' '.join(args)}")
    return context.runner(args, shell=False, env=context.env, cwd=context.cwd)
