"""
Configurazione degli helper letta dalle variabili d'ambiente
"""
import os
from dataclasses import dataclass

from .errors import ConfigurationError


DEFAULT_YNH_CLI = "yunohost"
DEFAULT_NOLOGIN_SHELL = "/usr/sbin/nologin"
DEFAULT_SUDO = "sudo"

_TRUE_VALUES = ("1", "true", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Legge un flag booleano dall'ambiente"""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class HelperConfig:
    """Configurazione effettiva degli helper"""
    ynh_cli: str = DEFAULT_YNH_CLI
    nologin_shell: str = DEFAULT_NOLOGIN_SHELL
    sudo: str = DEFAULT_SUDO
    verbose: bool = False


def get_helper_config() -> HelperConfig:
    """
    Costruisce la configurazione degli helper dall'ambiente

    Variabili:
        YNH_CLI: binario della CLI di gestione account (default: yunohost)
        YNH_NOLOGIN_SHELL: shell imposta agli account senza login
        YNH_SUDO: binario per l'escalation dei privilegi (default: sudo)
        YNH_HELPERS_VERBOSE: mostra i comandi esterni su stderr

    Raises:
        ConfigurationError: se una variabile di binario è impostata ma vuota
    """
    values = {
        "YNH_CLI": os.environ.get("YNH_CLI", DEFAULT_YNH_CLI),
        "YNH_NOLOGIN_SHELL": os.environ.get("YNH_NOLOGIN_SHELL", DEFAULT_NOLOGIN_SHELL),
        "YNH_SUDO": os.environ.get("YNH_SUDO", DEFAULT_SUDO),
    }

    empty_vars = [name for name, value in values.items() if not value.strip()]
    if empty_vars:
        error_msg = f"Empty environment variables: {', '.join(empty_vars)}"
        error_msg += "\n\n💡 Unset them to use the defaults, or export a value:"
        error_msg += f"\n   export YNH_CLI='{DEFAULT_YNH_CLI}'"
        error_msg += f"\n   export YNH_NOLOGIN_SHELL='{DEFAULT_NOLOGIN_SHELL}'"
        error_msg += f"\n   export YNH_SUDO='{DEFAULT_SUDO}'"
        raise ConfigurationError(error_msg)

    verbose = env_flag("YNH_HELPERS_VERBOSE")

    return HelperConfig(
        ynh_cli=values["YNH_CLI"].strip(),
        nologin_shell=values["YNH_NOLOGIN_SHELL"].strip(),
        sudo=values["YNH_SUDO"].strip(),
        verbose=verbose,
    )
