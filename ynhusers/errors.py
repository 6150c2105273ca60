"""
Errori sollevati dagli helper di gestione utenti.
"""
from typing import List, Optional


class HelperError(Exception):
    """Eccezione base per tutti gli errori degli helper."""
    pass


class ConfigurationError(HelperError):
    """Configurazione degli helper non valida."""
    pass


class CommandError(HelperError):
    """Un comando esterno è uscito con stato diverso da zero."""

    def __init__(self, cmd: List[str], returncode: int, stderr: Optional[str] = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed ({returncode}): {' '.join(self.cmd)}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)


class SystemUserCreateError(HelperError):
    """Impossibile creare l'account di sistema."""
    pass


class MissingInfoKeyError(HelperError, LookupError):
    """La chiave richiesta non fa parte del profilo utente."""

    def __init__(self, username: str, key: str):
        self.username = username
        self.key = key
        super().__init__(f"Key '{key}' not found in profile of user {username}")
