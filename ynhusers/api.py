"""
API YunoHost - utenti applicativi tramite la CLI `yunohost user`
"""
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .config import get_helper_config
from .errors import HelperError, MissingInfoKeyError
from .utils import run


# Marcatore di blocco in `yunohost user list --output-as plain`
PLAIN_USERNAME_MARKER = "##username"


@dataclass
class AppUser:
    """Record di un utente applicativo come elencato da YunoHost"""
    username: str
    fullname: str = ""
    mail: str = ""
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict) -> "AppUser":
        fields = {key: _flatten(value) for key, value in record.items()}
        return cls(
            username=fields.get("username", ""),
            fullname=fields.get("fullname", ""),
            mail=fields.get("mail", ""),
            fields=fields,
        )


def _flatten(value) -> str:
    if isinstance(value, (list, tuple)):
        return "\n".join(_flatten(item) for item in value)
    if isinstance(value, dict):
        return "\n".join(f"{k}: {_flatten(v)}" for k, v in value.items())
    if value is None:
        return ""
    return str(value)


def parse_user_list_json(output: str) -> List[AppUser]:
    """
    Parsing di `yunohost user list --output-as json --quiet`

    Accetta sia {"users": {"alice": {...}}} che {"users": [{...}]}.
    """
    try:
        data = json.loads(output or "{}")
    except json.JSONDecodeError as e:
        raise HelperError(f"Unexpected output from yunohost user list: {e}") from e

    users = data.get("users", {}) if isinstance(data, dict) else data
    if isinstance(users, dict):
        records = []
        for name, record in users.items():
            record = dict(record or {})
            record.setdefault("username", name)
            records.append(record)
    else:
        records = list(users or [])

    return [AppUser.from_record(record) for record in records]


def parse_plain_usernames(output: str) -> List[str]:
    """
    Estrae gli username da `yunohost user list --output-as plain --quiet`

    Ogni riga marcatore `##username` è seguita dalla riga col valore.
    """
    usernames = []
    lines = output.splitlines()
    for index, line in enumerate(lines):
        if line.strip() == PLAIN_USERNAME_MARKER and index + 1 < len(lines):
            usernames.append(lines[index + 1].strip())
    return usernames


def parse_key_value(output: str) -> Dict[str, str]:
    """
    Parsing dell'output `key: value` di `yunohost user info`

    Le righe indentate dopo un `key:` senza valore sono elementi di lista,
    restituiti uniti da a capo.
    """
    info: Dict[str, str] = {}
    current_key: Optional[str] = None
    items: List[str] = []

    def flush():
        if current_key is not None and items:
            info[current_key] = "\n".join(items)

    for raw_line in output.splitlines():
        if not raw_line.strip():
            continue

        if raw_line[0].isspace():
            if current_key is not None:
                item = raw_line.strip()
                if item.startswith("- "):
                    item = item[2:].strip()
                items.append(item)
            continue

        if ":" not in raw_line:
            continue

        flush()
        key, _, value = raw_line.partition(":")
        current_key = key.strip()
        items = []
        info[current_key] = value.strip()

    flush()
    return info


class YunohostClient(ABC):
    """Accesso al registro degli utenti applicativi"""

    @abstractmethod
    def list_users(self) -> List[AppUser]:
        """Tutti gli utenti applicativi, con i campi elencati"""

    @abstractmethod
    def list_usernames(self) -> List[str]:
        """Username nell'ordine dell'elenco"""

    @abstractmethod
    def get_user_info(self, username: str) -> Dict[str, str]:
        """Campi del profilo di un utente"""


class YunohostCli(YunohostClient):
    """Client basato sul comando `yunohost`"""

    def __init__(self, ynh_cli: Optional[str] = None,
                 runner: Callable[[List[str]], str] = run):
        self.ynh_cli = ynh_cli or get_helper_config().ynh_cli
        self._run = runner

    def list_users(self) -> List[AppUser]:
        output = self._run([self.ynh_cli, "user", "list", "--output-as", "json", "--quiet"])
        return parse_user_list_json(output)

    def list_usernames(self) -> List[str]:
        output = self._run([self.ynh_cli, "user", "list", "--output-as", "plain", "--quiet"])
        return parse_plain_usernames(output)

    def get_user_info(self, username: str) -> Dict[str, str]:
        output = self._run([self.ynh_cli, "user", "info", username])
        return parse_key_value(output)


def get_client() -> YunohostClient:
    """Client di default, configurato dall'ambiente"""
    return YunohostCli()


def _require(name: str, value: str) -> None:
    if not value:
        raise ValueError(f"Missing required argument: {name}")


def user_exists(username: str, client: Optional[YunohostClient] = None) -> bool:
    """
    Verifica se un utente applicativo è registrato in YunoHost

    Args:
        username: Username da cercare (corrispondenza esatta)
        client: Client del registro (default: CLI yunohost)

    Returns:
        True se l'utente esiste, False altrimenti
    """
    _require("username", username)
    client = client or get_client()
    return any(user.username == username for user in client.list_users())


def user_get_info(username: str, key: str, client: Optional[YunohostClient] = None) -> str:
    """
    Legge un campo del profilo di un utente applicativo

    Args:
        username: Utente applicativo
        key: Campo del profilo, es. "mail"
        client: Client del registro (default: CLI yunohost)

    Returns:
        Il valore salvato, anche vuoto

    Raises:
        MissingInfoKeyError: se il profilo non ha quella chiave
    """
    _require("username", username)
    _require("key", key)
    client = client or get_client()
    info = client.get_user_info(username)
    if key not in info:
        raise MissingInfoKeyError(username, key)
    return info[key]


def user_list(client: Optional[YunohostClient] = None) -> List[str]:
    """Elenca tutti gli username applicativi, nell'ordine dell'elenco"""
    client = client or get_client()
    return client.list_usernames()
