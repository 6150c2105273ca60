"""
Utenti e gruppi di sistema (database identità del SO) per gli script delle app YunoHost
"""
import grp
import pwd
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .config import get_helper_config
from .errors import CommandError, SystemUserCreateError
from .utils import print_debug, print_warn, run


@dataclass
class SystemAccount:
    """Account POSIX come visto dagli helper"""
    username: str
    home_dir: Optional[str] = None
    shell: str = ""
    system: bool = True
    groups: List[str] = field(default_factory=list)


def build_useradd_cmd(username: str, home_dir: Optional[str] = None,
                      shell: Optional[str] = None) -> List[str]:
    """
    Costruisce la riga di comando useradd per un account di sistema

    Args:
        username: Nome dell'account
        home_dir: Home directory da usare, None per nessuna home
        shell: Shell di login da imporre, None per il default del SO
    """
    cmd = ["useradd"]
    if home_dir:
        cmd.extend(["--home-dir", home_dir])
    else:
        cmd.append("--no-create-home")
    cmd.extend(["--system", "--user-group"])
    if shell:
        cmd.extend(["--shell", shell])
    cmd.append(username)
    return cmd


class SystemIdentity(ABC):
    """Operazioni richieste sul database identità del SO"""

    @abstractmethod
    def user_exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def group_exists(self, group: str) -> bool:
        pass

    @abstractmethod
    def create_user(self, username: str, home_dir: Optional[str] = None,
                    shell: Optional[str] = None) -> None:
        """Crea un account di sistema con gruppo primario omonimo"""

    @abstractmethod
    def add_to_group(self, username: str, group: str) -> None:
        pass

    @abstractmethod
    def delete_user(self, username: str) -> None:
        pass

    @abstractmethod
    def delete_group(self, group: str) -> None:
        pass


class LinuxIdentity(SystemIdentity):
    """Implementazione reale: lookup passwd/group e tool shadow-utils/adduser"""

    def __init__(self, runner: Callable[[List[str]], str] = run):
        self._run = runner

    def user_exists(self, username: str) -> bool:
        try:
            pwd.getpwnam(username)
            return True
        except KeyError:
            return False

    def group_exists(self, group: str) -> bool:
        try:
            grp.getgrnam(group)
            return True
        except KeyError:
            return False

    def create_user(self, username: str, home_dir: Optional[str] = None,
                    shell: Optional[str] = None) -> None:
        self._run(build_useradd_cmd(username, home_dir, shell))

    def add_to_group(self, username: str, group: str) -> None:
        self._run(["usermod", "-a", "-G", group, username])

    def delete_user(self, username: str) -> None:
        self._run(["deluser", username])

    def delete_group(self, group: str) -> None:
        self._run(["delgroup", group])


class InMemoryIdentity(SystemIdentity):
    """
    Database identità in memoria, per test e dry run

    Replica i casi di errore dei tool reali: creare un account o un gruppo
    già esistente fallisce, eliminarne uno mancante fallisce.
    `remove_group_with_user` simula un SO in cui deluser rimuove anche il
    gruppo omonimo.
    """

    def __init__(self, default_shell: str = "/bin/sh",
                 remove_group_with_user: bool = False):
        self.default_shell = default_shell
        self.remove_group_with_user = remove_group_with_user
        self.users: Dict[str, SystemAccount] = {}
        self.groups: Dict[str, Set[str]] = {}
        self.fail_on_create: Set[str] = set()
        self.calls: List[tuple] = []

    def add_user(self, username: str, **kwargs) -> SystemAccount:
        """Aggiunge un account esistente (e il suo gruppo)"""
        account = SystemAccount(username=username, **kwargs)
        self.users[username] = account
        self.groups.setdefault(username, set())
        return account

    def user_exists(self, username: str) -> bool:
        return username in self.users

    def group_exists(self, group: str) -> bool:
        return group in self.groups

    def create_user(self, username: str, home_dir: Optional[str] = None,
                    shell: Optional[str] = None) -> None:
        cmd = build_useradd_cmd(username, home_dir, shell)
        self.calls.append(("create_user", username, home_dir, shell))
        if username in self.fail_on_create:
            raise CommandError(cmd, 1, "useradd: cannot lock /etc/passwd")
        if username in self.users:
            raise CommandError(cmd, 9, f"useradd: user '{username}' already exists")
        if username in self.groups:
            raise CommandError(cmd, 9, f"useradd: group {username} exists")
        self.users[username] = SystemAccount(
            username=username,
            home_dir=home_dir,
            shell=shell or self.default_shell,
        )
        self.groups[username] = set()

    def add_to_group(self, username: str, group: str) -> None:
        self.calls.append(("add_to_group", username, group))
        if group not in self.groups:
            raise CommandError(["usermod", "-a", "-G", group, username], 6,
                               f"usermod: group '{group}' does not exist")
        self.groups[group].add(username)
        self.users[username].groups.append(group)

    def delete_user(self, username: str) -> None:
        self.calls.append(("delete_user", username))
        if username not in self.users:
            raise CommandError(["deluser", username], 2,
                               f"deluser: The user `{username}' does not exist.")
        del self.users[username]
        for members in self.groups.values():
            members.discard(username)
        if self.remove_group_with_user:
            self.groups.pop(username, None)

    def delete_group(self, group: str) -> None:
        self.calls.append(("delete_group", group))
        if group not in self.groups:
            raise CommandError(["delgroup", group], 2,
                               f"delgroup: The group `{group}' does not exist.")
        del self.groups[group]


def get_identity() -> SystemIdentity:
    """Backend identità di default: il sistema Linux locale"""
    return LinuxIdentity()


def system_user_exists(username: str, identity: Optional[SystemIdentity] = None) -> bool:
    """
    Verifica se un utente di sistema esiste

    Args:
        username: Nome dell'account da cercare

    Returns:
        True se l'utente esiste, False altrimenti
    """
    identity = identity or get_identity()
    return identity.user_exists(username)


def system_group_exists(group: str, identity: Optional[SystemIdentity] = None) -> bool:
    """
    Verifica se un gruppo di sistema esiste

    Args:
        group: Nome del gruppo da cercare

    Returns:
        True se il gruppo esiste, False altrimenti
    """
    identity = identity or get_identity()
    return identity.group_exists(group)


def system_user_create(username: str, home_dir: Optional[str] = None,
                       use_shell: bool = False, groups: Optional[List[str]] = None,
                       identity: Optional[SystemIdentity] = None) -> bool:
    """
    Crea un utente di sistema, se non esiste già

    Args:
        username: Nome dell'account
        home_dir: Home directory, None per nessuna home
        use_shell: Mantiene la shell di login di default invece di nologin
        groups: Gruppi aggiuntivi a cui aggiungere l'account
        identity: Backend identità del SO (default: il sistema locale)

    Returns:
        True se l'account è stato creato, False se esisteva già

    Raises:
        SystemUserCreateError: se non è possibile creare l'account
    """
    if not username:
        raise ValueError("Missing required argument: username")

    identity = identity or get_identity()
    if identity.user_exists(username):
        print_debug(f"System user {username} already exists")
        return False

    shell = None if use_shell else get_helper_config().nologin_shell
    try:
        identity.create_user(username, home_dir=home_dir, shell=shell)
    except CommandError as e:
        raise SystemUserCreateError(f"Unable to create {username} system account") from e

    for group in groups or []:
        try:
            identity.add_to_group(username, group)
        except CommandError as e:
            raise SystemUserCreateError(
                f"Unable to add {username} system account to group {group}"
            ) from e

    return True


def system_user_delete(username: str, identity: Optional[SystemIdentity] = None) -> bool:
    """
    Elimina un utente di sistema e il gruppo omonimo

    Un utente mancante genera solo un warning. Il gruppo omonimo viene
    verificato e rimosso a parte, qualunque cosa abbia fatto deluser.

    Returns:
        True se l'utente è stato eliminato, False se non trovato
    """
    if not username:
        raise ValueError("Missing required argument: username")

    identity = identity or get_identity()
    deleted = False
    if identity.user_exists(username):
        identity.delete_user(username)
        deleted = True
    else:
        print_warn(f"The user {username} was not found")

    if identity.group_exists(username):
        identity.delete_group(username)

    return deleted
