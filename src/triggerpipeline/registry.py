# registry.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .errors import ConfigurationInvalid
from .jenkins.client import JenkinsClient
from .settings import REGISTRY_DATABASE_URL, TRIGGER_JENKINS_SERVER_ENV
from .ui.console import get_console


class Base(DeclarativeBase):
    pass


class Server(Base):
    __tablename__ = "servers"
    name: Mapped[str] = mapped_column(sa.Text, primary_key=True)
    url: Mapped[str] = mapped_column(sa.Text, nullable=False)
    username: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    token: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False)


@dataclass(frozen=True)
class JenkinsServer:
    """A Jenkins server registered under a name, with the credentials to call it."""
    name: str
    url: str
    username: str = ""
    token: str = ""

    def create_client(self, url_override: Optional[str] = None) -> JenkinsClient:
        url = url_override or self.url
        get_console().print_server_selected(self.name, url)
        return JenkinsClient(url, self.username, self.token)


def valid_name(name: str) -> str:
    """Lower-case `name` and replace anything but letters, digits, '-' and '.' with '-'."""
    cleaned = re.sub(r"[^a-z0-9.-]+", "-", name.strip().lower())
    return cleaned.strip("-.")


def _to_server(row: Server) -> JenkinsServer:
    return JenkinsServer(name=row.name, url=row.url, username=row.username, token=row.token)


class ServerRegistry:
    """Named Jenkins servers, stored in a small SQL database (sqlite by default)."""

    def __init__(self, database_url: str = REGISTRY_DATABASE_URL):
        url = make_url(database_url)
        if url.drivername.startswith("sqlite") and url.database not in (None, "", ":memory:"):
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        self.engine = sa.create_engine(url)
        self.Session = sessionmaker(self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def add_server(self, server: JenkinsServer) -> JenkinsServer:
        """Insert or update `server`; returns it with its normalised name."""
        name = valid_name(server.name)
        if not name:
            raise ConfigurationInvalid("a Jenkins server needs a name", name=server.name)
        if not server.url:
            raise ConfigurationInvalid("a Jenkins server needs a URL", name=name)

        with self.Session() as s:
            with s.begin():
                row = s.get(Server, name)
                if row is None:
                    row = Server(name=name, url=server.url, username=server.username, token=server.token)
                    s.add(row)
                else:
                    row.url = server.url
                    row.username = server.username
                    row.token = server.token
        return JenkinsServer(name=name, url=server.url, username=server.username, token=server.token)

    def list_servers(self) -> List[JenkinsServer]:
        with self.Session() as s:
            rows = s.execute(sa.select(Server).order_by(Server.name)).scalars().all()
            return [_to_server(r) for r in rows]

    def names(self) -> List[str]:
        return [srv.name for srv in self.list_servers()]

    def get_server(self, name: str) -> Optional[JenkinsServer]:
        with self.Session() as s:
            row = s.get(Server, valid_name(name))
            return _to_server(row) if row else None

    def delete_server(self, name: str) -> None:
        with self.Session() as s:
            with s.begin():
                row = s.get(Server, valid_name(name))
                if row is None:
                    raise ConfigurationInvalid(
                        f"there is no Jenkins server called {name}",
                        known=", ".join(self.names()) or "<none>",
                    )
                s.delete(row)


def select_server(
    registry: ServerRegistry,
    name: Optional[str] = None,
    *,
    batch_mode: bool = False,
    prompt: Optional[Callable[[Sequence[str]], str]] = None,
) -> JenkinsServer:
    """
    Pick the Jenkins server to talk to.

    An explicit name wins. In batch mode $TRIGGER_JENKINS_SERVER is used next.
    Otherwise a single registered server is picked automatically and several are
    offered through `prompt` (an error in batch mode).
    """
    names = registry.names()

    if not name and batch_mode:
        env_name = os.environ.get(TRIGGER_JENKINS_SERVER_ENV, "")
        if env_name:
            if env_name not in names:
                raise ConfigurationInvalid(
                    f"${TRIGGER_JENKINS_SERVER_ENV} is {env_name} but we can only find these Jenkins servers: {', '.join(names)}"
                )
            get_console().print_info(f"defaulting to Jenkins server {env_name} due to ${TRIGGER_JENKINS_SERVER_ENV}")
            name = env_name

    if not name:
        if not names:
            raise ConfigurationInvalid("No Jenkins servers found")
        if len(names) == 1:
            name = names[0]
        elif batch_mode or prompt is None:
            raise ConfigurationInvalid(
                "missing option --jenkins",
                options=", ".join(names),
            )
        else:
            name = prompt(names)

    server = registry.get_server(name)
    if server is None:
        raise ConfigurationInvalid(
            f"there is no Jenkins server called {name}",
            known=", ".join(names) or "<none>",
        )
    return server
