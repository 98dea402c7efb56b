"""
Identity used for commit authorship.

The repository keeps its own settings as JSON in <git dir>/gitstore.json.
The author name and email are looked up in the environment first, then in
that file, then in the user's ~/.gitconfig.
"""
import logging
import os
from collections import namedtuple
from dataclasses import dataclass, field
from datetime import datetime

from serde import serde
from serde.json import from_json, to_json

from . import data
from .errors import MissingIdentity, UnknownConfigKey

logger = logging.getLogger(__name__)

CONFIG_FILE = 'gitstore.json'

@serde
@dataclass
class User:
    name: str = ''
    email: str = ''

@serde
@dataclass
class Config:
    user: User = field(default_factory=User)


class Identity(namedtuple('Identity', ['name', 'email', 'timestamp', 'tz_offset'])):
    #tz_offset is in seconds east of UTC

    @property
    def signature(self):
        return f'{self.name} <{self.email}>'


def config_path():
    return f'{data.GIT_DIR}/{CONFIG_FILE}'

def load_config() -> Config:
    try:
        with open(config_path()) as f:
            return from_json(Config, f.read())
    except FileNotFoundError:
        return Config()

def save_config(config: Config):
    with open(config_path(), 'w') as f:
        f.write(to_json(config))

def _split_key(key):
    section, _, name = key.partition('.')
    if section != 'user' or name not in ('name', 'email'):
        raise UnknownConfigKey(f'unknown config key {key!r}, expected user.name or user.email')
    return name

def get_value(key):
    return getattr(load_config().user, _split_key(key))

def set_value(key, value):
    name = _split_key(key)
    config = load_config()
    setattr(config.user, name, value)
    save_config(config)
    logger.debug(f'set {key} in {config_path()}')

#reads "name = ..." and "email = ..." out of ~/.gitconfig, ignoring sections
def read_global_user():
    name = email = ''
    path = os.path.expanduser('~/.gitconfig')
    if not os.path.isfile(path):
        return name, email
    with open(path) as f:
        for line in f:
            key, sep, value = line.strip().partition('=')
            if not sep:
                continue
            key = key.strip()
            if key == 'name' and not name:
                name = value.strip()
            elif key == 'email' and not email:
                email = value.strip()
    return name, email

def get_identity(now=None) -> Identity:
    user = load_config().user
    name = os.environ.get('GIT_AUTHOR_NAME') or user.name
    email = os.environ.get('GIT_AUTHOR_EMAIL') or user.email
    if not (name and email):
        global_name, global_email = read_global_user()
        name = name or global_name
        email = email or global_email
    if not name:
        raise MissingIdentity('author name is not set, run "gitstore config user.name <name>"')
    if not email:
        raise MissingIdentity('author email is not set, run "gitstore config user.email <email>"')

    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone() #local time zone
    return Identity(name, email, int(now.timestamp()), int(now.utcoffset().total_seconds()))
