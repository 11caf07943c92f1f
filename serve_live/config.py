# config.py
'''
Server settings and the only checks that are allowed to stop startup.
'''

from __future__ import annotations

from pathlib import Path
from typing import Tuple


class ConfigError(Exception):
  '''Raised when the server cannot start with the given settings.'''


DEFAULT_ADDRESS = '0.0.0.0:3000'
DEFAULT_EVENT_PATH = 'events'
DEFAULT_KEEP_ALIVE = 600.0


def parse_address(text: str) -> Tuple[str, int]:
  '''
  'host:port' → (host, port).  IPv6 hosts go in brackets: '[::1]:3000'.
  '''
  host, sep, port = text.rpartition(':')
  if not sep or not host:
    raise ConfigError(f'invalid listen address {text!r}, expected HOST:PORT')
  if host.startswith('['):
    if not host.endswith(']'):
      raise ConfigError(f'invalid listen address {text!r}')
    host = host[1:-1]
  elif ':' in host:
    raise ConfigError(f'IPv6 addresses need brackets: {text!r}')
  try:
    port_num = int(port)
  except ValueError:
    raise ConfigError(f'invalid port in listen address {text!r}') from None
  if not 0 <= port_num <= 65535:
    raise ConfigError(f'port out of range in listen address {text!r}')
  return host, port_num


class Config:
  def __init__(
    self,
    root: str | Path = '.',
    host: str = '0.0.0.0',
    port: int = 3000,
    event_path: str = DEFAULT_EVENT_PATH,
    keep_alive: float = DEFAULT_KEEP_ALIVE,
    channel_capacity: int = 1,
  ) -> None:
    self.root = Path(root)
    self.host = host
    self.port = port
    self.event_path = event_path
    self.keep_alive = keep_alive
    self.channel_capacity = channel_capacity

  @property
  def address(self) -> str:
    host = f'[{self.host}]' if ':' in self.host else self.host
    return f'{host}:{self.port}'

  def validate(self) -> 'Config':
    '''Check the settings and canonicalise *root*.  Returns self.'''
    if not self.root.is_dir():
      raise ConfigError(f'Not a directory: {self.root}')
    self.root = self.root.resolve()
    self.event_path = self.event_path.strip('/')
    if not self.event_path:
      raise ConfigError('event path must not be empty')
    if self.keep_alive <= 0:
      raise ConfigError('keep-alive interval must be positive')
    if self.channel_capacity < 1:
      raise ConfigError('channel capacity must be at least 1')
    return self

  def __repr__(self) -> str:
    return (
      f'Config(root={str(self.root)!r}, address={self.address!r}, '
      f'event_path={self.event_path!r})'
    )
