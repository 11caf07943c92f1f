# serve_live/__init__.py
from importlib.metadata import version, PackageNotFoundError

try:
  __version__ = version('serve-live')
except PackageNotFoundError:      # development mode
  __version__ = '0.0.0.dev0'

from .config import Config, ConfigError                   # re-export
from .files import resolve                                # re-export
from .live import open_change_stream                      # re-export
from .server import make_app, run                         # re-export

__all__ = [
  'Config', 'ConfigError',
  'resolve',
  'open_change_stream',
  'make_app', 'run',
]
