# files.py
'''
Map a request path onto the served directory.

resolve(tail, root, base='/')  ->  Redirect | FileBody | BadRequest

    • directory, tail empty or ending in '/'  → serve its index.html
    • directory, no trailing '/'              → Redirect to tail + '/'
    • readable file                           → FileBody
    • anything else (missing, unreadable,
      or escaping *root*)                     → BadRequest

Every read failure is a 400, not a 404: the browser only needs to know
the request did not work, and the details go to the log.
'''

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

logger = logging.getLogger(__name__)

INDEX_FILE = 'index.html'

CONTENT_TYPES = {
  '.css': 'text/css',
  '.html': 'text/html',
  '.js': 'application/javascript',
  '.png': 'image/png',
  '.svg': 'image/svg+xml',
  '.json': 'application/json',
  '.jpg': 'image/jpeg',
  '.jpeg': 'image/jpeg',
  '.gif': 'image/gif',
  '.ico': 'image/x-icon',
  '.wasm': 'application/wasm',
}


@dataclass(frozen=True)
class Redirect:
  location: str


@dataclass(frozen=True)
class FileBody:
  body: bytes
  content_type: Optional[str] = None


@dataclass(frozen=True)
class BadRequest:
  message: str = 'request failed'


ResolvedTarget = Union[Redirect, FileBody, BadRequest]


def content_type_for(path: str | Path) -> Optional[str]:
  '''Content type for a few well-known extensions; None lets the client guess.'''
  return CONTENT_TYPES.get(Path(path).suffix)


def _contained(root: Path, tail: str) -> Optional[Path]:
  '''root/tail, or None if the normalised result would leave *root*.'''
  relative = tail.lstrip('/\\')
  joined = os.path.normpath(os.path.join(root, relative))
  try:
    if os.path.commonpath([str(root), joined]) != str(root):
      return None
  except ValueError:  # different drives
    return None
  return Path(joined)


def resolve(tail: str, root: str | Path, base: str = '/') -> ResolvedTarget:
  root = Path(os.path.abspath(root))
  path = _contained(root, tail)
  if path is None:
    logger.error('serve_file: %r escapes %s', tail, root)
    return BadRequest()

  if path.is_dir():
    if not tail or tail.endswith('/'):
      path = path / INDEX_FILE
    else:
      location = f'{base.rstrip("/")}/{quote(tail.lstrip("/"), safe="/")}/'
      logger.debug('redirecting to URI: %s', location)
      return Redirect(location)

  try:
    body = path.read_bytes()
  except (OSError, ValueError) as err:  # ValueError: embedded NUL
    logger.error('serve_file:')
    logger.error('    tail: %r', tail)
    logger.error('    path: %s', path)
    logger.error('    error: %s', err)
    return BadRequest()

  logger.debug('serving contents of %s', path)
  return FileBody(body, content_type_for(path))
