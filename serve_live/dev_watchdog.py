# dev_watchdog.py
'''
Recursive directory watching based on the `watchdog` library.

API
---
watch_tree(root, on_change, on_error=None)  ->  WatchHandle
    • root       : directory to watch, recursively
    • on_change  : callback(List[str]) with the raw paths of one change
    • on_error   : callback(Exception) for failures while handling a change
Returns:
    WatchHandle  : owns the observer thread; close() stops it and frees
                   the OS watch descriptor
'''

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# reads are not changes; serving a file must not look like editing it
IGNORED_EVENT_TYPES = frozenset({'opened', 'closed_no_write'})


def _log_error(exc: Exception) -> None:
  logger.error('error from file change monitor: %s', exc)


class _ChangeHandler(FileSystemEventHandler):
  def __init__(
    self,
    on_change: Callable[[List[str]], None],
    on_error: Callable[[Exception], None],
  ) -> None:
    super().__init__()
    self._cb = on_change
    self._err = on_error

  def on_any_event(self, event: FileSystemEvent) -> None:
    if event.event_type in IGNORED_EVENT_TYPES:
      return
    # inotify echoes every child change as a modify of the parent directory
    if event.is_directory and event.event_type == 'modified':
      return
    logger.debug('event from file change monitor: %r', event)
    paths = [event.src_path]
    dest = getattr(event, 'dest_path', '')
    if dest:
      paths.append(dest)
    try:
      self._cb(paths)
    except Exception as exc:
      # keep the observer thread alive; a broken callback is a watcher error
      self._err(exc)


class WatchHandle:
  '''An active recursive watch.  Not shared, not reusable once closed.'''

  def __init__(self, root: Path, observer: Observer) -> None:
    self.root = root
    self._observer = observer
    self._lock = threading.Lock()
    self._closed = False

  @property
  def closed(self) -> bool:
    return self._closed

  def close(self, timeout: Optional[float] = 5.0) -> None:
    with self._lock:
      if self._closed:
        return
      self._closed = True
    self._observer.stop()
    if self._observer.is_alive() and threading.current_thread() is not self._observer:
      self._observer.join(timeout)
    logger.debug('stopped watching %s', self.root)

  def __enter__(self) -> 'WatchHandle':
    return self

  def __exit__(self, *exc_info) -> None:
    self.close()

  def __repr__(self) -> str:
    state = 'closed' if self._closed else 'active'
    return f'<WatchHandle {self.root} {state}>'


def watch_tree(
  root: str | Path,
  on_change: Callable[[List[str]], None],
  on_error: Optional[Callable[[Exception], None]] = None,
) -> WatchHandle:
  root = Path(root)
  handler = _ChangeHandler(on_change, on_error or _log_error)

  observer = Observer()
  observer.daemon = True
  observer.schedule(handler, str(root), recursive=True)
  observer.start()
  logger.debug('created watcher for %s', root)

  return WatchHandle(root, observer)
