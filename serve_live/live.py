# live.py
'''
Wire a directory watch to a stream of `files-changed` payloads.

    filesystem ─▶ watchdog thread ─▶ filter_paths ─▶ DropTrackingChannel
                                                          │
                                ScopedEventStream ◀───────┘  (owns the watch)
'''

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from .channel import DropTrackingChannel, SendResult
from .dev_watchdog import WatchHandle, watch_tree
from .paths import filter_paths
from .stream import ScopedEventStream

logger = logging.getLogger(__name__)


def _change_callback(channel: DropTrackingChannel):
  def on_change(paths: List[str]) -> None:
    if channel.closed:
      return
    relevant = filter_paths(paths)
    if not relevant:
      logger.debug('    all changed filenames filtered out, event dropped')
      return
    if channel.send(relevant) is SendResult.DISCONNECTED:
      logger.debug('event stream receiver is gone, not sending')

  return on_change


def _release(channel: DropTrackingChannel):
  def release(watch: WatchHandle) -> None:
    watch.close()
    channel.close()

  return release


def open_change_stream(
  root: str | Path,
  *,
  capacity: int = 1,
  loop: Optional[asyncio.AbstractEventLoop] = None,
) -> ScopedEventStream[str]:
  '''
  Start watching *root* and return a stream of JSON payloads.

  Must be called with an event loop available (or pass *loop*); the
  payloads are delivered on that loop.  Raises OSError if the directory
  cannot be watched.
  '''
  loop = loop or asyncio.get_running_loop()
  channel = DropTrackingChannel(loop, capacity=capacity)
  watch = watch_tree(root, _change_callback(channel))
  logger.debug('serving modification events for %s', root)
  return ScopedEventStream(channel, watch, release=_release(channel))
