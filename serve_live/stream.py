# stream.py
'''
An async iterator that owns a resource for as long as it is being consumed.

    stream = ScopedEventStream(channel, watch)
    async for item in stream:
      ...

The resource (here: the watchdog observer behind a WatchHandle) is
released exactly once, at whichever comes first:

    • the wrapped iterator finishes  (released before StopAsyncIteration)
    • aclose() / leaving `async with`
    • the stream object being garbage-collected unconsumed
'''

from __future__ import annotations

import logging
import threading
from typing import Any, AsyncIterator, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ScopedEventStream(Generic[T]):
  def __init__(
    self,
    source: AsyncIterator[T],
    resource: Any,
    release: Optional[Callable[[Any], None]] = None,
  ) -> None:
    self._source = source
    self._resource = resource
    self._release_fn = release or (lambda r: r.close())
    self._lock = threading.Lock()
    self._released = False

  @property
  def released(self) -> bool:
    return self._released

  @property
  def source(self) -> AsyncIterator[T]:
    return self._source

  def _release(self) -> None:
    with self._lock:
      if self._released:
        return
      self._released = True
      resource, self._resource = self._resource, None
    logger.debug('releasing %r', resource)
    self._release_fn(resource)

  def __aiter__(self) -> 'ScopedEventStream[T]':
    return self

  async def __anext__(self) -> T:
    try:
      return await self._source.__anext__()
    except StopAsyncIteration:
      self._release()
      raise

  async def aclose(self) -> None:
    try:
      self._release()
    finally:
      close = getattr(self._source, 'aclose', None)
      if close is not None:
        await close()

  async def __aenter__(self) -> 'ScopedEventStream[T]':
    return self

  async def __aexit__(self, *exc_info) -> None:
    await self.aclose()

  def __del__(self) -> None:
    # abandoned without aclose(): the resource still has to go
    if not getattr(self, '_released', True):
      self._release()
