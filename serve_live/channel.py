# channel.py
'''
Bounded hand-off from the watchdog thread to the asyncio event stream.

The producer (the observer thread) never blocks: when the buffer is full
the event is thrown away and the channel remembers it.  The next event
that does get through carries `dropped=True`, so the client learns that
it missed something instead of silently under-reporting.

API
---
DropTrackingChannel(loop, capacity=1)
    • send(paths)      -> SendResult   (producer, any thread)
    • try_send(payload)                (producer, raises ChannelError)
    • await receive()  -> str          (consumer, event-loop thread)
    • async for payload in channel     (consumer)
    • close() / aclose()               (consumer hung up)
'''

from __future__ import annotations

import asyncio
import enum
import logging
import threading
from collections import deque
from typing import Callable, Deque, Iterable

from .events import ChangeEvent, encode_event

logger = logging.getLogger(__name__)


class ChannelError(Exception):
  pass


class ChannelFull(ChannelError):
  pass


class ChannelClosed(ChannelError):
  pass


class SendResult(enum.Enum):
  SENT = 'sent'
  FULL = 'full'
  DISCONNECTED = 'disconnected'
  ENCODE_FAILED = 'encode_failed'


class DropTrackingChannel:
  def __init__(
    self,
    loop: asyncio.AbstractEventLoop,
    capacity: int = 1,
    encoder: Callable[[ChangeEvent], str] = encode_event,
  ) -> None:
    if capacity < 1:
      raise ValueError('capacity must be at least 1')
    self._loop = loop
    self._capacity = capacity
    self._encoder = encoder
    self._buffer: Deque[str] = deque()
    self._lock = threading.Lock()
    self._closed = False
    self._ready = asyncio.Event()
    # DropState: only the producer touches it
    self._dropped = False

  @property
  def dropped(self) -> bool:
    return self._dropped

  @property
  def closed(self) -> bool:
    return self._closed

  @property
  def capacity(self) -> int:
    return self._capacity

  def __len__(self) -> int:
    with self._lock:
      return len(self._buffer)

  # ---------------------------------------------------------------- producer
  def try_send(self, payload: str) -> None:
    with self._lock:
      if self._closed:
        raise ChannelClosed('receiver is gone')
      if len(self._buffer) >= self._capacity:
        raise ChannelFull(f'channel full ({self._capacity})')
      self._buffer.append(payload)
    try:
      self._loop.call_soon_threadsafe(self._ready.set)
    except RuntimeError:
      # event loop already closed: nobody will ever read this
      with self._lock:
        self._closed = True
        self._buffer.clear()
      raise ChannelClosed('event loop is closed')

  def send(self, paths: Iterable) -> SendResult:
    '''
    Encode *paths* as a ChangeEvent and enqueue it without blocking.

    Never raises; the outcome is reported through SendResult.
    '''
    try:
      payload = self._encoder(ChangeEvent(tuple(paths), self._dropped))
    except (TypeError, ValueError) as exc:
      logger.error('error serializing event: %s', exc)
      return SendResult.ENCODE_FAILED

    try:
      self.try_send(payload)
    except ChannelFull:
      self._dropped = True
      logger.debug('channel full, event dropped')
      return SendResult.FULL
    except ChannelClosed:
      return SendResult.DISCONNECTED

    self._dropped = False
    return SendResult.SENT

  # ---------------------------------------------------------------- consumer
  async def receive(self) -> str:
    while True:
      self._ready.clear()
      with self._lock:
        if self._buffer:
          return self._buffer.popleft()
        if self._closed:
          raise ChannelClosed('channel closed')
      await self._ready.wait()

  def close(self) -> None:
    '''Stop accepting events.  Already-buffered payloads can still be read.'''
    with self._lock:
      if self._closed:
        return
      self._closed = True
    try:
      self._loop.call_soon_threadsafe(self._ready.set)
    except RuntimeError:
      pass  # loop closed, no receiver left to wake

  async def aclose(self) -> None:
    self.close()

  def __aiter__(self) -> 'DropTrackingChannel':
    return self

  async def __anext__(self) -> str:
    try:
      return await self.receive()
    except ChannelClosed:
      raise StopAsyncIteration from None
