# server.py
'''
HTTP front end: one route for the change stream, everything else is a file.

    GET /<event_path>   → text/event-stream of `files-changed` events
    *   /<anything>     → files.resolve(...)

Any unexpected failure in a handler becomes a 500 whose body starts with
'Internal server error:'; the server itself keeps running.
'''

from __future__ import annotations

import asyncio
import functools
import logging
import mimetypes
import weakref
from typing import Awaitable, Callable

from aiohttp import web

from .config import Config
from .events import EVENT_NAME, SSE_KEEP_ALIVE, sse_frame
from .files import BadRequest, FileBody, Redirect, ResolvedTarget, resolve
from .live import open_change_stream
from .stream import ScopedEventStream

logger = logging.getLogger(__name__)

CONFIG = web.AppKey('config', Config)
STREAMS = web.AppKey('streams', weakref.WeakSet)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


# ─────────────────────────────────────────────────────────────────────────────
# Error translation
# ─────────────────────────────────────────────────────────────────────────────
def internal_error_response(who: str, err: BaseException) -> web.Response:
  logger.error('error from %s: %s', who, err)
  return web.Response(status=500, text=f'Internal server error:\n{err}')


def internal_errors(who: str) -> Callable[[Handler], Handler]:
  '''Turn exceptions escaping *handler* into a 500 response.'''
  def decorate(handler: Handler) -> Handler:
    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.StreamResponse:
      try:
        return await handler(request)
      except web.HTTPException:
        raise
      except Exception as err:
        return internal_error_response(who, err)
    return wrapper
  return decorate


# ─────────────────────────────────────────────────────────────────────────────
# Server-sent events
# ─────────────────────────────────────────────────────────────────────────────
async def pump_events(
  stream: ScopedEventStream[str],
  response: web.StreamResponse,
  keep_alive: float,
) -> None:
  '''Copy payloads to *response* until the stream ends, with idle pings.'''
  while True:
    try:
      payload = await asyncio.wait_for(stream.__anext__(), keep_alive)
    except asyncio.TimeoutError:
      await response.write(SSE_KEEP_ALIVE)
      continue
    except StopAsyncIteration:
      return
    await response.write(sse_frame(payload, EVENT_NAME))


@internal_errors('server-sent event source')
async def serve_events(request: web.Request) -> web.StreamResponse:
  cfg = request.app[CONFIG]
  stream = open_change_stream(cfg.root, capacity=cfg.channel_capacity)
  request.app[STREAMS].add(stream)

  try:
    response = web.StreamResponse(
      headers={'Content-Type': 'text/event-stream', 'Cache-Control': 'no-cache'},
    )
    await response.prepare(request)
    # puts the headers on the wire before the first change arrives
    await response.write(SSE_KEEP_ALIVE)
    try:
      await pump_events(stream, response, cfg.keep_alive)
    except ConnectionResetError:
      logger.debug('event stream client disconnected')
    except Exception as err:
      # headers are already out; all that is left is to log and hang up
      logger.error('error from server-sent event source: %s', err)
    return response
  finally:
    await stream.aclose()


# ─────────────────────────────────────────────────────────────────────────────
# Static files
# ─────────────────────────────────────────────────────────────────────────────
def target_response(target: ResolvedTarget, tail: str = '') -> web.StreamResponse:
  if isinstance(target, Redirect):
    raise web.HTTPMovedPermanently(target.location)
  if isinstance(target, FileBody):
    content_type = target.content_type
    if content_type is None:
      # aiohttp always sends a Content-Type; make it a sensible guess
      content_type = mimetypes.guess_type(tail)[0]
    return web.Response(body=target.body, content_type=content_type)
  if isinstance(target, BadRequest):
    return web.Response(status=400, text=target.message)
  raise TypeError(f'unexpected resolver result {target!r}')


@internal_errors('file server')
async def serve_file(request: web.Request) -> web.StreamResponse:
  cfg = request.app[CONFIG]
  tail = request.match_info.get('tail', '')
  loop = asyncio.get_running_loop()
  target = await loop.run_in_executor(None, resolve, tail, cfg.root)
  return target_response(target, tail)


# ─────────────────────────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────────────────────────
async def _close_streams(app: web.Application) -> None:
  # ending the channels lets each stream finish and drop its watch
  for stream in list(app[STREAMS]):
    stream.source.close()


def make_app(config: Config) -> web.Application:
  app = web.Application()
  app[CONFIG] = config
  app[STREAMS] = weakref.WeakSet()
  app.router.add_get('/' + config.event_path, serve_events, allow_head=False)
  app.router.add_route('*', '/{tail:.*}', serve_file)
  app.on_shutdown.append(_close_streams)
  return app


def run(config: Config) -> None:
  web.run_app(
    make_app(config),
    host=config.host,
    port=config.port,
    print=None,
    handler_cancellation=True,
  )
