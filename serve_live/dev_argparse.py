import argparse
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_ADDRESS, DEFAULT_EVENT_PATH, DEFAULT_KEEP_ALIVE


def parse_argv(argv: Optional[List[str]] = None) -> argparse.Namespace:
  '''
  Parse command-line arguments for *serve-live*.

  Parameters
  ----------
  argv
    A custom argument list (mainly for testing).  When None the
    function uses ``sys.argv[1:]`` automatically.

  Returns
  -------
  argparse.Namespace
    • path       : Directory to serve (default: current directory)
    • address    : 'HOST:PORT' to listen on
    • event_path : URL path of the server-sent event stream
    • keep_alive : Seconds between keep-alive comments on an idle stream
    • verbose    : Verbosity count (-v, -vv, …)
  '''
  parser = argparse.ArgumentParser(
      prog='serve-live',
      description="Serve a directory's contents, providing server-sent events when files are changed.",
  )

  # positional: directory
  parser.add_argument(
      'path',
      nargs='?',
      type=Path,
      default=None,
      help="Directory to serve. (Default: '.')",
  )

  parser.add_argument(
      '--address',
      '-a',
      default=DEFAULT_ADDRESS,
      metavar='HOST:PORT',
      help=f'Address to listen for HTTP requests on. (Default: {DEFAULT_ADDRESS})',
  )

  parser.add_argument(
      '--event-path',
      default=DEFAULT_EVENT_PATH,
      metavar='NAME',
      help=f"Path for server-sent events reporting file changes. (Default: '{DEFAULT_EVENT_PATH}')",
  )

  parser.add_argument(
      '--keep-alive',
      type=float,
      default=DEFAULT_KEEP_ALIVE,
      metavar='SEC',
      help=f'Keep-alive interval for idle event streams (default: {DEFAULT_KEEP_ALIVE:g} s).',
  )

  # verbosity
  parser.add_argument(
      '--verbose',
      '-v',
      action='count',
      default=0,
      help='Increase logging verbosity; repeat for more detail.',
  )

  try:
    import argcomplete
    argcomplete.autocomplete(parser)
  except ImportError:
    pass
  return parser.parse_args(argv)
