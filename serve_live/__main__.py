# __main__.py
import logging
import sys
from pathlib import Path

from .config import Config, ConfigError, parse_address
from .dev_argparse import parse_argv
from .server import run

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def config_from_args(args) -> Config:
  host, port = parse_address(args.address)
  cfg = Config(
    root=args.path if args.path is not None else Path.cwd(),
    host=host,
    port=port,
    event_path=args.event_path,
    keep_alive=args.keep_alive,
  )
  return cfg.validate()


def main() -> None:
  args = parse_argv()
  logging.basicConfig(
    level=_LEVELS.get(args.verbose, logging.DEBUG),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
  )
  try:
    cfg = config_from_args(args)
  except ConfigError as exc:
    print(f'serve-live: error: {exc}', file=sys.stderr)
    sys.exit(2)

  print(f'Serving HTTP at {cfg.address}')
  print(f'    Serving files from {cfg.root}')
  print(f'    Change events at /{cfg.event_path}')
  run(cfg)


if __name__ == '__main__':
  main()
