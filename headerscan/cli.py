from typing import Dict, Generator, List
import argparse
import contextlib
import logging
import os
import sys

##################################################################################################
# Main
##################################################################################################

ArgParser = argparse.ArgumentParser


class Commands:
    """
    Declares nested subcommands by path: ``commands('config/check')`` yields the parser
    of ``headerscan config check``. The chosen names land in ``args.command``,
    ``args.subcommand``, ``args.subsubcommand`` and so on.
    """
    def __init__(self, parser: ArgParser) -> None:
        self.parsers: Dict[str, ArgParser] = {'': parser}
        self.subparsers: Dict[str, argparse._SubParsersAction] = {}

    def _children(self, path: str, depth: int) -> argparse._SubParsersAction:
        if path not in self.subparsers:
            dest = 'sub' * depth + 'command'
            self.subparsers[path] = self.parsers[path].add_subparsers(dest=dest)
        return self.subparsers[path]

    @contextlib.contextmanager
    def __call__(self, name: str) -> Generator[ArgParser, None, None]:
        parts = name.split('/')
        for depth, part in enumerate(parts):
            parent = '/'.join(parts[:depth])
            path = '/'.join(parts[:depth + 1])
            if path not in self.parsers:
                self.parsers[path] = self._children(parent, depth).add_parser(part)
        yield self.parsers[name]


def build_parser() -> ArgParser:
    parser = argparse.ArgumentParser(prog='headerscan', description="Check and fix license headers.")
    commands = Commands(parser)

    with commands('scan') as cmd:
        cmd.add_argument('root', type=str, nargs='?', default='.', help='Root of the tree to scan.')
        cmd.add_argument('--fix', action='store_true', help='Insert or replace missing and outdated headers.')
        cmd.add_argument('--config', type=str, default=None, help='Configuration file (default: ROOT/licenserc.toml).')
        cmd.add_argument('--format', type=str, choices=['plain', 'pretty'], default='plain', help='Report format.')
        cmd.add_argument('--verbose', '-v', action='store_true', help='Also report excluded files and debug logs.')
        cmd.add_argument('--jobs', '-j', type=int, default=None, help='Number of worker threads.')
        cmd.add_argument('--timeout', type=float, default=None, help='Stop starting new files after this many seconds.')

    with commands('config/check') as cmd:
        cmd.add_argument('root', type=str, nargs='?', default='.')
        cmd.add_argument('--config', type=str, default=None)

    with commands('languages'):
        pass

    return parser


def main(argv: List[str] | None = None) -> int:
    if sys.platform.lower() == "win32":
        os.system('color')
        sys.stdout.reconfigure(encoding='utf-8') # type: ignore
        sys.stderr.reconfigure(encoding='utf-8') # type: ignore

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    match args.command:
        case 'scan':
            if args.verbose:
                logging.getLogger().setLevel(logging.DEBUG)
            from headerscan.tasks.scan import scan_main
            return scan_main(
                root=args.root,
                config_path=args.config,
                fix=args.fix,
                fmt=args.format,
                verbose=args.verbose,
                jobs=args.jobs,
                timeout=args.timeout)

        case 'config':
            match args.subcommand:
                case 'check':
                    from headerscan.tasks.check_config import check_config
                    return check_config(args.root, args.config)
                case _:
                    parser.print_help()
                    return 2

        case 'languages':
            from headerscan.tasks.languages import list_languages
            list_languages()
            return 0

        case _:
            raise ValueError(f"Unknown command: {args.command}")


def run() -> None:
    sys.exit(main())


if __name__ == '__main__':
    run()
