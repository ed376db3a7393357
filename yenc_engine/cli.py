"""Command-line interface for the yEnc engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from colorama import Fore, Style, init as colorama_init
from tqdm import tqdm

from .common.types import DecodedMeta
from .config import Config
from .decoder import iter_blocks
from .file_processor import (
    decode_file,
    decode_files_concurrent,
    encode_file,
    encode_file_parts,
)
from .utils import YencError, format_bytes, setup_logging


def _command_showcase() -> List[Tuple[str, str]]:
    return [
        ("encode <path>", "Encode a file to <path>.yenc"),
        ("decode <files...>", "Decode yEnc files into a directory"),
        ("info <file>", "Show block headers and verify checksums"),
    ]


def _print_command_help(title: str) -> None:
    print(title)
    print("Usage: python main.py <command> [options]")
    print("\nAvailable commands:\n")
    for command, label in _command_showcase():
        print(f"  {command:<20} - {label}")
    print("\nExamples:")
    print("  python main.py encode ./photo.jpg --part-size 500000")
    print("  python main.py decode photo.jpg.yenc -o ./restored")
    print("")


class _FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        _print_command_help(f"{Fore.RED}Error:{Style.RESET_ALL} {message}")
        raise SystemExit(2)


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = _FriendlyArgumentParser(description="yEnc encoder/decoder")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    encode_parser = subparsers.add_parser("encode", help="Encode a file")
    encode_parser.add_argument("path", help="File to encode")
    encode_parser.add_argument("-o", "--output", help="Output file (default: <path>.yenc)")
    encode_parser.add_argument("--line-length", type=int, help="Bytes per body line")
    encode_parser.add_argument(
        "--part-size", type=int, help="Split into parts of this many bytes (0 = single part)"
    )
    encode_parser.add_argument(
        "--dot-stuff", action="store_true", help="Double a dot that opens a body line (NNTP)"
    )

    decode_parser = subparsers.add_parser("decode", help="Decode yEnc files")
    decode_parser.add_argument("files", nargs="+", help="Files holding yEnc blocks")
    decode_parser.add_argument("-o", "--output-dir", default=".", help="Destination directory")
    decode_parser.add_argument(
        "--lenient", action="store_true", help="Report checksum mismatches without failing"
    )

    info_parser = subparsers.add_parser("info", help="Inspect yEnc blocks")
    info_parser.add_argument("file", help="File holding yEnc blocks")

    subparsers.add_parser("help", help="Show help and usage examples")

    return parser.parse_args(argv)


def command_encode(args: argparse.Namespace, config: Config) -> None:
    """
    Handle encode command.
    """
    path = Path(args.path).expanduser()
    if not path.is_file():
        raise YencError(f"File not found: {path}")
    output = Path(args.output) if args.output else path.with_name(f"{path.name}.yenc")
    options = config.encode_options(args.line_length)
    if args.dot_stuff:
        options = replace(options, dot_stuff=True)
    options.validate()
    part_size = config.part_size if args.part_size is None else args.part_size

    with open(output, "wb") as sink:
        if part_size:
            progress = tqdm(desc="Encoding", unit="part")

            def _progress(done: int, total: int, name: Optional[str]) -> None:
                progress.total = total
                progress.n = done
                progress.refresh()

            try:
                trailers = encode_file_parts(
                    path, sink, part_size, options, _progress, config.io_buffer_size
                )
            finally:
                progress.close()
        else:
            trailers = [encode_file(path, sink, options, config.io_buffer_size)]

    print(
        f"{Fore.GREEN}✓ Encoded {path.name} ({format_bytes(path.stat().st_size)}) "
        f"in {len(trailers)} block(s) to {output}{Style.RESET_ALL}"
    )


def command_decode(args: argparse.Namespace) -> None:
    """
    Handle decode command.
    """
    output_dir = Path(args.output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = [Path(name).expanduser() for name in args.files]
    strict = not args.lenient

    if len(paths) == 1:
        metas = decode_file(paths[0], output_dir, strict=strict)
    else:
        progress = tqdm(total=len(paths), desc="Decoding", unit="file")

        def _progress(done: int, total: int, name: Optional[str]) -> None:
            progress.n = done
            progress.refresh()

        try:
            metas = asyncio.run(
                decode_files_concurrent(paths, output_dir, strict=strict, progress_callback=_progress)
            )
        finally:
            progress.close()

    if not metas:
        raise YencError("No yEnc blocks found.")
    for meta in metas:
        _print_meta(meta)


def command_info(args: argparse.Namespace) -> None:
    """
    Handle info command.
    """
    with open(args.file, "rb") as source, open(os.devnull, "wb") as discard:
        found = False
        for meta in iter_blocks(source, lambda header, part_trailer: discard, strict=False):
            found = True
            _print_meta(meta)
    if not found:
        raise YencError("No yEnc blocks found.")


def _print_meta(meta: DecodedMeta) -> None:
    details = meta.to_dict()
    status = f"{Fore.GREEN}ok" if meta.ok else f"{Fore.RED}FAILED"
    part = ""
    if details["part"] is not None:
        part = f" part {details['part']}/{details['total_parts']}"
    print(f"{Fore.CYAN}{details['name']}{Style.RESET_ALL}{part}: {status}{Style.RESET_ALL}")
    print(f"  Size: {format_bytes(details['size'])} of {format_bytes(details['total_size'])}")
    if details["begin"] is not None:
        print(f"  Range: {details['begin']}-{details['end']}")
    print(f"  CRC32: {details['crc32']} (pcrc32 {details['part_verification']}, "
          f"crc32 {details['verification']})")
    if details["unexpected_escapes"]:
        print(f"  {Fore.YELLOW}Unexpected escapes: {details['unexpected_escapes']}{Style.RESET_ALL}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.
    """
    colorama_init()
    args = parse_arguments(argv)

    try:
        config = Config.get_instance()
        setup_logging(logging.DEBUG if args.verbose else config.log_level)
        if not args.command:
            _print_command_help("Choose a command to continue.")
            return 0
        if args.command == "help":
            _print_command_help("yEnc CLI Help")
            return 0
        if args.command == "encode":
            command_encode(args, config)
        elif args.command == "decode":
            command_decode(args)
        elif args.command == "info":
            command_info(args)
    except YencError as exc:
        print(f"{Fore.RED}Error: {exc}{Style.RESET_ALL}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
