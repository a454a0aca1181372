import argparse
import io
import logging
import os
import sys

from pydantic import ValidationError

from b64url_stream import __version__
from b64url_stream.pipelines.transcode import build_decoder, build_encoder
from b64url_stream.utils.config import TranscodeOptions
from b64url_stream.utils.constants import DEFAULT_BUFFER_SIZE, DEFAULT_CHARSET, DEFAULT_QUEUE_SIZE, DEFAULT_WRAP
from b64url_stream.utils.errors import CancellationError, DataFormatError, TranscodeError
from b64url_stream.utils.thread_log import configure_logging

PROG = "b64url"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Base64 URL-safe encode or decode FILE, or standard input, to standard output.",
    )
    p.add_argument("-d", "--decode", action="store_true", help="decode data (encodes by default)")
    p.add_argument("-i", "--ignore-garbage", action="store_true",
                   help="when decoding, ignore non-alphabet characters")
    p.add_argument("-w", "--wrap", nargs="?", type=int, const=DEFAULT_WRAP, default=0, metavar="COLS",
                   help=f"wrap encoded lines after COLS characters (default {DEFAULT_WRAP}). "
                        "Use 0 to disable line wrapping")
    p.add_argument("-f", "--file", default="-", metavar="FILE",
                   help="encode or decode contents of FILE ('-' for STDIN)")
    p.add_argument("-c", "--charset", default=DEFAULT_CHARSET, metavar="CHARSET",
                   help=f"use CHARSET for the encoded text (default: {DEFAULT_CHARSET})")
    p.add_argument("-b", "--buffer", type=int, default=DEFAULT_BUFFER_SIZE, metavar="SIZE",
                   help=f"use SIZE as the read-buffer size (default: {DEFAULT_BUFFER_SIZE})")
    p.add_argument("--queue-size", type=int, default=DEFAULT_QUEUE_SIZE, metavar="N",
                   help=f"bounded queue size between stages (default: {DEFAULT_QUEUE_SIZE})")
    p.add_argument("--stats", action="store_true", help="print per-stage metrics to standard error")
    p.add_argument("-v", "--verbose", action="store_true", help="log pipeline activity to standard error")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_options(parser: argparse.ArgumentParser, argv=None):
    args = parser.parse_args(argv)
    try:
        options = TranscodeOptions(
            decode=args.decode,
            ignore_garbage=args.ignore_garbage,
            wrap=args.wrap,
            charset=args.charset,
            buffer_size=args.buffer,
            queue_size=args.queue_size,
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(x) for x in first.get("loc", ())) or "argument"
        parser.error(f"invalid value for {field}: {first.get('msg')}")
    if args.file != "-" and not os.path.isfile(args.file):
        parser.error(f"File does not exist: {args.file}")
    return args, options


def _open_streams(args, options, stdin, stdout):
    """Returns (source, sink, to_close, to_detach)."""
    to_close = []
    to_detach = []
    if options.decode:
        if args.file == "-":
            source = io.TextIOWrapper(stdin, encoding=options.charset)
            to_detach.append(source)
        else:
            source = open(args.file, "r", encoding=options.charset)
            to_close.append(source)
        sink = stdout
    else:
        if args.file == "-":
            source = stdin
        else:
            source = open(args.file, "rb")
            to_close.append(source)
        sink = io.TextIOWrapper(stdout, encoding=options.charset, newline="\n")
        to_detach.append(sink)
    return source, sink, to_close, to_detach


def run(args, options: TranscodeOptions, stdin, stdout, stderr) -> int:
    source, sink, to_close, to_detach = _open_streams(args, options, stdin, stdout)
    try:
        if options.decode:
            pipeline = build_decoder(source, sink, ignore_garbage=options.ignore_garbage,
                                     buffer_size=options.buffer_size, queue_size=options.queue_size)
        else:
            pipeline = build_encoder(source, sink, wrap=options.wrap,
                                     buffer_size=options.buffer_size, queue_size=options.queue_size)
        pipeline.start()
        try:
            pipeline.join()
        except KeyboardInterrupt:
            pipeline.cancel()
            pipeline.join()
        if args.stats:
            print(pipeline.format_metrics(), file=stderr)
        pipeline.result()
    finally:
        for stream in to_detach:
            try:
                stream.flush()
            finally:
                stream.detach()
        for stream in to_close:
            stream.close()
    return EXIT_SUCCESS


def main(argv=None, stdin=None, stdout=None, stderr=None) -> int:
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer
    stderr = stderr if stderr is not None else sys.stderr

    parser = build_parser()
    args, options = parse_options(parser, argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING, stream=stderr)

    try:
        return run(args, options, stdin, stdout, stderr)
    except CancellationError:
        print(f"{PROG}: cancelled", file=stderr)
        return EXIT_CANCELLED
    except DataFormatError as e:
        print(f"{PROG}: invalid input: {e}", file=stderr)
        return EXIT_FAILURE
    except UnicodeError as e:
        print(f"{PROG}: cannot decode input as {options.charset}: {e}", file=stderr)
        return EXIT_FAILURE
    except TranscodeError as e:
        logger.exception("internal error")
        print(f"{PROG}: internal error: {e}", file=stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"{PROG}: {e.filename or ''}: {e.strerror or e}", file=stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
