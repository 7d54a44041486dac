#!/usr/bin/env python3
"""Command-line interface for the context-mixing bit compressor.

Compresses a file and immediately checks that the output decodes back
to the input. There is no standalone decompression: the output stream
stores no length, so only the built-in round-trip check can decode it.
"""

import argparse
import sys
import time

from compressor import BitCompressor, DEFAULT_NUM_ORDERS
from utils import bytes_to_bits, format_int, format_size

USAGE_NOTE = (
    "note: there is no way to decompress a file with bitmix,\n"
    "      but every run includes a built-in decompression check."
)


def cmd_compress(args) -> int:
    with open(args.input, 'rb') as f:
        raw = f.read()

    bits = bytes_to_bits(raw)
    pc = BitCompressor(num_orders=args.orders, verbose=not args.quiet)

    start = time.time()
    result = pc.compress(bits)
    elapsed = time.time() - start

    with open(args.output, 'wb') as f:
        f.write(result.stream)

    # Check against what actually landed on disk.
    with open(args.output, 'rb') as f:
        stream = f.read()
    check = pc.verify(bits, stream)

    original_size = len(raw)
    print(f"orig size: {format_int(original_size)} "
          f"({format_size(original_size)})")
    print(f"comp size: {format_int(len(result.stream))}")
    print(f"ratio: {100 * result.ratio:.3f}%")
    print(f"{result.bits_per_byte:.3f} bpc")
    if not args.quiet:
        print(f"Time: {elapsed:.1f}s", file=sys.stderr)
    if not check:
        print(f"decompression error at bit {check.mismatch_index}: "
              f"expected {check.expected}, got {check.actual}")
        print("check failed")
        return 1
    print("ok")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bitmix",
        usage="%(prog)s [options] uncompressed-file destination-file",
        description=(
            "bitmix: lossless bit compressor with multi-order context "
            "mixing and binary arithmetic coding."
        ),
        epilog=USAGE_NOTE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "files", nargs="*",
        help="Input file and destination for the compressed stream",
    )
    parser.add_argument(
        "--orders", type=int, default=DEFAULT_NUM_ORDERS,
        help=f"Number of context orders 0..N-1 (default: {DEFAULT_NUM_ORDERS})",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress progress output on stderr",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.files) != 2:
        parser.print_usage()
        print(USAGE_NOTE)
        return 2
    if args.orders < 1:
        parser.error(f"--orders must be >= 1, got {args.orders}")

    args.input, args.output = args.files
    return cmd_compress(args)


if __name__ == "__main__":
    sys.exit(main())
