#!/usr/bin/env python3
"""
SCML to kanim converter - Command Line Version
Converts a Spriter project into a kanim build/anim pair, or dumps an existing
.bytes file.
"""

import argparse
import sys
from pathlib import Path

import config
from kanim.errors import ConversionError

VALID_EXTENSIONS = {'.scml'}


def cmd_convert(args) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1
    if input_path.suffix.lower() not in VALID_EXTENSIONS:
        print(f"Error: Unsupported file format: {input_path.suffix}", file=sys.stderr)
        return 1

    if args.debug:
        config.DEBUG = True

    from services.converter import convert

    try:
        result = convert(input_path, output_dir=args.output_dir)
    except ConversionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Build: {result.build_path}")
    print(f"Anim:  {result.anim_path}")
    return 0


def cmd_dump(args) -> int:
    from kanim.reader import read_kanim_file

    try:
        magic, asset, names = read_kanim_file(args.input)
    except (OSError, ConversionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if magic == "BILD":
        print(f"BILD v{asset.version} '{asset.entity_name}': {asset.symbol_count} symbols, {asset.frame_count} frames")
        for symbol in asset.symbols:
            print(f"  symbol {symbol.hash}: {symbol.frame_count} frame(s)")
            for frame in symbol.frames:
                print(
                    f"    frame {frame.source_frame_index}: pivot ({frame.pivot_x:g}, {frame.pivot_y:g}) "
                    f"size {frame.pivot_width:g}x{frame.pivot_height:g} "
                    f"uv ({frame.u1:g}, {frame.v1:g})-({frame.u2:g}, {frame.v2:g})"
                )
    else:
        print(f"ANIM v{asset.version}: {asset.animation_count} bank(s), "
              f"max visible symbol frames {asset.max_visible_symbol_frames}")
        for bank in asset.banks:
            print(f"  bank '{bank.name}' ({bank.hash}) @ {bank.frame_rate:g} fps, {bank.frame_count} frame(s)")
            for i, frame in enumerate(bank.frames):
                print(f"    frame {i}: {frame.element_count} element(s), center ({frame.center_x:g}, "
                      f"{frame.center_y:g}) size {frame.width:g}x{frame.height:g}")

    print(f"  names: {len(names)}")
    for value, name in names:
        print(f"    {value} = {name}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='scml2kanim',
        description='Convert Spriter .scml projects into kanim build/anim files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a project; outputs go to KANIM_OUTPUT_DIR (default ./output)
  python cli.py convert sprites/hero.scml

  # Choose the output directory and print debug diagnostics
  python cli.py convert sprites/hero.scml --output-dir ./build --debug

  # Inspect a produced file
  python cli.py dump ./build/hero_anim.bytes
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    convert_parser = subparsers.add_parser('convert', help='Convert an .scml project')
    convert_parser.add_argument('input', type=str, help='Input Spriter project (.scml)')
    convert_parser.add_argument('--output-dir', type=str,
                                help='Output directory (default: KANIM_OUTPUT_DIR or ./output)')
    convert_parser.add_argument('--debug', action='store_true', help='Print debug diagnostics')
    convert_parser.set_defaults(func=cmd_convert)

    dump_parser = subparsers.add_parser('dump', help='Print the contents of a _build/_anim .bytes file')
    dump_parser.add_argument('input', type=str, help='BILD or ANIM file')
    dump_parser.set_defaults(func=cmd_dump)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
