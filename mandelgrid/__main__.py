"""
Allow running the package directly: python -m mandelgrid
"""
import logging
from argparse import ArgumentParser

from .colormaps import list_color_scheme_names
from .engine import list_engine_names


def build_parser():
    parser = ArgumentParser(prog='mandelgrid',
                            description='Interactive Mandelbrot set explorer')

    parser.add_argument('--width', type=int, dest='width',
                        help='window width in pixels', metavar='WIDTH')

    parser.add_argument('--height', type=int, dest='height',
                        help='window height in pixels', metavar='HEIGHT')

    parser.add_argument('--max-iterations', type=int, dest='max_iter',
                        help='iteration ceiling before a pixel is treated as inside the set',
                        metavar='MAX_ITERATIONS')

    parser.add_argument('--batch-size', type=int, dest='batch_size',
                        help='iterations per unresolved pixel per frame (grid engine)',
                        metavar='BATCH_SIZE')

    parser.add_argument('--engine', dest='engine', choices=list_engine_names(),
                        help='fractal engine to use')

    parser.add_argument('--color-scheme', dest='color_scheme',
                        choices=list_color_scheme_names(),
                        help='color scheme for escaped pixels')

    parser.add_argument('-v', '--verbose', action='store_true', dest='verbose',
                        help='enable debug logging')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    from .app import run
    run(args.width, args.height, args.max_iter, args.batch_size,
        args.engine, args.color_scheme)


if __name__ == "__main__":
    main()
