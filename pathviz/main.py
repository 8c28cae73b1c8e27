import argparse
import sys
import os
import logging

# Ensure project root is in path so we can import 'pathviz' package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pathviz.algo.finders import FINDERS, create_finder
from pathviz.core.errors import PathvizError

logger = logging.getLogger("pathviz")


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def add_session_args(parser, finder=True):
    parser.add_argument("--width", type=int, default=70, help="Grid columns")
    parser.add_argument("--height", type=int, default=100, help="Grid rows")
    parser.add_argument("--layout", type=str, help="Floor layout JSON (size, walls, rooms)")
    parser.add_argument("--start", type=int, nargs=2, metavar=("X", "Y"), help="Start cell")
    parser.add_argument("--end", type=int, nargs=2, metavar=("X", "Y"), help="End cell")
    parser.add_argument("--ops-per-second", type=float, default=300, help="Playback rate")
    if finder:
        parser.add_argument("--finder", type=str, default="astar", choices=sorted(FINDERS), help="Pathfinding algorithm")
        parser.add_argument("--diagonal", action="store_true", help="Allow diagonal moves")


def build_controller(args, view, timers, finder):
    from pathviz.controller.controller import Controller, ControllerConfig
    from pathviz.io.layout import LayoutSerializer

    layout = None
    if args.layout:
        logger.info(f"Loading layout {args.layout}...")
        layout = LayoutSerializer.load(args.layout)
        logger.info(f"Layout '{layout.name}': {layout.width}x{layout.height}, "
                    f"{len(layout.blocked)} blocked cells, {len(layout.rooms)} rooms")

    config = ControllerConfig(grid_size=(args.width, args.height),
                              operations_per_second=args.ops_per_second)
    controller = Controller(view, finder, timers, config=config, layout=layout)
    controller.init(start=tuple(args.start) if args.start else None,
                    end=tuple(args.end) if args.end else None)
    return controller


def drain(controller, timers):
    """Pumps a ManualClock timer queue until the replay settles."""
    from pathviz.controller.controller import State

    while not controller.is_(State.FINISHED):
        deadline = timers.next_deadline()
        if deadline is None:
            break
        timers.advance(deadline - timers.now())


def run_interactive(args, finder, autostart=False):
    from pathviz.controller.dispatcher import InputDispatcher
    from pathviz.core.timers import TimerQueue
    from pathviz.viz.renderer import Renderer

    timers = TimerQueue()
    renderer = Renderer(record=args.record)
    controller = build_controller(args, renderer, timers, finder)
    dispatcher = InputDispatcher(controller, wall_drawing=getattr(args, "wall_drawing", False))
    renderer.attach(controller, dispatcher, timers)

    if args.record:
        logger.info(f"Recording video to {renderer.recorder.output_file}")

    renderer.init_window()
    if autostart:
        controller.start()
    renderer.run_loop()


def main():
    parser = argparse.ArgumentParser(description="Pathfinding visualizer: search, record, replay")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run Command
    run_parser = subparsers.add_parser("run", help="Open the interactive visualizer")
    add_session_args(run_parser)
    run_parser.add_argument("--wall-drawing", action="store_true",
                            help="Click-drag paints walls instead of opening the endpoint prompt")
    run_parser.add_argument("--record", action="store_true", help="Record video")

    # Solve Command
    solve_parser = subparsers.add_parser("solve", help="Search and replay headlessly")
    add_session_args(solve_parser)
    solve_parser.add_argument("--record-events", type=str, help="Save the operation log to a binary file")

    # Replay Command
    replay_parser = subparsers.add_parser("replay", help="Replay a saved operation log")
    replay_parser.add_argument("event_file", help="Path to operation log file")
    add_session_args(replay_parser, finder=False)
    replay_parser.add_argument("--visual", action="store_true", help="Show visualization")
    replay_parser.add_argument("--record", action="store_true", help="Record video")

    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return

    logger.info(f"Running command: {args.command}")

    try:
        run_command(args)
    except PathvizError as e:
        logger.error(str(e))
        sys.exit(1)


def run_command(args):
    if args.command == "run":
        finder = create_finder(args.finder, allow_diagonal=args.diagonal)
        run_interactive(args, finder)

    elif args.command == "solve":
        from pathviz.core.timers import ManualClock, TimerQueue
        from pathviz.viz.view import HeadlessView

        finder = create_finder(args.finder, allow_diagonal=args.diagonal)
        timers = TimerQueue(clock=ManualClock())
        view = HeadlessView()
        controller = build_controller(args, view, timers, finder)

        logger.info(f"Solving with {args.finder.upper()} from ({controller.start_x}, {controller.start_y}) "
                    f"to ({controller.end_x}, {controller.end_y})...")
        controller.start()

        if args.record_events:
            from pathviz.core.events import EventWriter
            with EventWriter(args.record_events) as writer:
                writer.write_header(controller.width, controller.height)
                writer.log_operations(controller.operations.snapshot())
                writer.log_path(controller.path)
            logger.info(f"Saved {controller.operation_count} operations to {args.record_events}")

        drain(controller, timers)
        stats = controller.stats
        print(f"Done. Path Length: {stats.path_length:.4f} ({len(controller.path)} cells) | "
              f"Operations: {stats.operation_count} | Rendered: {controller.playback.rendered_count} | "
              f"Time: {stats.time_spent}ms | Replay: {timers.now():.2f}s")

    elif args.command == "replay":
        from pathviz.algo.finders import ReplayFinder
        from pathviz.core.events import EventReader

        logger.info(f"Replaying {args.event_file}...")
        with EventReader(args.event_file) as reader:
            w, h = reader.read_header()
            ops, path = reader.read_all()
        logger.info(f"Log Header: {w}x{h}, {len(ops)} operations, {len(path)} path cells")

        args.width, args.height = w, h
        if path and not args.start:
            args.start = path[0]
        if path and not args.end:
            args.end = path[-1]
        finder = ReplayFinder(ops, path)

        if args.visual or args.record:
            run_interactive(args, finder, autostart=True)
        else:
            from pathviz.core.timers import ManualClock, TimerQueue
            from pathviz.viz.view import HeadlessView

            timers = TimerQueue(clock=ManualClock())
            view = HeadlessView()
            controller = build_controller(args, view, timers, finder)
            if args.layout and (controller.width, controller.height) != (w, h):
                logger.warning(f"Layout dims ({controller.width}x{controller.height}) do not match "
                               f"event file ({w}x{h}). Visuals may be wrong.")
            controller.start()
            drain(controller, timers)
            print(f"Done. Rendered {controller.playback.rendered_count} of {controller.operation_count} operations, "
                  f"path length {controller.stats.path_length:.4f}")


if __name__ == "__main__":
    main()
