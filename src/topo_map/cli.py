"""Command-line interface for the topology map viewer."""

import argparse
import logging
import sys
from dataclasses import replace

from src.logging_config import setup_logging
from src.topo_map.config import load_config
from src.topo_map.controller import TopologyViewer
from src.topo_map.loader import load_topology_file
from src.topo_map.viewer import create_figure, export_html, show_figure


def main() -> None:
    """Main entry point for topology map CLI."""
    parser = argparse.ArgumentParser(
        description="Topology Map Viewer - network topology on a world map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # View topology in browser
  uv run python -m src.topo_map topologies/network-l1.json

  # Draw on top of the base map image, zoomed to 200%
  uv run python -m src.topo_map topologies/network-l1.json --base-map assets/world.svg --zoom 2

  # Show the 0/0 reference dot to check calibration
  uv run python -m src.topo_map topologies/network-l1.json --show-origin

  # Export to HTML file
  uv run python -m src.topo_map topologies/network-l1.json --export topology.html
        """,
    )

    parser.add_argument(
        "path",
        type=str,
        help="Path to a topology JSON document",
    )
    parser.add_argument(
        "--export",
        type=str,
        metavar="FILE",
        help="Export to HTML file instead of opening browser",
    )
    parser.add_argument(
        "--base-map",
        type=str,
        metavar="IMAGE",
        default=None,
        help="Base-map image path or URL (overrides TOPO_MAP_BASE_MAP)",
    )
    parser.add_argument(
        "--zoom",
        type=float,
        default=None,
        help="Initial zoom factor (clamped to the configured bounds)",
    )
    parser.add_argument(
        "--show-origin",
        action="store_true",
        help="Draw a reference dot at latitude 0 / longitude 0",
    )
    parser.add_argument(
        "--no-labels",
        action="store_true",
        help="Hide node name labels",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Custom title for the visualization",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Read TOPO_MAP_* settings from this .env file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.INFO)

    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.env_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if args.base_map:
        config = replace(config, base_map_source=args.base_map)

    # Load topology
    try:
        logger.info(f"Loading topology from {args.path}")
        graph = load_topology_file(args.path, config.calibration)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    viewer = TopologyViewer(config, show_origin=args.show_origin)
    viewer.show_graph(graph, reset_viewport=True)
    if args.zoom is not None:
        viewer.viewport.set_zoom(args.zoom)

    counts = graph.summary()
    print(
        f"{graph.name}: {viewer.summary_text()} "
        f"({counts['nodes'] - counts['rendered_nodes']} nodes and "
        f"{counts['links'] - counts['rendered_links']} links not drawn)"
    )

    # Create figure
    title = args.title or f"Topology: {graph.name}"
    fig = create_figure(
        viewer.scene,
        viewer.viewport,
        title=title,
        base_map_source=config.base_map_source,
        show_labels=not args.no_labels,
    )

    # Display or export
    if args.export:
        logger.info(f"Exporting to {args.export}")
        export_html(fig, args.export)
        print(f"Exported to {args.export}")
    else:
        logger.info("Opening in browser")
        show_figure(fig)


if __name__ == "__main__":
    main()
