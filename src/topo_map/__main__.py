from src.topo_map.cli import main

main()
