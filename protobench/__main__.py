from protobench.cli import cli_main

cli_main()
