from steam_cli.main import main

main()
