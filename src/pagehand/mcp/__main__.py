from pagehand.mcp.server import main

main()
