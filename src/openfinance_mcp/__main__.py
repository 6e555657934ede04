from openfinance_mcp.cli.main import main

main()
