from ghmcp.cli import main

main()
