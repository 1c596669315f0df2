from walletmcp.main import main

main()
