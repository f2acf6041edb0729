from churchhub.cli import main

main()
